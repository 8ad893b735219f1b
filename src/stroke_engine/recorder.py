"""Pointer-sample recording and replay.

Record the per-frame input stream of a drawing session so it can be fed
back through a GestureSession deterministically:
- Reproducible tests without an input device
- Regression checks when templates or recognizer settings change
- Demo recordings that play back identically
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict
from pathlib import Path
from typing import Iterator, Optional

import numpy as np

from stroke_engine.capture import PointerSample


class SampleRecorder:
    """Records one PointerSample per tick.

    Usage:
        recorder = SampleRecorder()
        recorder.start()
        # In your frame loop:
        recorder.add(sample)
        # When done:
        recorder.save("session.json")
    """

    def __init__(self, fps: float = 60.0):
        self.fps = fps
        self._samples: list[PointerSample] = []
        self._recording = False

    def start(self):
        """Begin a new recording session."""
        self._samples = []
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of samples captured."""
        self._recording = False
        return len(self._samples)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    def add(self, sample: PointerSample):
        if not self._recording:
            return
        self._samples.append(sample)

    def save(self, path: str | Path):
        """Save recording to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": 1,
            "fps": self.fps,
            "sample_count": len(self._samples),
            "samples": [asdict(s) for s in self._samples],
        }
        with open(path, "w") as f:
            json.dump(data, f)

    def save_compact(self, path: str | Path) -> Path:
        """Save in compact numpy npz format: one [down, x, y, paused] row per tick."""
        path = Path(path).with_suffix(".npz")
        path.parent.mkdir(parents=True, exist_ok=True)

        rows = np.array(
            [[s.down, s.x, s.y, s.paused] for s in self._samples], dtype=np.float64
        ).reshape(-1, 4)
        np.savez_compressed(path, samples=rows, fps=np.array([self.fps]))
        return path


class SamplePlayer:
    """Replays a recorded sample stream.

    Usage:
        player = SamplePlayer.load("session.json")
        for sample in player.play():
            session.tick(sample)
    """

    def __init__(self, samples: list[PointerSample], fps: float = 60.0):
        self._samples = samples
        self.fps = fps

    @classmethod
    def load(cls, path: str | Path) -> SamplePlayer:
        """Load a recording from a JSON or npz file."""
        path = Path(path)

        if path.suffix == ".npz":
            return cls._load_compact(path)

        with open(path) as f:
            data = json.load(f)

        samples = [
            PointerSample(
                down=bool(s["down"]),
                x=float(s.get("x", 0.0)),
                y=float(s.get("y", 0.0)),
                paused=bool(s.get("paused", False)),
            )
            for s in data["samples"]
        ]
        return cls(samples, fps=float(data.get("fps", 60.0)))

    @classmethod
    def _load_compact(cls, path: Path) -> SamplePlayer:
        data = np.load(path, allow_pickle=False)
        rows = data["samples"]
        samples = [
            PointerSample(down=bool(r[0]), x=float(r[1]), y=float(r[2]), paused=bool(r[3]))
            for r in rows
        ]
        return cls(samples, fps=float(data["fps"][0]))

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def duration(self) -> float:
        """Duration in seconds at the recorded frame rate."""
        return len(self._samples) / self.fps if self.fps > 0 else 0.0

    def play(self) -> Iterator[PointerSample]:
        """Iterate through all samples instantly (no timing)."""
        yield from self._samples

    def play_realtime(self, speed: float = 1.0) -> Iterator[PointerSample]:
        """Replay at the recorded frame rate (or scaled by speed factor)."""
        start = time.monotonic()
        for i, sample in enumerate(self._samples):
            target_time = i / (self.fps * speed)
            elapsed = time.monotonic() - start
            if target_time > elapsed:
                time.sleep(target_time - elapsed)
            yield sample

    def get_sample(self, index: int) -> Optional[PointerSample]:
        if 0 <= index < len(self._samples):
            return self._samples[index]
        return None
