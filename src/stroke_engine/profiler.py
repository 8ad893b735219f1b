"""Per-tick timing of the capture → classify → decide stages.

Classification runs synchronously inside the frame that completes a gesture,
so its cost lands on that single tick. The profiler keeps a rolling window
of stage timings and counts ticks that ran over the frame budget.

Usage:
    profiler = TickProfiler(frame_budget_ms=16.7)

    with profiler.stage("classify"):
        result = recognizer.classify(gesture, templates)

    print(profiler.summary())
"""

from __future__ import annotations

import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass
class StageStats:
    """Timing statistics for a single tick stage."""
    name: str
    avg_ms: float
    min_ms: float
    max_ms: float
    p95_ms: float
    call_count: int


class TickProfiler:
    """Rolling-window stage timer with a frame budget check on "tick"."""

    STAGES = ("capture", "classify", "decide", "tick")

    def __init__(self, window_size: int = 120, frame_budget_ms: Optional[float] = 1000.0 / 60):
        self._window_size = window_size
        self.frame_budget_ms = frame_budget_ms
        self._timings: dict[str, deque[float]] = {
            s: deque(maxlen=window_size) for s in self.STAGES
        }
        self._counts: dict[str, int] = dict.fromkeys(self.STAGES, 0)
        self._overruns = 0
        self.enabled = True

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Time the enclosed block under ``name``."""
        if not self.enabled:
            yield
            return

        if name not in self._timings:
            self._timings[name] = deque(maxlen=self._window_size)
            self._counts[name] = 0

        t0 = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - t0) * 1000.0
            self._timings[name].append(elapsed_ms)
            self._counts[name] += 1
            if (
                name == "tick"
                and self.frame_budget_ms is not None
                and elapsed_ms > self.frame_budget_ms
            ):
                self._overruns += 1

    def get_stage_stats(self, name: str) -> Optional[StageStats]:
        timings = self._timings.get(name)
        if not timings:
            return None

        ordered = sorted(timings)
        n = len(ordered)
        return StageStats(
            name=name,
            avg_ms=sum(ordered) / n,
            min_ms=ordered[0],
            max_ms=ordered[-1],
            p95_ms=ordered[min(n - 1, int(n * 0.95))],
            call_count=self._counts[name],
        )

    def summary(self) -> dict[str, dict]:
        """Stage name → rounded timing stats, for stages that have run."""
        result = {}
        for name in self._timings:
            stats = self.get_stage_stats(name)
            if stats is None:
                continue
            result[name] = {
                "avg_ms": round(stats.avg_ms, 3),
                "min_ms": round(stats.min_ms, 3),
                "max_ms": round(stats.max_ms, 3),
                "p95_ms": round(stats.p95_ms, 3),
                "calls": stats.call_count,
            }
        return result

    @property
    def overruns(self) -> int:
        """Ticks that took longer than the frame budget."""
        return self._overruns

    def reset(self):
        for timings in self._timings.values():
            timings.clear()
        for name in self._counts:
            self._counts[name] = 0
        self._overruns = 0
