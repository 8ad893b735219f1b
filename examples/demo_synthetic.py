#!/usr/bin/env python3
"""Drive a gesture session with a simulated player. No input device required.

The simulated player looks at the front of the gesture queue and draws that
shape with hand jitter, occasionally drawing the wrong shape or pausing the
game mid-stroke. Optionally records the sample stream for later replay with
``stroke-engine replay``.

Usage:
    python examples/demo_synthetic.py
    python examples/demo_synthetic.py --rounds 50 --noise 0.05 --record data/session.npz
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from stroke_engine import (
    EngineConfig,
    GestureSession,
    PointerSample,
    SampleRecorder,
    Template,
    TemplateLibrary,
)


def draw_samples(
    template: Template,
    rng: np.random.Generator,
    origin: tuple[float, float] = (640.0, 480.0),
    size: float = 200.0,
    noise: float = 0.02,
    pause_chance: float = 0.0,
) -> list[PointerSample]:
    """Screen-space samples for one drawing of a template, stroke by stroke."""
    ox, oy = origin
    samples = []
    for sid in template.stroke_ids:
        pts = np.array([[p.x, p.y] for p in template.points if p.stroke_id == sid])
        for a, b in zip(pts, pts[1:]):
            for t in np.linspace(0.0, 1.0, 8, endpoint=False):
                x, y = a + (b - a) * t + rng.normal(0.0, noise, 2)
                samples.append(PointerSample(down=True, x=ox + size * x, y=oy - size * y))
                if rng.random() < pause_chance:
                    samples.append(PointerSample(down=True, x=ox, y=oy, paused=True))
        x, y = pts[-1]
        samples.append(PointerSample(down=True, x=ox + size * x, y=oy - size * y))
        samples.append(PointerSample(down=False, x=ox + size * x, y=oy - size * y))
    return samples


def main():
    parser = argparse.ArgumentParser(description="Simulated gesture session")
    parser.add_argument("--rounds", type=int, default=20, help="Gestures to draw")
    parser.add_argument("--noise", type=float, default=0.02, help="Hand jitter (template units)")
    parser.add_argument("--mistakes", type=float, default=0.2, help="Chance of drawing a wrong shape")
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument("--config", default=None, help="Engine config YAML")
    parser.add_argument("--record", default=None, help="Save the sample stream (.json or .npz)")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = EngineConfig.from_yaml(args.config) if args.config else EngineConfig(seed=args.seed)
    # Multi-stroke shapes need strokes grouped by an idle gap
    config.finalize_policy = "idle_timeout"
    library = TemplateLibrary.from_path(config.templates) if config.templates else TemplateLibrary.with_defaults()
    session = GestureSession.from_config(config, library)
    rng = np.random.default_rng(args.seed)

    recorder = SampleRecorder()
    if args.record:
        recorder.start()

    def on_decision(outcome):
        mark = "✓" if outcome.accepted else "✗"
        print(
            f"  {mark} drew {outcome.result.label:10s} expected {outcome.expected_label:10s} "
            f"score={outcome.result.score:.2f}"
        )

    session.on_decision(on_decision)
    session.start()

    gap = [PointerSample(down=False)] * (config.idle_timeout_ticks + 1)
    for _ in range(args.rounds):
        target = session.queue.expected
        if rng.random() < args.mistakes:
            target = library.all()[int(rng.integers(len(library)))]
        for sample in draw_samples(target, rng, noise=args.noise, pause_chance=0.01) + gap:
            recorder.add(sample)
            session.tick(sample)

    stats = session.stats
    print(f"\nTicks: {stats.total_ticks} ({stats.paused_ticks} paused)")
    print(f"Gestures: {stats.gestures}  accepted: {stats.accepted}  rejected: {stats.rejected}")
    print(f"Frame budget overruns: {stats.overruns}")
    for stage, timing in stats.profiler_summary.items():
        print(f"  {stage:10s} avg={timing['avg_ms']:.3f}ms p95={timing['p95_ms']:.3f}ms")

    if args.record:
        recorder.stop()
        path = Path(args.record)
        if path.suffix == ".npz":
            path = recorder.save_compact(path)
        else:
            recorder.save(path)
        print(f"\nSaved {recorder.sample_count} samples to {path}")


if __name__ == "__main__":
    main()
