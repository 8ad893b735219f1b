"""Tick-driven session: capture → classification → decision → queue.

The host owns the frame loop and calls ``tick()`` once per frame with that
frame's pointer sample. When the sample completes a gesture, the gesture is
classified synchronously, checked against the queue's expected label, and
on acceptance the queue advances. All collaborators are passed in, so a
host can share or replace any of them.

Usage:
    session = GestureSession.from_config(EngineConfig(), TemplateLibrary.with_defaults())
    session.on_decision(lambda r: print(r.result.label, r.decision))
    session.start()
    while running:
        session.tick(PointerSample(down=pressed, x=mx, y=my, paused=paused))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from stroke_engine.capture import PointerSample, StrokeCapture
from stroke_engine.config import EngineConfig
from stroke_engine.decision import Decision, DecisionGate
from stroke_engine.errors import InsufficientPoints, InvalidGesture, NoTemplates
from stroke_engine.points import Gesture
from stroke_engine.profiler import TickProfiler
from stroke_engine.queue import GestureQueue
from stroke_engine.recognizer import ClassificationResult, PointCloudRecognizer
from stroke_engine.templates import TemplateLibrary

logger = logging.getLogger("stroke_engine.session")


@dataclass
class TickResult:
    """What happened during one tick."""
    tick: int
    gesture: Optional[Gesture] = None
    result: Optional[ClassificationResult] = None
    decision: Optional[Decision] = None
    expected_label: Optional[str] = None
    error: Optional[str] = None  # why a completed gesture was discarded

    @property
    def accepted(self) -> bool:
        return self.decision is Decision.ACCEPTED


@dataclass
class SessionStats:
    """Counters for a running session."""
    total_ticks: int
    paused_ticks: int
    gestures: int
    accepted: int
    rejected: int
    discarded: int
    overruns: int = 0
    profiler_summary: dict = field(default_factory=dict)


class GestureSession:
    """Drives capture, recognition, the decision gate and the gesture queue."""

    def __init__(
        self,
        capture: StrokeCapture,
        recognizer: PointCloudRecognizer,
        library: TemplateLibrary,
        queue: GestureQueue,
        gate: DecisionGate,
        profiler: Optional[TickProfiler] = None,
    ):
        if len(library) == 0:
            raise NoTemplates("a session needs at least one template")

        self.capture = capture
        self.recognizer = recognizer
        self.library = library
        self.queue = queue
        self.gate = gate
        self.profiler = profiler or TickProfiler()

        self._callbacks: list[Callable[[TickResult], None]] = []
        self._started = False
        self._ticks = 0
        self._paused_ticks = 0
        self._gestures = 0
        self._accepted = 0
        self._rejected = 0
        self._discarded = 0

    @classmethod
    def from_config(
        cls, config: EngineConfig, library: Optional[TemplateLibrary] = None
    ) -> GestureSession:
        """Wire up a session from configuration.

        The library defaults to ``config.templates`` if set, else the
        built-in shapes. Template load errors propagate to the caller.
        """
        if library is None:
            if config.templates:
                library = TemplateLibrary.from_path(config.templates)
            else:
                library = TemplateLibrary.with_defaults()

        return cls(
            capture=StrokeCapture(
                region=config.region,
                policy=config.policy,
                idle_timeout_ticks=config.idle_timeout_ticks,
                flip_y=config.flip_y,
            ),
            recognizer=PointCloudRecognizer(
                n_points=config.resample_points,
                unit_size=config.unit_size,
                epsilon=config.epsilon,
                bridge_strokes=config.bridge_strokes,
            ),
            library=library,
            queue=GestureQueue(
                library,
                depth=config.queue_depth,
                rng=np.random.default_rng(config.seed),
            ),
            gate=DecisionGate(config.threshold),
        )

    def on_decision(self, callback: Callable[[TickResult], None]):
        """Register a callback fired for every classified gesture."""
        self._callbacks.append(callback)

    def start(self):
        """Fill the gesture queue; called implicitly by the first tick."""
        self.queue.reset()
        self._started = True
        logger.info(
            "Session started with %d templates, expecting '%s'",
            len(self.library), self.queue.expected_label,
        )

    def tick(self, sample: PointerSample) -> TickResult:
        """Advance one frame."""
        if not self._started:
            self.start()

        self._ticks += 1
        if sample.paused:
            self._paused_ticks += 1
            return TickResult(tick=self._ticks, expected_label=self.queue.expected_label)

        with self.profiler.stage("tick"):
            with self.profiler.stage("capture"):
                gesture = self.capture.tick(sample)
            if gesture is None:
                return TickResult(tick=self._ticks, expected_label=self.queue.expected_label)
            return self.evaluate(gesture)

    def finish(self) -> TickResult:
        """Explicitly complete the gesture being drawn and evaluate it."""
        if not self._started:
            self.start()
        gesture = self.capture.finish()
        if gesture is None:
            return TickResult(tick=self._ticks, expected_label=self.queue.expected_label)
        return self.evaluate(gesture)

    def evaluate(self, gesture: Gesture) -> TickResult:
        """Classify a completed gesture, gate it, and advance the queue on accept."""
        expected = self.queue.expected_label
        outcome = TickResult(tick=self._ticks, gesture=gesture, expected_label=expected)

        try:
            with self.profiler.stage("classify"):
                result = self.recognizer.classify(gesture, self.library.all())
        except (InsufficientPoints, InvalidGesture) as e:
            # A tap or degenerate stroke: drop it and keep drawing
            self._discarded += 1
            outcome.error = str(e)
            logger.debug("Discarded candidate gesture: %s", e)
            return outcome

        with self.profiler.stage("decide"):
            decision = self.gate.decide(result, expected)

        self._gestures += 1
        outcome.result = result
        outcome.decision = decision

        if decision is Decision.ACCEPTED:
            self._accepted += 1
            self.queue.advance()
        else:
            self._rejected += 1

        logger.debug(
            "%s %s (score=%.3f, expected=%s)",
            decision.value, result.label, result.score, expected,
        )

        for cb in self._callbacks:
            cb(outcome)

        return outcome

    @property
    def stats(self) -> SessionStats:
        return SessionStats(
            total_ticks=self._ticks,
            paused_ticks=self._paused_ticks,
            gestures=self._gestures,
            accepted=self._accepted,
            rejected=self._rejected,
            discarded=self._discarded,
            overruns=self.profiler.overruns,
            profiler_summary=self.profiler.summary(),
        )

    def reset(self):
        """Clear capture state and counters; the queue is refilled on next tick."""
        self.capture.reset()
        self._started = False
        self._ticks = 0
        self._paused_ticks = 0
        self._gestures = 0
        self._accepted = 0
        self._rejected = 0
        self._discarded = 0
        self.profiler.reset()
