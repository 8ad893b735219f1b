"""Stroke capture: turns a per-frame pointer sample stream into gestures.

Each frame the host calls ``tick()`` with one PointerSample. A press inside
the capture region starts a stroke; every following frame with the pointer
held appends a point; releasing closes the stroke. When a gesture is
finalized depends on the FinalizePolicy:

- SINGLE_STROKE: every release finalizes (one stroke per gesture)
- IDLE_TIMEOUT: finalize after the pointer has been up for N ticks, so
  strokes drawn in quick succession ("+", "x") form one gesture
- MANUAL: finalize only when ``finish()`` is called

Usage:
    capture = StrokeCapture(region=CaptureRegion(0, 150, 1920, 930))
    # In frame loop:
    gesture = capture.tick(PointerSample(down=pressed, x=mx, y=my))
    if gesture is not None:
        result = recognizer.classify(gesture, library.all())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from stroke_engine.points import Gesture, Point

logger = logging.getLogger("stroke_engine.capture")


class CaptureState(Enum):
    IDLE = "idle"
    DRAWING = "drawing"


class FinalizePolicy(Enum):
    """When accumulated strokes are closed off into a gesture."""
    SINGLE_STROKE = "single_stroke"
    IDLE_TIMEOUT = "idle_timeout"
    MANUAL = "manual"


@dataclass(frozen=True)
class PointerSample:
    """One frame of pointer input."""
    down: bool
    x: float = 0.0
    y: float = 0.0
    paused: bool = False


@dataclass(frozen=True)
class CaptureRegion:
    """Axis-aligned rectangle in screen space; contains() is half-open."""
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"capture region needs a positive size, got {self.width}x{self.height}"
            )

    def contains(self, px: float, py: float) -> bool:
        return (
            self.x <= px < self.x + self.width
            and self.y <= py < self.y + self.height
        )

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> CaptureRegion:
        """Build from an [x, y, width, height] list."""
        if len(values) != 4:
            raise ValueError(f"capture region needs 4 values, got {len(values)}")
        x, y, w, h = (float(v) for v in values)
        return cls(x, y, w, h)


class StrokeCapture:
    """Pointer-stream state machine that assembles multi-stroke gestures.

    Owns the in-progress point buffer and stroke counter. Stroke ids restart
    at 0 for every gesture. A paused tick is ignored entirely, so a stroke in
    progress resumes where it left off.
    """

    def __init__(
        self,
        region: Optional[CaptureRegion] = None,
        policy: FinalizePolicy = FinalizePolicy.SINGLE_STROKE,
        idle_timeout_ticks: int = 15,
        flip_y: bool = True,
    ):
        if idle_timeout_ticks < 1:
            raise ValueError(f"idle_timeout_ticks must be >= 1, got {idle_timeout_ticks}")
        self.region = region
        self.policy = policy
        self.idle_timeout_ticks = idle_timeout_ticks
        self.flip_y = flip_y

        self._points: list[Point] = []
        self._stroke_id = -1
        self._state = CaptureState.IDLE
        self._was_down = False
        self._idle_ticks = 0

    def tick(self, sample: PointerSample) -> Optional[Gesture]:
        """Consume one frame of input. Returns a gesture when one is finalized."""
        if sample.paused:
            return None

        pressed = sample.down and not self._was_down
        self._was_down = sample.down
        inside = self.region is None or self.region.contains(sample.x, sample.y)

        if self._state is CaptureState.IDLE:
            if pressed and inside:
                self._state = CaptureState.DRAWING
                self._stroke_id += 1
                self._idle_ticks = 0
                self._append(sample)
                return None

            if self._points and self.policy is FinalizePolicy.IDLE_TIMEOUT:
                self._idle_ticks += 1
                if self._idle_ticks >= self.idle_timeout_ticks:
                    return self._finalize()
            return None

        if sample.down:
            # Leaving the region pauses point collection but keeps the stroke open
            if inside:
                self._append(sample)
            return None

        self._state = CaptureState.IDLE
        self._idle_ticks = 0
        logger.debug(
            "Stroke %d closed (%d points buffered)", self._stroke_id, len(self._points)
        )
        if self.policy is FinalizePolicy.SINGLE_STROKE:
            return self._finalize()
        return None

    def finish(self) -> Optional[Gesture]:
        """Explicit "gesture complete" signal: close any open stroke and finalize."""
        self._state = CaptureState.IDLE
        return self._finalize()

    def reset(self):
        """Drop the buffer and any open stroke without producing a gesture."""
        self._points.clear()
        self._stroke_id = -1
        self._state = CaptureState.IDLE
        self._idle_ticks = 0

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def is_drawing(self) -> bool:
        return self._state is CaptureState.DRAWING

    @property
    def stroke_id(self) -> int:
        return self._stroke_id

    @property
    def pending_points(self) -> tuple[Point, ...]:
        return tuple(self._points)

    def _append(self, sample: PointerSample):
        y = -sample.y if self.flip_y else sample.y
        self._points.append(Point(float(sample.x), float(y), self._stroke_id))

    def _finalize(self) -> Optional[Gesture]:
        points = tuple(self._points)
        self._points.clear()
        self._stroke_id = -1
        self._idle_ticks = 0
        if not points:
            return None
        gesture = Gesture(points)
        logger.debug(
            "Finalized gesture: %d points, %d strokes", len(gesture), gesture.stroke_count
        )
        return gesture
