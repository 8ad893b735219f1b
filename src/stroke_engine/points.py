"""Point and gesture value types.

A Gesture is an ordered sequence of points, each tagged with the id of the
pen-down stroke it belongs to. Templates are labeled gestures held by the
library. All types are immutable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np

from stroke_engine.errors import InvalidGesture


@dataclass(frozen=True)
class Point:
    """A single sampled pointer position."""
    x: float
    y: float
    stroke_id: int = 0


@dataclass(frozen=True)
class Gesture:
    """One or more strokes treated as a single shape to classify."""
    points: tuple[Point, ...]
    label: Optional[str] = None

    def __post_init__(self):
        # Accept any sequence but store a tuple so the gesture stays hashable
        object.__setattr__(self, "points", tuple(self.points))
        if not self.points:
            raise InvalidGesture("a gesture needs at least one point")

    def __len__(self) -> int:
        return len(self.points)

    @property
    def stroke_ids(self) -> list[int]:
        """Distinct stroke ids in order of first appearance."""
        seen: list[int] = []
        for p in self.points:
            if p.stroke_id not in seen:
                seen.append(p.stroke_id)
        return seen

    @property
    def stroke_count(self) -> int:
        return len(self.stroke_ids)

    def as_array(self) -> np.ndarray:
        """Return point coordinates as an (N, 2) float64 array."""
        return np.array([[p.x, p.y] for p in self.points], dtype=np.float64)

    def stroke_array(self) -> np.ndarray:
        """Return the stroke id of every point, shape (N,)."""
        return np.array([p.stroke_id for p in self.points], dtype=np.int64)

    def translated(self, dx: float, dy: float) -> Gesture:
        return self._replace_points(
            Point(p.x + dx, p.y + dy, p.stroke_id) for p in self.points
        )

    def scaled(self, factor: float) -> Gesture:
        return self._replace_points(
            Point(p.x * factor, p.y * factor, p.stroke_id) for p in self.points
        )

    def to_tuples(self) -> list[tuple[int, float, float]]:
        """Serialize as ordered (stroke_id, x, y) tuples."""
        return [(p.stroke_id, p.x, p.y) for p in self.points]

    @classmethod
    def from_tuples(
        cls, records: Iterable[Sequence[float]], label: Optional[str] = None
    ) -> Gesture:
        """Build a gesture from (stroke_id, x, y) tuples."""
        points = [Point(float(x), float(y), int(sid)) for sid, x, y in records]
        return cls(tuple(points), label=label)

    def _replace_points(self, points: Iterable[Point]) -> Gesture:
        return type(self)(tuple(points), label=self.label)


@dataclass(frozen=True)
class Template(Gesture):
    """A labeled reference gesture used as ground truth for matching."""

    def __post_init__(self):
        super().__post_init__()
        if not self.label:
            raise InvalidGesture("a template needs a non-empty label")

    @classmethod
    def from_gesture(cls, gesture: Gesture, label: Optional[str] = None) -> Template:
        return cls(gesture.points, label=label or gesture.label)
