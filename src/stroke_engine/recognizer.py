"""Point-cloud gesture recognition ($P-style greedy cloud matching).

Candidate and template gestures are resampled to a fixed number of points,
centered on their centroid and scaled to a unit bounding box. The resulting
clouds are compared with a weighted greedy assignment: points matched early
in the walk weigh more than the leftovers at the end, which keeps the match
sensitive to drawing order without a rotation search.

Usage:
    recognizer = PointCloudRecognizer()
    result = recognizer.classify(candidate, library.all())
    print(f"{result.label} (score={result.score:.2f})")
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from stroke_engine.errors import InsufficientPoints, NoTemplates
from stroke_engine.points import Gesture, Template

logger = logging.getLogger("stroke_engine.recognizer")

_EPS = 1e-12


@dataclass
class ClassificationResult:
    """Best template match for one candidate gesture."""
    label: str
    score: float  # 0–1, 1.0 = perfect match
    distance: float  # weighted mean point distance in unit-box space
    template: Template


def resample(
    points: np.ndarray,
    n_points: int = 32,
    stroke_ids: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Resample a path to a fixed number of evenly-spaced points.

    Spacing is uniform in arc length along the original point order. When
    ``stroke_ids`` is given, the jump from the end of one stroke to the start
    of the next contributes no length; otherwise strokes are bridged.

    Args:
        points: Path points, shape (N, 2). Must be non-empty.
        n_points: Number of output points (>= 2).
        stroke_ids: Optional stroke id per point, shape (N,).

    Returns:
        Resampled path, shape (n_points, 2). A path of zero length becomes
        n_points copies of its first point.
    """
    if n_points < 2:
        raise ValueError(f"n_points must be >= 2, got {n_points}")

    points = np.asarray(points, dtype=np.float64)
    if len(points) == 0:
        raise InsufficientPoints("cannot resample an empty path")
    if len(points) == 1:
        return np.tile(points[0], (n_points, 1))

    diffs = np.diff(points, axis=0)
    seg_lengths = np.linalg.norm(diffs, axis=1)
    if stroke_ids is not None:
        stroke_ids = np.asarray(stroke_ids)
        seg_lengths = np.where(stroke_ids[1:] == stroke_ids[:-1], seg_lengths, 0.0)

    cum_length = np.concatenate([[0.0], np.cumsum(seg_lengths)])
    total = cum_length[-1]
    if total < _EPS:
        return np.tile(points[0], (n_points, 1))

    targets = np.linspace(0.0, total, n_points)
    idx = np.searchsorted(cum_length, targets, side="right") - 1
    idx = np.clip(idx, 0, len(points) - 2)

    seg = seg_lengths[idx]
    remain = targets - cum_length[idx]
    t = np.divide(remain, seg, out=np.zeros_like(remain), where=seg > _EPS)
    t = np.clip(t, 0.0, 1.0)
    return points[idx] + t[:, None] * diffs[idx]


def normalize_cloud(cloud: np.ndarray, unit_size: float = 1.0) -> np.ndarray:
    """Center a cloud on its centroid and scale its larger side to unit_size.

    Clouds with no extent (a single repeated point) are only translated.
    """
    cloud = np.asarray(cloud, dtype=np.float64)
    cloud = cloud - cloud.mean(axis=0)
    span = cloud.max(axis=0) - cloud.min(axis=0)
    size = float(span.max())
    if size > _EPS:
        cloud = cloud * (unit_size / size)
    return cloud


def greedy_cloud_distance(
    a: np.ndarray, b: np.ndarray, starts: Sequence[int] = (0,)
) -> float:
    """Weighted greedy matching distance from cloud ``a`` to cloud ``b``.

    Walks the points of ``a`` from each start index; every point takes the
    nearest not-yet-matched point of ``b``. The k-th step is weighted by
    ``1 - k/N``. Returns the smallest weighted mean distance over all starts.
    O(N^2) per start.
    """
    n = len(a)
    if n == 0 or len(b) != n:
        raise ValueError("clouds must be non-empty and of equal size")

    dist = np.linalg.norm(a[:, None, :] - b[None, :, :], axis=2)
    weights = 1.0 - np.arange(n) / n
    weight_sum = float(weights.sum())

    best = math.inf
    for start in starts:
        matched = np.zeros(n, dtype=bool)
        total = 0.0
        for k in range(n):
            row = np.where(matched, np.inf, dist[(start + k) % n])
            j = int(np.argmin(row))
            matched[j] = True
            total += weights[k] * row[j]
            if total >= best:
                break
        best = min(best, total)

    return best / weight_sum


class PointCloudRecognizer:
    """Classifies gestures against templates by greedy point-cloud matching.

    Normalized template clouds are cached per template object, so repeated
    classification against the same library only normalizes the candidate.
    """

    def __init__(
        self,
        n_points: int = 32,
        unit_size: float = 1.0,
        epsilon: float = 0.5,
        bridge_strokes: bool = True,
    ):
        if n_points < 2:
            raise ValueError(f"n_points must be >= 2, got {n_points}")
        if unit_size <= 0:
            raise ValueError(f"unit_size must be positive, got {unit_size}")
        if not 0.0 <= epsilon <= 1.0:
            raise ValueError(f"epsilon must be in [0, 1], got {epsilon}")

        self.n_points = n_points
        self.unit_size = unit_size
        self.epsilon = epsilon
        self.bridge_strokes = bridge_strokes

        step = max(1, int(math.floor(n_points ** (1.0 - epsilon))))
        self._starts = tuple(range(0, n_points, step))
        self._cache: dict[int, tuple[Template, np.ndarray]] = {}

    @property
    def half_diagonal(self) -> float:
        """Half the diagonal of the unit bounding box; maps distance to score."""
        return self.unit_size * math.sqrt(2.0) / 2.0

    @property
    def starts(self) -> tuple[int, ...]:
        return self._starts

    def normalize(self, gesture: Gesture) -> np.ndarray:
        """Resample, center and scale a gesture into a comparable cloud."""
        stroke_ids = None if self.bridge_strokes else gesture.stroke_array()
        cloud = resample(gesture.as_array(), self.n_points, stroke_ids)
        return normalize_cloud(cloud, self.unit_size)

    def distance(self, a: Gesture, b: Gesture) -> float:
        """Order-symmetric cloud distance between two gestures."""
        return self._cloud_distance(self.normalize(a), self.normalize(b))

    def score(self, distance: float) -> float:
        return max(0.0, 1.0 - distance / self.half_diagonal)

    def classify(
        self, candidate: Gesture, templates: Sequence[Template]
    ) -> ClassificationResult:
        """Return the best matching template label and similarity score.

        Raises:
            NoTemplates: ``templates`` is empty.
            InsufficientPoints: ``candidate`` has fewer than 2 points.
        """
        if not templates:
            raise NoTemplates("cannot classify against an empty template set")
        if len(candidate) < 2:
            raise InsufficientPoints(
                f"classification needs at least 2 points, got {len(candidate)}"
            )

        cloud = self.normalize(candidate)

        best_template: Optional[Template] = None
        best_distance = math.inf
        for template in templates:
            d = self._cloud_distance(cloud, self._template_cloud(template))
            # Strict comparison keeps the earliest-loaded template on ties
            if best_template is None or d < best_distance:
                best_template = template
                best_distance = d

        assert best_template is not None
        score = self.score(best_distance)
        logger.debug(
            "Classified %d-point gesture as %s (score=%.3f, distance=%.4f)",
            len(candidate), best_template.label, score, best_distance,
        )
        return ClassificationResult(
            label=best_template.label,
            score=score,
            distance=best_distance,
            template=best_template,
        )

    def clear_cache(self):
        self._cache.clear()

    def _cloud_distance(self, a: np.ndarray, b: np.ndarray) -> float:
        return min(
            greedy_cloud_distance(a, b, self._starts),
            greedy_cloud_distance(b, a, self._starts),
        )

    def _template_cloud(self, template: Template) -> np.ndarray:
        # The cache holds a reference to the template, so its id stays unique
        cached = self._cache.get(id(template))
        if cached is None:
            cached = (template, self.normalize(template))
            self._cache[id(template)] = cached
        return cached[1]
