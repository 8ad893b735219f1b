"""Tests for point-cloud resampling, normalization and greedy matching."""

import math

import numpy as np
import pytest

from stroke_engine.errors import InsufficientPoints, NoTemplates
from stroke_engine.points import Gesture, Point, Template
from stroke_engine.recognizer import (
    ClassificationResult,
    PointCloudRecognizer,
    greedy_cloud_distance,
    normalize_cloud,
    resample,
)
from stroke_engine.templates import TemplateLibrary


def _polygon(n_vertices: int, radius: float = 1.0, closed: bool = True) -> np.ndarray:
    angles = np.linspace(0, 2 * math.pi, n_vertices + 1 if closed else n_vertices, endpoint=closed)
    return np.column_stack([radius * np.cos(angles), radius * np.sin(angles)])


def _random_walk(n: int, seed: int) -> Gesture:
    rng = np.random.default_rng(seed)
    steps = rng.normal(0.0, 1.0, size=(n, 2))
    path = np.cumsum(steps, axis=0)
    return Gesture(tuple(Point(float(x), float(y), 0) for x, y in path))


class TestResample:
    def test_preserves_endpoints(self):
        pts = np.array([[0, 0], [1, 0], [2, 0]], dtype=np.float64)
        resampled = resample(pts, 5)
        assert resampled.shape == (5, 2)
        np.testing.assert_allclose(resampled[0], [0, 0], atol=1e-9)
        np.testing.assert_allclose(resampled[-1], [2, 0], atol=1e-9)

    def test_even_spacing_on_irregular_line(self):
        pts = np.array([[x, 0.0] for x in [0, 1, 1.5, 4, 7, 9, 10]])
        resampled = resample(pts, 11)
        np.testing.assert_allclose(resampled[:, 0], np.arange(11), atol=1e-9)
        np.testing.assert_allclose(resampled[:, 1], 0.0, atol=1e-9)

    def test_single_point_is_tiled(self):
        resampled = resample(np.array([[3.0, 4.0]]), 8)
        assert resampled.shape == (8, 2)
        np.testing.assert_allclose(resampled, [[3.0, 4.0]] * 8)

    def test_zero_length_path_is_tiled(self):
        pts = np.array([[1.0, 1.0]] * 5)
        resampled = resample(pts, 4)
        np.testing.assert_allclose(resampled, [[1.0, 1.0]] * 4)

    def test_empty_path_raises(self):
        with pytest.raises(InsufficientPoints):
            resample(np.zeros((0, 2)), 8)

    def test_rejects_tiny_n(self):
        with pytest.raises(ValueError):
            resample(np.array([[0, 0], [1, 1]]), 1)

    def test_idempotent_on_line(self):
        pts = np.array([[x, 2 * x] for x in [0, 0.3, 1.7, 2.0, 5.5, 6.0]])
        once = resample(pts, 32)
        twice = resample(once, 32)
        np.testing.assert_allclose(twice, once, atol=1e-9)

    def test_idempotent_on_circle(self):
        # 248 edges: every 8th vertex is one of the 32 resampled points
        pts = _polygon(31 * 8, radius=5.0)
        once = resample(pts, 32)
        twice = resample(once, 32)
        np.testing.assert_allclose(twice, once, atol=1e-6)

    def test_bridged_strokes_interpolate_the_jump(self):
        pts = np.array([[0, 0], [1, 0], [0, 1], [1, 1]], dtype=np.float64)
        resampled = resample(pts, 3)
        np.testing.assert_allclose(resampled[1], [0.5, 0.5], atol=1e-9)

    def test_unbridged_strokes_skip_the_jump(self):
        pts = np.array([[0, 0], [1, 0], [0, 1], [1, 1]], dtype=np.float64)
        stroke_ids = np.array([0, 0, 1, 1])
        resampled = resample(pts, 3, stroke_ids)
        np.testing.assert_allclose(resampled, [[0, 0], [0, 1], [1, 1]], atol=1e-9)


class TestNormalizeCloud:
    def test_centroid_at_origin(self):
        cloud = np.array([[10, 10], [30, 10], [20, 40]], dtype=np.float64)
        normed = normalize_cloud(cloud)
        np.testing.assert_allclose(normed.mean(axis=0), [0, 0], atol=1e-12)

    def test_larger_side_is_unit(self):
        cloud = np.array([[0, 0], [50, 0], [50, 20], [0, 20]], dtype=np.float64)
        normed = normalize_cloud(cloud, unit_size=2.0)
        span = normed.max(axis=0) - normed.min(axis=0)
        assert span[0] == pytest.approx(2.0)
        assert span[1] == pytest.approx(0.8)

    def test_flat_line_scales_by_width(self):
        cloud = np.array([[0, 3], [4, 3], [8, 3]], dtype=np.float64)
        normed = normalize_cloud(cloud)
        np.testing.assert_allclose(normed[:, 0], [-0.5, 0.0, 0.5])
        np.testing.assert_allclose(normed[:, 1], 0.0)

    def test_degenerate_cloud_is_not_scaled(self):
        cloud = np.array([[7, 7]] * 4, dtype=np.float64)
        normed = normalize_cloud(cloud)
        assert np.all(np.isfinite(normed))
        np.testing.assert_allclose(normed, 0.0)


class TestGreedyCloudDistance:
    def test_identical_clouds(self):
        cloud = normalize_cloud(resample(_polygon(6), 16))
        assert greedy_cloud_distance(cloud, cloud) == pytest.approx(0.0, abs=1e-12)

    def test_point_order_does_not_matter_for_identical_sets(self):
        cloud = normalize_cloud(resample(_polygon(5), 16))
        shuffled = cloud[np.random.default_rng(3).permutation(16)]
        assert greedy_cloud_distance(cloud, shuffled) == pytest.approx(0.0, abs=1e-12)

    def test_different_clouds(self):
        a = normalize_cloud(resample(_polygon(4), 16))
        b = normalize_cloud(resample(np.array([[0, 0], [1, 0]], dtype=np.float64), 16))
        assert greedy_cloud_distance(a, b) > 0.05

    def test_more_starts_never_worse(self):
        a = normalize_cloud(resample(_polygon(3), 16))
        b = normalize_cloud(resample(_polygon(4), 16))
        single = greedy_cloud_distance(a, b, starts=(0,))
        many = greedy_cloud_distance(a, b, starts=range(16))
        assert many <= single + 1e-12

    def test_size_mismatch(self):
        with pytest.raises(ValueError):
            greedy_cloud_distance(np.zeros((4, 2)), np.zeros((5, 2)))


class TestPointCloudRecognizer:
    def test_starts_follow_epsilon(self):
        assert PointCloudRecognizer(n_points=32, epsilon=0.5).starts == (0, 5, 10, 15, 20, 25, 30)
        assert PointCloudRecognizer(n_points=32, epsilon=0.0).starts == (0,)
        assert len(PointCloudRecognizer(n_points=32, epsilon=1.0).starts) == 32

    def test_half_diagonal(self):
        assert PointCloudRecognizer().half_diagonal == pytest.approx(math.sqrt(2) / 2)
        assert PointCloudRecognizer(unit_size=4.0).half_diagonal == pytest.approx(2 * math.sqrt(2))

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            PointCloudRecognizer(n_points=1)
        with pytest.raises(ValueError):
            PointCloudRecognizer(unit_size=0.0)
        with pytest.raises(ValueError):
            PointCloudRecognizer(epsilon=1.5)

    def test_exact_copy_scores_one(self):
        library = TemplateLibrary.with_defaults()
        recognizer = PointCloudRecognizer()
        for template in library:
            candidate = Gesture(template.points)
            result = recognizer.classify(candidate, library.all())
            assert result.label == template.label
            assert result.score == pytest.approx(1.0, abs=1e-9)
            assert result.distance == pytest.approx(0.0, abs=1e-9)

    def test_translation_and_scale_invariance(self):
        library = TemplateLibrary.with_defaults()
        recognizer = PointCloudRecognizer()
        candidate = _random_walk(20, seed=7)
        moved = candidate.scaled(3.7).translated(120.0, -40.0)

        r1 = recognizer.classify(candidate, library.all())
        r2 = recognizer.classify(moved, library.all())
        assert r1.label == r2.label
        assert r1.score == pytest.approx(r2.score, abs=1e-6)

    def test_empty_library_raises(self):
        recognizer = PointCloudRecognizer()
        candidate = Gesture((Point(0, 0), Point(1, 1)))
        with pytest.raises(NoTemplates):
            recognizer.classify(candidate, [])

    def test_single_point_candidate_raises(self):
        recognizer = PointCloudRecognizer()
        library = TemplateLibrary.with_defaults()
        with pytest.raises(InsufficientPoints):
            recognizer.classify(Gesture((Point(1, 1),)), library.all())

    def test_ties_go_to_earliest_template(self):
        records = [(0, 0, 0), (0, 1, 0), (0, 1, 1)]
        first = Template.from_tuples(records, label="first")
        second = Template.from_tuples(records, label="second")
        recognizer = PointCloudRecognizer()
        result = recognizer.classify(Gesture(first.points), [first, second])
        assert result.label == "first"
        assert result.template is first

    def test_scores_are_bounded(self):
        library = TemplateLibrary.with_defaults()
        recognizer = PointCloudRecognizer()
        for seed in range(10):
            result = recognizer.classify(_random_walk(15, seed), library.all())
            assert isinstance(result, ClassificationResult)
            assert 0.0 <= result.score <= 1.0

    def test_two_point_candidate(self):
        library = TemplateLibrary.with_defaults()
        result = PointCloudRecognizer().classify(
            Gesture((Point(0, 0), Point(10, 0))), library.all()
        )
        assert result.label == "line"

    def test_distance_is_symmetric(self):
        recognizer = PointCloudRecognizer()
        a = _random_walk(12, seed=1)
        b = _random_walk(12, seed=2)
        assert recognizer.distance(a, b) == pytest.approx(recognizer.distance(b, a))

    def test_template_cloud_cache(self):
        library = TemplateLibrary.with_defaults()
        recognizer = PointCloudRecognizer()
        recognizer.classify(_random_walk(10, seed=4), library.all())
        assert len(recognizer._cache) == len(library)
        recognizer.clear_cache()
        assert len(recognizer._cache) == 0

    def test_unbridged_multistroke_exact_copy(self):
        library = TemplateLibrary.with_defaults()
        recognizer = PointCloudRecognizer(bridge_strokes=False)
        plus = library.by_label("plus")[0]
        result = recognizer.classify(Gesture(plus.points), library.all())
        assert result.label == "plus"
        assert result.score == pytest.approx(1.0, abs=1e-9)
