"""
Unit tests for the attractor field.

Tests verify:
- Culling removes attractors within the kill radius, first tip wins
- Association picks the nearest tip and never mutates the field
- Ties resolve to the lowest tip index
- Obstacle filtering at generation time
"""

import numpy as np
import pytest

from coralgen.core.volume import SphereVolume, CuboidVolume
from coralgen.ops.attractors import AttractorField


class TestCullNear:
    """Tests for attractor consumption."""

    def test_first_tip_in_scan_order_wins(self):
        """An attractor equidistant from two tips goes to the lower index."""
        field = AttractorField.from_points([[0.01, 0.0, 0.0]])
        tips = np.array([[0.0, 0.0, 0.0], [0.02, 0.0, 0.0]])
        consumed = field.cull_near(tips, kill_radius=0.1)
        assert consumed == [(0, 0)]
        assert field.remaining_count == 0

    def test_each_attractor_consumed_once(self):
        """Several tips in range consume an attractor only once."""
        field = AttractorField.from_points([[0.0, 0.0, 0.0], [5.0, 0.0, 0.0]])
        tips = np.array([[0.05, 0.0, 0.0], [-0.05, 0.0, 0.0], [0.0, 0.05, 0.0]])
        consumed = field.cull_near(tips, kill_radius=0.1)
        assert len(consumed) == 1
        assert field.remaining_count == 1
        np.testing.assert_allclose(field.points[0], [5.0, 0.0, 0.0])

    def test_kill_radius_is_strict(self):
        """An attractor exactly at the kill radius survives."""
        field = AttractorField.from_points([[0.1, 0.0, 0.0]])
        consumed = field.cull_near(np.zeros((1, 3)), kill_radius=0.1)
        assert consumed == []
        assert field.remaining_count == 1

    def test_no_tips_no_change(self):
        field = AttractorField.from_points([[0.0, 0.0, 0.0]])
        assert field.cull_near(np.zeros((0, 3)), kill_radius=1.0) == []
        assert field.remaining_count == 1

    def test_remaining_count_never_increases(self):
        """Culling is the only mutation and it only removes."""
        rng = np.random.default_rng(3)
        field = AttractorField.generate(50, SphereVolume(radius=1.0), None, rng)
        counts = [field.remaining_count]
        for _ in range(5):
            tips = rng.uniform(-1.0, 1.0, (4, 3))
            field.cull_near(tips, kill_radius=0.3)
            counts.append(field.remaining_count)
        assert all(a >= b for a, b in zip(counts, counts[1:]))


class TestAssociate:
    """Tests for nearest-tip association."""

    def test_nearest_tip_within_influence(self):
        field = AttractorField.from_points([
            [0.3, 0.0, 0.0],
            [0.8, 0.0, 0.0],
            [5.0, 0.0, 0.0],
        ])
        tips = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        assignments = field.associate(tips, influence_radius=1.0)
        assert sorted(assignments.keys()) == [0, 1]
        np.testing.assert_allclose(assignments[0][0], [0.3, 0.0, 0.0])
        np.testing.assert_allclose(assignments[1][0], [0.8, 0.0, 0.0])
        assert sum(len(v) for v in assignments.values()) == 2

    def test_tie_goes_to_lowest_index(self):
        field = AttractorField.from_points([[0.5, 0.0, 0.0]])
        tips = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        assignments = field.associate(tips, influence_radius=1.0)
        assert list(assignments.keys()) == [0]

    def test_does_not_mutate_field(self):
        field = AttractorField.from_points([[0.1, 0.0, 0.0], [0.2, 0.0, 0.0]])
        field.associate(np.zeros((1, 3)), influence_radius=1.0)
        assert field.remaining_count == 2

    def test_out_of_range_unassigned(self):
        field = AttractorField.from_points([[3.0, 0.0, 0.0]])
        assert field.associate(np.zeros((1, 3)), influence_radius=1.0) == {}


class TestGeneration:
    """Tests for sampling attractors from a volume."""

    def test_count_and_containment(self):
        rng = np.random.default_rng(11)
        volume = CuboidVolume(width=2.0, height=2.0, depth=2.0)
        field = AttractorField.generate(80, volume, None, rng)
        assert field.remaining_count == 80
        assert np.all(volume.contains_points(field.points))

    def test_obstacle_filters_samples(self):
        """No attractor is generated inside the obstacle."""
        rng = np.random.default_rng(5)
        volume = SphereVolume(radius=1.0)
        obstacle = SphereVolume(radius=0.6)
        field = AttractorField.generate(200, volume, obstacle, rng)
        assert 0 < field.remaining_count < 200
        assert not obstacle.contains_points(field.points).any()

    def test_zero_count(self):
        rng = np.random.default_rng(0)
        field = AttractorField.generate(0, SphereVolume(radius=1.0), None, rng)
        assert field.is_empty
        assert field.points.shape == (0, 3)

    def test_points_is_a_copy(self):
        field = AttractorField.from_points([[1.0, 2.0, 3.0]])
        points = field.points
        points[0, 0] = 99.0
        assert field.points[0, 0] == pytest.approx(1.0)

    def test_same_seed_same_field(self):
        volume = SphereVolume(radius=1.0)
        a = AttractorField.generate(30, volume, None, np.random.default_rng(8))
        b = AttractorField.generate(30, volume, None, np.random.default_rng(8))
        np.testing.assert_allclose(a.points, b.points)
