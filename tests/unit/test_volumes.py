"""
Unit tests for sampling and obstacle volumes.

Tests verify:
- Samples land inside their volume for every shape
- Degenerate shapes sample their center
- contains() honours the extra radius and the volume orientation
- Descriptors round-trip through volume_from_dict
"""

import numpy as np
import pytest

from coralgen.core.volume import (
    SphereVolume,
    HemisphereVolume,
    ConeVolume,
    CylinderVolume,
    CuboidVolume,
    volume_from_dict,
)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


class TestSphereVolume:
    """Tests for the full ball."""

    def test_samples_inside_radius(self, rng):
        """Every sample lies within the radius of the center."""
        volume = SphereVolume(radius=1.0, center=(0.0, 1.0, 0.0))
        points = volume.sample_points(200, rng)
        assert points.shape == (200, 3)
        distances = np.linalg.norm(points - np.array([0.0, 1.0, 0.0]), axis=1)
        assert np.all(distances <= 1.0 + 1e-9)

    def test_zero_radius_samples_center(self, rng):
        """A zero radius sphere collapses to its center."""
        volume = SphereVolume(radius=0.0, center=(2.0, 3.0, 4.0))
        assert volume.is_degenerate
        np.testing.assert_allclose(volume.sample(rng), [2.0, 3.0, 4.0])

    def test_negative_radius_rejected(self):
        """Negative radii are a configuration error."""
        with pytest.raises(ValueError):
            SphereVolume(radius=-1.0)

    def test_contains_with_extra_radius(self):
        """A ball around the query point touching the sphere counts as contained."""
        volume = SphereVolume(radius=1.0)
        point = np.array([1.5, 0.0, 0.0])
        assert not volume.contains(point)
        assert not volume.contains(point, extra_radius=0.4)
        assert volume.contains(point, extra_radius=0.6)

    def test_contains_points_mask(self):
        """The vectorised test matches per-point results."""
        volume = SphereVolume(radius=1.0)
        points = np.array([[0.0, 0.0, 0.0], [0.0, 2.0, 0.0], [0.5, 0.5, 0.5]])
        mask = volume.contains_points(points)
        assert mask.tolist() == [True, False, True]

    def test_bounds(self):
        """Bounds enclose the ball."""
        volume = SphereVolume(radius=2.0, center=(1.0, 0.0, 0.0))
        min_x, max_x, min_y, max_y, min_z, max_z = volume.get_bounds()
        assert min_x == pytest.approx(-1.0)
        assert max_x == pytest.approx(3.0)
        assert min_y == pytest.approx(-2.0)
        assert max_z == pytest.approx(2.0)


class TestHemisphereVolume:
    """Tests for the half ball."""

    def test_samples_on_dome_side(self, rng):
        """Samples stay on the normal side of the flat face."""
        volume = HemisphereVolume(radius=1.0)
        points = volume.sample_points(200, rng)
        assert np.all(points[:, 1] >= -1e-9)
        assert np.all(np.linalg.norm(points, axis=1) <= 1.0 + 1e-9)

    def test_flipped_normal_points_down(self, rng):
        """A downward normal puts every sample below the center."""
        volume = HemisphereVolume(radius=1.0, normal=(0.0, -1.0, 0.0))
        points = volume.sample_points(100, rng)
        assert np.all(points[:, 1] <= 1e-9)

    def test_point_below_face_not_contained(self):
        """Points below the flat face are outside."""
        volume = HemisphereVolume(radius=1.0)
        assert volume.contains([0.0, 0.5, 0.0])
        assert not volume.contains([0.0, -0.5, 0.0])
        assert volume.contains([0.0, -0.5, 0.0], extra_radius=0.6)


class TestConeVolume:
    """Tests for the cone with its apex along the normal."""

    def test_samples_inside(self, rng):
        """Every sample satisfies the cone inequality."""
        volume = ConeVolume(radius=1.0, height=2.0)
        points = volume.sample_points(200, rng)
        rho = np.hypot(points[:, 0], points[:, 2])
        assert np.all(points[:, 1] >= 0.0)
        assert np.all(points[:, 1] <= 2.0)
        assert np.all(rho <= 1.0 * (1.0 - points[:, 1] / 2.0) + 1e-9)

    def test_apex_and_beyond(self):
        """The apex is inside; a point above it is only touched by an inflated ball."""
        volume = ConeVolume(radius=1.0, height=1.0)
        assert volume.contains([0.0, 1.0, 0.0])
        assert not volume.contains([0.0, 1.1, 0.0])
        assert volume.contains([0.0, 1.1, 0.0], extra_radius=0.2)

    def test_zero_height_is_degenerate(self, rng):
        """A flat cone samples its center."""
        volume = ConeVolume(radius=1.0, height=0.0, center=(0.0, 5.0, 0.0))
        assert volume.is_degenerate
        np.testing.assert_allclose(volume.sample(rng), [0.0, 5.0, 0.0])


class TestCylinderVolume:
    """Tests for the cylinder."""

    def test_samples_inside(self, rng):
        """Samples lie within the radius and between the caps."""
        volume = CylinderVolume(radius=0.5, height=2.0)
        points = volume.sample_points(200, rng)
        rho = np.hypot(points[:, 0], points[:, 2])
        assert np.all(rho <= 0.5 + 1e-9)
        assert np.all((points[:, 1] >= 0.0) & (points[:, 1] <= 2.0))

    def test_normal_orients_axis(self):
        """A +X normal lays the cylinder along the X axis."""
        volume = CylinderVolume(radius=0.5, height=2.0, normal=(1.0, 0.0, 0.0))
        assert volume.contains([1.5, 0.0, 0.0])
        assert not volume.contains([0.0, 1.5, 0.0])


class TestCuboidVolume:
    """Tests for the box."""

    def test_samples_inside(self, rng):
        """Samples lie within the half extents of the center."""
        volume = CuboidVolume(width=2.0, height=1.0, depth=4.0, center=(0.0, 0.5, 0.0))
        points = volume.sample_points(200, rng)
        assert np.all(np.abs(points[:, 0]) <= 1.0 + 1e-9)
        assert np.all((points[:, 1] >= -1e-9) & (points[:, 1] <= 1.0 + 1e-9))
        assert np.all(np.abs(points[:, 2]) <= 2.0 + 1e-9)

    def test_corner_contained(self):
        """Corners are on the boundary and count as inside."""
        volume = CuboidVolume(width=2.0, height=2.0, depth=2.0)
        assert volume.contains([1.0, 1.0, 1.0])
        assert not volume.contains([1.2, 1.0, 1.0])

    def test_negative_dimension_rejected(self):
        """Negative dimensions are a configuration error."""
        with pytest.raises(ValueError):
            CuboidVolume(width=1.0, height=-1.0, depth=1.0)


class _OutsideRng:
    """Generator stand-in whose draws always land on the upper bound."""

    def uniform(self, low=0.0, high=1.0, size=None):
        if size is None:
            return float(high)
        return np.full(size, high, dtype=float)


class TestDegenerateSampling:
    """Tests for the center fallback shared by every shape."""

    @pytest.mark.parametrize("volume", [
        SphereVolume(radius=0.0, center=(1.0, 2.0, 3.0)),
        HemisphereVolume(radius=0.0, center=(1.0, 2.0, 3.0)),
        ConeVolume(radius=0.0, height=1.0, center=(1.0, 2.0, 3.0)),
        CylinderVolume(radius=1.0, height=0.0, center=(1.0, 2.0, 3.0)),
        CuboidVolume(width=1.0, height=0.0, depth=1.0, center=(1.0, 2.0, 3.0)),
    ])
    def test_zero_dimension_samples_center(self, volume, rng):
        assert volume.is_degenerate
        np.testing.assert_allclose(volume.sample(rng), [1.0, 2.0, 3.0])

    @pytest.mark.parametrize("volume", [
        SphereVolume(radius=1.0, center=(0.0, 4.0, 0.0)),
        HemisphereVolume(radius=1.0, center=(0.0, 4.0, 0.0)),
        ConeVolume(radius=1.0, height=1.0, center=(0.0, 4.0, 0.0)),
    ])
    def test_rejection_cap_falls_back_to_center(self, volume):
        """When every rejection try misses, the center is returned."""
        np.testing.assert_allclose(volume.sample(_OutsideRng()), [0.0, 4.0, 0.0])


class TestVolumeDescriptors:
    """Tests for descriptor serialization."""

    @pytest.mark.parametrize("volume", [
        SphereVolume(radius=1.5, center=(0.0, 1.0, 0.0)),
        HemisphereVolume(radius=0.7, normal=(0.0, 0.0, 1.0)),
        ConeVolume(radius=1.0, height=2.0, normal=(0.0, -1.0, 0.0)),
        CylinderVolume(radius=0.3, height=1.2, center=(1.0, 2.0, 3.0)),
        CuboidVolume(width=1.0, height=2.0, depth=3.0),
    ])
    def test_round_trip(self, volume):
        """A descriptor rebuilds an equivalent volume."""
        rebuilt = volume_from_dict(volume.to_dict())
        assert type(rebuilt) is type(volume)
        assert rebuilt.to_dict() == volume.to_dict()

    def test_unknown_type_rejected(self):
        """Unknown shape names raise ValueError."""
        with pytest.raises(ValueError):
            volume_from_dict({"type": "torus", "radius": 1.0})
