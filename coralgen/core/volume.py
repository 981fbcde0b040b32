"""
Volume primitives for attractor sampling and obstacle tests.

This module provides the solid shapes used by the coral generator:
- SphereVolume: Full ball
- HemisphereVolume: Upper half ball (local +Y side)
- ConeVolume: Cone with its base disc on local y=0 and apex at y=height
- CylinderVolume: Cylinder from local y=0 to y=height
- CuboidVolume: Axis-aligned box centered on the local origin

Each primitive supports:
- sample: Random point inside the solid
- contains: Check if a (possibly inflated) point touches the solid
- get_bounds: World-space bounding box
- to_dict / volume_from_dict: Descriptor round trip for hosts and configs

Every volume is placed by a `center` translation and oriented by a `normal`
that the local +Y axis is rotated onto with the minimal rotation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, Any, Type
import numpy as np

from ..utils.geometry import UP, rotation_between


MAX_REJECTION_TRIES = 100


def _as_vector(value, default) -> np.ndarray:
    if value is None:
        return np.array(default, dtype=float)
    return np.array(value, dtype=float).reshape(3)


def _segment_distance_2d(points: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Distance from each 2D point to segment ab (handles a == b)."""
    ab = b - a
    denom = float(np.dot(ab, ab))
    if denom < 1e-20:
        return np.linalg.norm(points - a, axis=1)
    t = np.clip((points - a) @ ab / denom, 0.0, 1.0)
    closest = a + t[:, None] * ab
    return np.linalg.norm(points - closest, axis=1)


class Volume(ABC):
    """Abstract base class for sampling and obstacle volumes."""

    center: np.ndarray
    normal: np.ndarray

    def _init_frame(self):
        self.center = _as_vector(self.center, (0.0, 0.0, 0.0))
        self.normal = _as_vector(self.normal, UP)
        norm = np.linalg.norm(self.normal)
        self.normal = self.normal / norm if norm > 1e-10 else UP.copy()
        self._rotation = rotation_between(UP, self.normal)

    def to_local(self, points: np.ndarray) -> np.ndarray:
        """Map world points (N, 3) into the volume's local frame."""
        return (np.atleast_2d(points) - self.center) @ self._rotation

    def to_world(self, points: np.ndarray) -> np.ndarray:
        """Map local points (N, 3) into world coordinates."""
        return np.atleast_2d(points) @ self._rotation.T + self.center

    @property
    @abstractmethod
    def is_degenerate(self) -> bool:
        """True when a zero dimension collapses the solid."""
        pass

    @abstractmethod
    def _sample_local(self, rng: np.random.Generator) -> np.ndarray:
        pass

    @abstractmethod
    def _distance_local(self, local: np.ndarray) -> np.ndarray:
        """Unsigned distance from local points (N, 3) to the solid (0 inside)."""
        pass

    @abstractmethod
    def _local_bounds(self) -> np.ndarray:
        """Local bounding box corners as (min (3,), max (3,))."""
        pass

    @abstractmethod
    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        pass

    def sample(self, rng: np.random.Generator) -> np.ndarray:
        """
        Draw one random point inside the volume.

        Degenerate shapes, and rejection samplers that exhaust their retry
        budget, return the volume center.
        """
        if self.is_degenerate:
            return self.center.copy()
        local = self._sample_local(rng)
        if local is None:
            return self.center.copy()
        return self.to_world(local)[0]

    def sample_points(self, n_points: int, rng: np.random.Generator) -> np.ndarray:
        """Draw n_points samples as an (n_points, 3) array."""
        if n_points <= 0:
            return np.zeros((0, 3))
        return np.array([self.sample(rng) for _ in range(n_points)])

    def contains(self, point: np.ndarray, extra_radius: float = 0.0) -> bool:
        """
        Check whether a ball of `extra_radius` around `point` touches the solid.

        extra_radius = 0 is a pure point-in-solid test.
        """
        return bool(self.contains_points(np.asarray(point, dtype=float).reshape(1, 3), extra_radius)[0])

    def contains_points(self, points: np.ndarray, extra_radius: float = 0.0) -> np.ndarray:
        """Vectorised contains() for an (N, 3) array; returns a bool mask."""
        points = np.asarray(points, dtype=float).reshape(-1, 3)
        if len(points) == 0:
            return np.zeros(0, dtype=bool)
        distances = self._distance_local(self.to_local(points))
        return distances <= max(extra_radius, 0.0) + 1e-12

    def get_bounds(self) -> tuple:
        """Get world bounding box (min_x, max_x, min_y, max_y, min_z, max_z)."""
        lo, hi = self._local_bounds()
        corners = np.array([
            [x, y, z]
            for x in (lo[0], hi[0])
            for y in (lo[1], hi[1])
            for z in (lo[2], hi[2])
        ])
        world = self.to_world(corners)
        mins = world.min(axis=0)
        maxs = world.max(axis=0)
        return (mins[0], maxs[0], mins[1], maxs[1], mins[2], maxs[2])

    def _frame_dict(self) -> Dict[str, Any]:
        return {
            "center": self.center.tolist(),
            "normal": self.normal.tolist(),
        }


@dataclass(eq=False)
class SphereVolume(Volume):
    """
    Ball of the given radius around the center.

    Parameters
    ----------
    radius : float
        Radius of the ball.
    center : array-like, optional
        Placement of the ball center. Default origin.
    normal : array-like, optional
        Orientation; irrelevant for a ball but kept for a uniform descriptor.
    """

    radius: float
    center: Optional[np.ndarray] = None
    normal: Optional[np.ndarray] = None

    def __post_init__(self):
        if self.radius < 0:
            raise ValueError(f"radius ({self.radius}) must be non-negative")
        self._init_frame()

    @property
    def is_degenerate(self) -> bool:
        return self.radius <= 0

    def _sample_local(self, rng):
        r = self.radius
        for _ in range(MAX_REJECTION_TRIES):
            v = rng.uniform(-r, r, 3)
            if np.dot(v, v) <= r * r:
                return v
        return None

    def _distance_local(self, local):
        return np.maximum(np.linalg.norm(local, axis=1) - self.radius, 0.0)

    def _local_bounds(self):
        r = self.radius
        return np.array([-r, -r, -r]), np.array([r, r, r])

    def to_dict(self) -> dict:
        return {"type": "sphere", "radius": self.radius, **self._frame_dict()}


@dataclass(eq=False)
class HemisphereVolume(Volume):
    """
    Half ball whose flat face lies on local y=0 and whose dome points along
    the normal.
    """

    radius: float
    center: Optional[np.ndarray] = None
    normal: Optional[np.ndarray] = None

    def __post_init__(self):
        if self.radius < 0:
            raise ValueError(f"radius ({self.radius}) must be non-negative")
        self._init_frame()

    @property
    def is_degenerate(self) -> bool:
        return self.radius <= 0

    def _sample_local(self, rng):
        r = self.radius
        for _ in range(MAX_REJECTION_TRIES):
            v = rng.uniform(-r, r, 3)
            if v[1] >= 0 and np.dot(v, v) <= r * r:
                return v
        return None

    def _distance_local(self, local):
        y = local[:, 1]
        dome = np.maximum(np.linalg.norm(local, axis=1) - self.radius, 0.0)
        # Below the flat face the nearest point lies on the base disc
        rho = np.hypot(local[:, 0], local[:, 2])
        radial = np.maximum(rho - self.radius, 0.0)
        below = np.hypot(radial, y)
        return np.where(y >= 0, dome, below)

    def _local_bounds(self):
        r = self.radius
        return np.array([-r, 0.0, -r]), np.array([r, r, r])

    def to_dict(self) -> dict:
        return {"type": "hemisphere", "radius": self.radius, **self._frame_dict()}


@dataclass(eq=False)
class ConeVolume(Volume):
    """
    Cone with base disc of `radius` on local y=0 and apex at y=height.

    A point is inside iff 0 <= y <= height and its distance from the axis
    does not exceed radius * (1 - y / height).
    """

    radius: float
    height: float
    center: Optional[np.ndarray] = None
    normal: Optional[np.ndarray] = None

    def __post_init__(self):
        if self.radius < 0:
            raise ValueError(f"radius ({self.radius}) must be non-negative")
        if self.height < 0:
            raise ValueError(f"height ({self.height}) must be non-negative")
        self._init_frame()

    @property
    def is_degenerate(self) -> bool:
        return self.radius <= 0 or self.height <= 0

    def _inside_local(self, local):
        y = local[:, 1]
        rho = np.hypot(local[:, 0], local[:, 2])
        return (y >= 0) & (y <= self.height) & (rho * self.height <= self.radius * (self.height - y))

    def _sample_local(self, rng):
        r, h = self.radius, self.height
        for _ in range(MAX_REJECTION_TRIES):
            v = np.array([rng.uniform(-r, r), rng.uniform(0.0, h), rng.uniform(-r, r)])
            if self._inside_local(v[None])[0]:
                return v
        return None

    def _distance_local(self, local):
        # Distance to the triangular meridian section in (rho, y)
        meridian = np.column_stack([np.hypot(local[:, 0], local[:, 2]), local[:, 1]])
        origin = np.array([0.0, 0.0])
        rim = np.array([self.radius, 0.0])
        apex = np.array([0.0, self.height])
        distance = np.minimum.reduce([
            _segment_distance_2d(meridian, origin, rim),
            _segment_distance_2d(meridian, rim, apex),
            _segment_distance_2d(meridian, origin, apex),
        ])
        if not self.is_degenerate:
            distance = np.where(self._inside_local(local), 0.0, distance)
        return distance

    def _local_bounds(self):
        r = self.radius
        return np.array([-r, 0.0, -r]), np.array([r, self.height, r])

    def to_dict(self) -> dict:
        return {"type": "cone", "radius": self.radius, "height": self.height, **self._frame_dict()}


@dataclass(eq=False)
class CylinderVolume(Volume):
    """
    Cylinder of `radius` spanning local y in [0, height].

    Sampling uses polar coordinates with the radius scaled by sqrt(u) so the
    areal density over each cross-section is uniform.
    """

    radius: float
    height: float
    center: Optional[np.ndarray] = None
    normal: Optional[np.ndarray] = None

    def __post_init__(self):
        if self.radius < 0:
            raise ValueError(f"radius ({self.radius}) must be non-negative")
        if self.height < 0:
            raise ValueError(f"height ({self.height}) must be non-negative")
        self._init_frame()

    @property
    def is_degenerate(self) -> bool:
        return self.radius <= 0 or self.height <= 0

    def _sample_local(self, rng):
        theta = rng.uniform(0.0, 2 * np.pi)
        r = self.radius * np.sqrt(rng.uniform(0.0, 1.0))
        y = rng.uniform(0.0, self.height)
        return np.array([r * np.cos(theta), y, r * np.sin(theta)])

    def _distance_local(self, local):
        rho = np.hypot(local[:, 0], local[:, 2])
        y = local[:, 1]
        radial = np.maximum(rho - self.radius, 0.0)
        axial = np.maximum.reduce([-y, y - self.height, np.zeros_like(y)])
        return np.hypot(radial, axial)

    def _local_bounds(self):
        r = self.radius
        return np.array([-r, 0.0, -r]), np.array([r, self.height, r])

    def to_dict(self) -> dict:
        return {"type": "cylinder", "radius": self.radius, "height": self.height, **self._frame_dict()}


@dataclass(eq=False)
class CuboidVolume(Volume):
    """Box of width (X), height (Y) and depth (Z) centered on the local origin."""

    width: float
    height: float
    depth: float
    center: Optional[np.ndarray] = None
    normal: Optional[np.ndarray] = None

    def __post_init__(self):
        for name in ("width", "height", "depth"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} ({getattr(self, name)}) must be non-negative")
        self._init_frame()

    @property
    def half_extents(self) -> np.ndarray:
        return np.array([self.width, self.height, self.depth]) / 2.0

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0 or self.depth <= 0

    def _sample_local(self, rng):
        half = self.half_extents
        return rng.uniform(-half, half)

    def _distance_local(self, local):
        outside = np.maximum(np.abs(local) - self.half_extents, 0.0)
        return np.linalg.norm(outside, axis=1)

    def _local_bounds(self):
        half = self.half_extents
        return -half, half

    def to_dict(self) -> dict:
        return {
            "type": "cuboid",
            "width": self.width,
            "height": self.height,
            "depth": self.depth,
            **self._frame_dict(),
        }


VOLUME_TYPES: Dict[str, Type[Volume]] = {
    "sphere": SphereVolume,
    "hemisphere": HemisphereVolume,
    "cone": ConeVolume,
    "cylinder": CylinderVolume,
    "cuboid": CuboidVolume,
}


def volume_from_dict(d: Dict[str, Any]) -> Volume:
    """
    Create a volume from its descriptor dictionary.

    Parameters
    ----------
    d : dict
        Descriptor with a "type" key naming one of VOLUME_TYPES and the
        shape's dimension fields; "center" and "normal" are optional.

    Raises
    ------
    ValueError
        If the type is unknown.
    """
    shape = d.get("type")
    if shape not in VOLUME_TYPES:
        raise ValueError(f"Unknown volume type '{shape}'. Valid types: {list(VOLUME_TYPES.keys())}")
    cls = VOLUME_TYPES[shape]
    kwargs = {k: v for k, v in d.items() if k != "type" and k in cls.__dataclass_fields__}
    return cls(**kwargs)
