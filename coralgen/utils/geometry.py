"""
Canonical geometry utilities for coral growth operations.

This module provides the vector helpers shared by the volumes, the growth
skeleton and the mesher: normalisation, angles, minimal rotations and
seeded random directions.

AXIS CONVENTIONS
----------------
+Y is "up". Heights and depths are measured along Y.
"""

import numpy as np
from typing import Optional


UP = np.array([0.0, 1.0, 0.0])

EPSILON = 1e-10


def normalize(v: np.ndarray) -> np.ndarray:
    """
    Return the unit vector of v.

    Zero-length vectors are returned as zero vectors rather than NaN.
    """
    v = np.asarray(v, dtype=float)
    norm = np.linalg.norm(v)
    if norm < EPSILON:
        return np.zeros(3)
    return v / norm


def angle_between(a: np.ndarray, b: np.ndarray) -> float:
    """
    Angle in radians between two vectors, in [0, pi].

    Returns pi / 2 when either vector has zero length, matching the
    behaviour of an undefined direction being orthogonal to everything.
    """
    na = np.linalg.norm(a)
    nb = np.linalg.norm(b)
    if na < EPSILON or nb < EPSILON:
        return np.pi / 2
    cos_angle = np.clip(np.dot(a, b) / (na * nb), -1.0, 1.0)
    return float(np.arccos(cos_angle))


def rotation_matrix_from_axis_angle(axis: np.ndarray, angle: float) -> np.ndarray:
    """
    Create a rotation matrix from axis-angle representation.

    Parameters
    ----------
    axis : np.ndarray
        Rotation axis (normalised internally).
    angle : float
        Rotation angle in radians.

    Returns
    -------
    np.ndarray
        3x3 rotation matrix.
    """
    axis = axis / np.linalg.norm(axis)
    c = np.cos(angle)
    s = np.sin(angle)
    t = 1 - c
    x, y, z = axis

    return np.array([
        [t*x*x + c,   t*x*y - s*z, t*x*z + s*y],
        [t*x*y + s*z, t*y*y + c,   t*y*z - s*x],
        [t*x*z - s*y, t*y*z + s*x, t*z*z + c],
    ])


def rotation_between(source: np.ndarray, target: np.ndarray) -> np.ndarray:
    """
    Minimal rotation matrix mapping direction `source` onto `target`.

    Parameters
    ----------
    source, target : np.ndarray
        Direction vectors (shape (3,)); need not be normalised.

    Returns
    -------
    np.ndarray
        3x3 rotation matrix R with R @ source_hat == target_hat.
        Identity when either vector is degenerate.
    """
    a = normalize(source)
    b = normalize(target)
    if not a.any() or not b.any():
        return np.eye(3)

    axis = np.cross(a, b)
    sin_angle = np.linalg.norm(axis)
    cos_angle = np.clip(np.dot(a, b), -1.0, 1.0)

    if sin_angle < 1e-9:
        if cos_angle > 0:
            return np.eye(3)
        # Antiparallel: half turn about any axis perpendicular to source
        perpendicular = np.cross(a, [1.0, 0.0, 0.0])
        if np.linalg.norm(perpendicular) < 1e-6:
            perpendicular = np.cross(a, [0.0, 0.0, 1.0])
        return rotation_matrix_from_axis_angle(perpendicular, np.pi)

    return rotation_matrix_from_axis_angle(axis, np.arctan2(sin_angle, cos_angle))


def random_in_sphere(rng: np.random.Generator, radius: float, max_tries: int = 100) -> np.ndarray:
    """
    Uniform random vector inside the ball of the given radius.

    Rejection sampled from the enclosing cube; returns the origin when
    radius is zero or every try is rejected.
    """
    if radius <= 0:
        return np.zeros(3)
    for _ in range(max_tries):
        v = rng.uniform(-radius, radius, 3)
        if np.dot(v, v) <= radius * radius:
            return v
    return np.zeros(3)


def random_unit_vector(rng: np.random.Generator) -> np.ndarray:
    """Uniform random direction on the unit sphere."""
    z = rng.uniform(-1.0, 1.0)
    theta = rng.uniform(0.0, 2 * np.pi)
    r = np.sqrt(max(0.0, 1.0 - z * z))
    return np.array([r * np.cos(theta), r * np.sin(theta), z])


def map_linear(
    value: float,
    in_min: float,
    in_max: float,
    out_min: float,
    out_max: float,
) -> Optional[float]:
    """
    Linearly remap value from [in_min, in_max] to [out_min, out_max].

    Returns None for a degenerate input range. No clamping is applied.
    """
    span = in_max - in_min
    if abs(span) < EPSILON:
        return None
    return out_min + (value - in_min) * (out_max - out_min) / span
