"""Utility functions for the coral generator."""

from .geometry import (
    UP,
    normalize,
    angle_between,
    rotation_matrix_from_axis_angle,
    rotation_between,
    random_in_sphere,
    random_unit_vector,
    map_linear,
)

__all__ = [
    "UP",
    "normalize",
    "angle_between",
    "rotation_matrix_from_axis_angle",
    "rotation_between",
    "random_in_sphere",
    "random_unit_vector",
    "map_linear",
]
