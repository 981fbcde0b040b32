"""
Core data structures for coral generation.

This module contains the volumes, the branch forest and the environment.
"""

from .volume import (
    Volume,
    SphereVolume,
    HemisphereVolume,
    ConeVolume,
    CylinderVolume,
    CuboidVolume,
    VOLUME_TYPES,
    volume_from_dict,
)
from .forest import Branch, BranchForest, ROOT
from .environment import Environment

__all__ = [
    "Volume",
    "SphereVolume",
    "HemisphereVolume",
    "ConeVolume",
    "CylinderVolume",
    "CuboidVolume",
    "VOLUME_TYPES",
    "volume_from_dict",
    "Branch",
    "BranchForest",
    "ROOT",
    "Environment",
]
