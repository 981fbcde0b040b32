"""
Mesh-level operations for coral skeletons.

This module provides the conversion of branch forests into triangulated
tube surfaces and skeleton line lists.
"""

from .synthesis import (
    SkeletonMesh,
    SkeletonMesher,
)

__all__ = [
    "SkeletonMesh",
    "SkeletonMesher",
]
