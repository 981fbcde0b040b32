"""
Operations for growing and meshing coral skeletons.

- AttractorField: attractor sampling, culling and association
- GrowthSkeleton: the per-iteration growth state machine
- SkeletonMesher: tube surface synthesis
- compute_forest_metrics: structural statistics
"""

from .attractors import AttractorField
from .growth import GrowthSkeleton, IterationStats
from .mesh import SkeletonMesh, SkeletonMesher
from .metrics import ForestMetrics, compute_forest_metrics

__all__ = [
    "AttractorField",
    "GrowthSkeleton",
    "IterationStats",
    "SkeletonMesh",
    "SkeletonMesher",
    "ForestMetrics",
    "compute_forest_metrics",
]
