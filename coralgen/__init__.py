"""
Coral Generation - Space-Colonization Coral Growth

This package grows branching coral skeletons toward a cloud of attractor
points and turns them into triangulated tube meshes for rendering.

Main Entry Points:
    - CoralSimulation: per-frame facade for render hosts
    - grow_coral(): batch growth with a report
    - GrowthSkeleton: the growth state machine
    - SkeletonMesher: tube mesh synthesis

Example:
    >>> from coralgen import CoralConfig, grow_coral
    >>> config = CoralConfig()
    >>> config.attractors.count = 300
    >>> simulation, mesh, report = grow_coral(config, iterations=200, seed=42)
    >>> mesh.to_trimesh().export("coral.stl")
"""

from .policies import (
    AttractorPolicy,
    VolumePolicy,
    ObstaclePolicy,
    GrowthPolicy,
    EnvironmentPolicy,
    MeshPolicy,
    CoralConfig,
    OperationReport,
)
from .core import (
    Volume,
    SphereVolume,
    HemisphereVolume,
    ConeVolume,
    CylinderVolume,
    CuboidVolume,
    volume_from_dict,
    Branch,
    BranchForest,
    ROOT,
    Environment,
)
from .ops import (
    AttractorField,
    GrowthSkeleton,
    IterationStats,
    SkeletonMesh,
    SkeletonMesher,
    ForestMetrics,
    compute_forest_metrics,
)
from .api import reset, CoralSimulation, grow_coral

__version__ = "0.1.0"

__all__ = [
    "AttractorPolicy",
    "VolumePolicy",
    "ObstaclePolicy",
    "GrowthPolicy",
    "EnvironmentPolicy",
    "MeshPolicy",
    "CoralConfig",
    "OperationReport",
    "Volume",
    "SphereVolume",
    "HemisphereVolume",
    "ConeVolume",
    "CylinderVolume",
    "CuboidVolume",
    "volume_from_dict",
    "Branch",
    "BranchForest",
    "ROOT",
    "Environment",
    "AttractorField",
    "GrowthSkeleton",
    "IterationStats",
    "SkeletonMesh",
    "SkeletonMesher",
    "ForestMetrics",
    "compute_forest_metrics",
    "reset",
    "CoralSimulation",
    "grow_coral",
]
