"""
Forest metrics computation.

This module provides statistics about a grown coral skeleton, used by the
batch API report and by tests checking structural invariants.
"""

from dataclasses import dataclass, field
from typing import Dict, Any
import logging
import numpy as np
import networkx as nx

from ..core.forest import BranchForest
from ..adapters.networkx_adapter import to_networkx_graph

logger = logging.getLogger(__name__)


@dataclass
class ForestMetrics:
    """Computed metrics for a branch forest."""
    branch_count: int = 0
    root_count: int = 0
    leaf_count: int = 0
    junction_count: int = 0
    max_depth: int = 0
    total_length: float = 0.0
    mean_energy: float = 0.0
    is_forest: bool = True
    bounding_box: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branch_count": self.branch_count,
            "root_count": self.root_count,
            "leaf_count": self.leaf_count,
            "junction_count": self.junction_count,
            "max_depth": self.max_depth,
            "total_length": self.total_length,
            "mean_energy": self.mean_energy,
            "is_forest": self.is_forest,
            "bounding_box": self.bounding_box,
        }


def compute_forest_metrics(forest: BranchForest) -> ForestMetrics:
    """
    Compute metrics for a branch forest.

    Parameters
    ----------
    forest : BranchForest
        Forest to analyze

    Returns
    -------
    ForestMetrics
        Computed metrics
    """
    metrics = ForestMetrics()
    if len(forest) == 0:
        return metrics

    G = to_networkx_graph(forest)

    metrics.branch_count = G.number_of_nodes()
    metrics.root_count = sum(1 for n in G.nodes if G.in_degree(n) == 0)
    metrics.leaf_count = sum(1 for n in G.nodes if G.out_degree(n) == 0)
    metrics.junction_count = sum(1 for n in G.nodes if G.out_degree(n) > 1)
    metrics.is_forest = nx.is_branching(G)
    metrics.max_depth = max(b.depth for b in forest)
    metrics.total_length = float(sum(b.length for b in forest))
    metrics.mean_energy = float(np.mean([b.energy for b in forest]))

    points = forest.segments().reshape(-1, 3)
    metrics.bounding_box = {
        "min_x": float(points[:, 0].min()),
        "max_x": float(points[:, 0].max()),
        "min_y": float(points[:, 1].min()),
        "max_y": float(points[:, 1].max()),
        "min_z": float(points[:, 2].min()),
        "max_z": float(points[:, 2].max()),
    }

    if not metrics.is_forest:
        logger.warning("Branch graph is not a forest")

    return metrics
