"""
NetworkX adapter for branch forests.

Converts a BranchForest into a directed graph with one node per branch and
an edge from every parent to each of its children.
"""

import networkx as nx

from ..core.forest import BranchForest, ROOT


def to_networkx_graph(forest: BranchForest) -> nx.DiGraph:
    """
    Convert a forest to a networkx.DiGraph.

    Node keys are branch indices; node attributes carry the branch geometry
    and energy. Edges point from parent to child.
    """
    G = nx.DiGraph()
    for branch in forest:
        G.add_node(
            branch.index,
            start=branch.start.tolist(),
            end=branch.end.tolist(),
            size=branch.size,
            energy=branch.energy,
            depth=branch.depth,
        )
    for branch in forest:
        if branch.parent != ROOT:
            G.add_edge(branch.parent, branch.index, length=branch.length)
    return G
