"""Adapters converting coral structures to third-party representations."""

from .networkx_adapter import to_networkx_graph

__all__ = [
    "to_networkx_graph",
]
