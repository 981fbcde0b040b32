"""
Public API for coral generation.

Example:
    >>> from coralgen.api import CoralSimulation
    >>> sim = CoralSimulation(seed=7)
    >>> for _ in range(100):
    ...     sim.update(1 / 60)
    >>> mesh = sim.build_mesh()
"""

from .generate import reset, CoralSimulation, grow_coral

__all__ = [
    "reset",
    "CoralSimulation",
    "grow_coral",
]
