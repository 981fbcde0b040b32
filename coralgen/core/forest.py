"""
Branch forest data structures.

Branches live in an index-addressed arena: every record stores its parent
index (ROOT for roots) and the indices of its children. Growth only ever
appends records, so indices are stable for the lifetime of a forest and a
reset is a bulk clear.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Iterator
import numpy as np

from ..utils.geometry import normalize


ROOT = -1


@dataclass(eq=False)
class Branch:
    """
    Immutable line segment of the growth skeleton.

    `start`, `end` and `direction` never change after creation. `energy`
    gates further branching and `assigned` holds the attractors currently
    nearest to this branch's tip; it is rebuilt every growth iteration.
    """

    index: int
    start: np.ndarray
    end: np.ndarray
    direction: np.ndarray
    parent: int = ROOT
    size: float = 0.02
    energy: float = 1.0
    depth: int = 0
    children: List[int] = field(default_factory=list)
    assigned: List[np.ndarray] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.parent == ROOT

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def length(self) -> float:
        return float(np.linalg.norm(self.end - self.start))

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "index": self.index,
            "start": self.start.tolist(),
            "end": self.end.tolist(),
            "direction": self.direction.tolist(),
            "parent": self.parent,
            "children": list(self.children),
            "size": self.size,
            "energy": self.energy,
            "depth": self.depth,
        }


class BranchForest:
    """
    Arena of Branch records forming a forest of one or more roots.

    The forest is the only mutator of the branch graph: roots are added with
    add_root(), children with add_child(). Both append, so the graph stays
    acyclic and every child has a higher index than its parent.
    """

    def __init__(self):
        self.branches: List[Branch] = []

    def __len__(self) -> int:
        return len(self.branches)

    def __iter__(self) -> Iterator[Branch]:
        return iter(self.branches)

    def __getitem__(self, index: int) -> Branch:
        return self.branches[index]

    def clear(self):
        self.branches.clear()

    def add_root(
        self,
        start: np.ndarray,
        direction: np.ndarray,
        length: float,
        size: float,
        energy: float = 1.0,
    ) -> Branch:
        """
        Append a root branch growing from `start` along `direction`.

        Parameters
        ----------
        start : np.ndarray
            Root start point.
        direction : np.ndarray
            Growth direction (normalised internally).
        length : float
            Segment length.
        size : float
            Base radius contribution.
        energy : float
            Initial branching budget.
        """
        assert length >= 0, f"length ({length}) must be non-negative"
        assert energy >= 0, f"energy ({energy}) must be non-negative"
        start = np.asarray(start, dtype=float).copy()
        unit = normalize(direction)
        branch = Branch(
            index=len(self.branches),
            start=start,
            end=start + unit * length,
            direction=unit,
            parent=ROOT,
            size=size,
            energy=energy,
            depth=0,
        )
        self.branches.append(branch)
        return branch

    def add_child(
        self,
        parent_index: int,
        direction: np.ndarray,
        length: float,
        energy: float,
        size: Optional[float] = None,
    ) -> Branch:
        """
        Append a child continuing from the end of `parent_index`.

        The child starts at the parent's end and inherits the parent's size
        unless one is given.
        """
        assert energy >= 0, f"energy ({energy}) must be non-negative"
        parent = self.branches[parent_index]
        unit = normalize(direction)
        start = parent.end.copy()
        branch = Branch(
            index=len(self.branches),
            start=start,
            end=start + unit * length,
            direction=unit,
            parent=parent_index,
            size=parent.size if size is None else size,
            energy=energy,
            depth=parent.depth + 1,
        )
        self.branches.append(branch)
        parent.children.append(branch.index)
        return branch

    def parent_of(self, index: int) -> Optional[Branch]:
        parent = self.branches[index].parent
        return None if parent == ROOT else self.branches[parent]

    def roots(self) -> List[Branch]:
        return [b for b in self.branches if b.is_root]

    def leaves(self) -> List[Branch]:
        return [b for b in self.branches if b.is_leaf]

    def path_to_root(self, index: int) -> List[int]:
        """Indices from `index` up to and including its root."""
        path = [index]
        while self.branches[path[-1]].parent != ROOT:
            path.append(self.branches[path[-1]].parent)
        return path

    def tip_positions(self) -> np.ndarray:
        """End points of every branch in index order, shape (N, 3)."""
        if not self.branches:
            return np.zeros((0, 3))
        return np.array([b.end for b in self.branches])

    def segments(self) -> np.ndarray:
        """Start/end pairs of every branch, shape (N, 2, 3)."""
        if not self.branches:
            return np.zeros((0, 2, 3))
        return np.array([[b.start, b.end] for b in self.branches])

    def clear_assignments(self):
        for branch in self.branches:
            branch.assigned = []

    def to_dict(self) -> dict:
        return {"branches": [b.to_dict() for b in self.branches]}
