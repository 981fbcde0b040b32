"""
Attractor field management.

The field owns the live attractor points. Points are drawn from a sampling
volume (minus an optional obstacle), consumed by branch tips that come
within the kill radius, and associated with their nearest tip within the
influence radius to steer growth.

Proximity queries use scipy's cKDTree over the branch tips. Tips are
addressed by their position in the array passed in, which callers keep in
branch index order; ties always resolve to the lowest tip index.
"""

from typing import Dict, List, Optional, Tuple
import logging
import numpy as np
from scipy.spatial import cKDTree

from ..core.volume import Volume

logger = logging.getLogger(__name__)


class AttractorField:
    """
    Live set of attractor points.

    remaining_count only ever decreases through cull_near() until the field
    is regenerated.
    """

    def __init__(
        self,
        points: Optional[np.ndarray] = None,
        volume: Optional[Volume] = None,
        obstacle: Optional[Volume] = None,
    ):
        self._points = np.zeros((0, 3))
        if points is not None:
            self._points = np.array(points, dtype=float).reshape(-1, 3)
        self.volume = volume
        self.obstacle = obstacle

    @classmethod
    def from_points(
        cls,
        points: np.ndarray,
        volume: Optional[Volume] = None,
        obstacle: Optional[Volume] = None,
    ) -> "AttractorField":
        """Create a field from explicitly placed attractors (no obstacle filtering)."""
        return cls(points=points, volume=volume, obstacle=obstacle)

    @classmethod
    def generate(
        cls,
        count: int,
        volume: Volume,
        obstacle: Optional[Volume],
        rng: np.random.Generator,
    ) -> "AttractorField":
        field = cls(volume=volume, obstacle=obstacle)
        field.regenerate(count, volume, obstacle, rng)
        return field

    @property
    def points(self) -> np.ndarray:
        """Copy of the live attractor positions, shape (N, 3)."""
        return self._points.copy()

    @property
    def remaining_count(self) -> int:
        return len(self._points)

    @property
    def is_empty(self) -> bool:
        return len(self._points) == 0

    def __len__(self) -> int:
        return len(self._points)

    def regenerate(
        self,
        count: int,
        volume: Volume,
        obstacle: Optional[Volume],
        rng: np.random.Generator,
    ):
        """
        Replace the field with `count` samples of `volume`.

        Samples inside the obstacle are discarded, so the resulting field may
        hold fewer than `count` attractors.

        Parameters
        ----------
        count : int
            Number of samples to draw.
        volume : Volume
            Sampling volume.
        obstacle : Volume, optional
            Obstacle volume; None disables filtering.
        rng : np.random.Generator
            Source of randomness.
        """
        assert count >= 0, f"count ({count}) must be non-negative"
        self.volume = volume
        self.obstacle = obstacle

        samples = volume.sample_points(count, rng)
        if obstacle is not None and len(samples) > 0:
            blocked = obstacle.contains_points(samples, 0.0)
            samples = samples[~blocked]
            if blocked.any():
                logger.info(f"Discarded {int(blocked.sum())} attractors inside the obstacle")
            if count > 0 and len(samples) == 0:
                logger.warning("Every attractor sample fell inside the obstacle")

        self._points = samples.reshape(-1, 3)
        logger.debug(f"Regenerated attractor field: {len(self._points)}/{count} attractors")

    def cull_near(
        self,
        tip_positions: np.ndarray,
        kill_radius: float,
    ) -> List[Tuple[int, int]]:
        """
        Remove attractors reached by a branch tip.

        For each live attractor the first tip (in scan order) closer than
        kill_radius consumes it; each attractor has at most one consumer.

        Parameters
        ----------
        tip_positions : np.ndarray
            Branch tip positions (M, 3) in branch scan order.
        kill_radius : float
            Consumption distance.

        Returns
        -------
        List[Tuple[int, int]]
            (attractor_index, tip_index) pairs; attractor indices refer to
            the field as it was before the removal.
        """
        tip_positions = np.asarray(tip_positions, dtype=float).reshape(-1, 3)
        if self.is_empty or len(tip_positions) == 0 or kill_radius <= 0:
            return []

        tip_tree = cKDTree(tip_positions)
        nearby = tip_tree.query_ball_point(self._points, r=kill_radius)

        consumed = []
        for i, candidates in enumerate(nearby):
            if not candidates:
                continue
            for tip_index in sorted(candidates):
                if np.linalg.norm(tip_positions[tip_index] - self._points[i]) < kill_radius:
                    consumed.append((i, tip_index))
                    break

        if consumed:
            keep = np.ones(len(self._points), dtype=bool)
            keep[[i for i, _ in consumed]] = False
            self._points = self._points[keep]

        return consumed

    def associate(
        self,
        tip_positions: np.ndarray,
        influence_radius: float,
    ) -> Dict[int, List[np.ndarray]]:
        """
        Assign each live attractor to its nearest tip within influence_radius.

        Attractors with no tip in range stay unassigned. The field is not
        modified.

        Parameters
        ----------
        tip_positions : np.ndarray
            Branch tip positions (M, 3) in branch scan order.
        influence_radius : float
            Maximum association distance.

        Returns
        -------
        Dict[int, List[np.ndarray]]
            Tip index -> attractor positions, in field order.
        """
        tip_positions = np.asarray(tip_positions, dtype=float).reshape(-1, 3)
        assignments: Dict[int, List[np.ndarray]] = {}
        if self.is_empty or len(tip_positions) == 0 or influence_radius <= 0:
            return assignments

        tip_tree = cKDTree(tip_positions)
        nearby = tip_tree.query_ball_point(self._points, r=influence_radius)

        for i, candidates in enumerate(nearby):
            if not candidates:
                continue
            candidates = sorted(candidates)
            distances = np.linalg.norm(tip_positions[candidates] - self._points[i], axis=1)
            best = int(np.argmin(distances))
            if distances[best] < influence_radius:
                assignments.setdefault(candidates[best], []).append(self._points[i].copy())

        return assignments

    def to_dict(self) -> dict:
        return {
            "remaining_count": self.remaining_count,
            "points": self._points.tolist(),
            "volume": self.volume.to_dict() if self.volume is not None else None,
            "obstacle": self.obstacle.to_dict() if self.obstacle is not None else None,
        }
