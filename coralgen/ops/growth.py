"""
Incremental branch growth driven by an attractor field.

This module implements the growth state machine of the coral generator.
Each iteration:
1. Snapshots the current leaves
2. Culls attractors within the kill radius, feeding the consuming branch
3. Stops if no attractors remain
4. Associates attractors with their nearest branch tip
5. Extends leaves along their own direction when nothing was associated,
   otherwise grows every fed branch toward the mean of its attractors

Energy rule: a branch spawning a child keeps energy / (1 + growth_decay)
and the child starts with that reduced value. A branch whose energy has
dropped to min_energy is exhausted for good; food it collects afterwards is
still credited but never lets it branch again.

All randomness comes from the injected np.random.Generator, so growth is
reproducible when the seed is fixed.
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Any
import logging
import numpy as np

from ..core.forest import Branch, BranchForest
from ..core.environment import Environment
from ..core.volume import Volume
from ..policies import GrowthPolicy, AttractorPolicy
from ..utils.geometry import (
    normalize,
    angle_between,
    random_in_sphere,
    random_unit_vector,
)
from .attractors import AttractorField

logger = logging.getLogger(__name__)


@dataclass
class IterationStats:
    """Summary of one growth iteration."""
    iteration: int
    mode: str  # "directed", "leaf_extension" or "exhausted"
    consumed: int = 0
    associated: int = 0
    branches_created: int = 0
    angle_rejections: int = 0
    obstacle_rejections: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class GrowthSkeleton:
    """
    Forest of branches grown by space colonization.

    Parameters
    ----------
    field : AttractorField
        Live attractors steering and feeding growth.
    policy : GrowthPolicy
        Growth parameters.
    attractor_policy : AttractorPolicy
        Influence radius, kill radius and food award.
    environment : Environment, optional
        Drift source. Defaults to a still environment.
    obstacle : Volume, optional
        Volume candidate endpoints must avoid.
    rng : np.random.Generator, optional
        Source of randomness. Defaults to an unseeded generator.
    forest : BranchForest, optional
        Existing forest to continue; a new empty one otherwise.
    """

    def __init__(
        self,
        field: AttractorField,
        policy: Optional[GrowthPolicy] = None,
        attractor_policy: Optional[AttractorPolicy] = None,
        environment: Optional[Environment] = None,
        obstacle: Optional[Volume] = None,
        rng: Optional[np.random.Generator] = None,
        forest: Optional[BranchForest] = None,
    ):
        self.field = field
        self.policy = policy if policy is not None else GrowthPolicy()
        self.attractor_policy = attractor_policy if attractor_policy is not None else AttractorPolicy()
        self.environment = environment if environment is not None else Environment(current_speed=0.0)
        self.obstacle = obstacle
        self.rng = rng if rng is not None else np.random.default_rng()
        self.forest = forest if forest is not None else BranchForest()

        self.time_since_last_iteration = 0.0
        self.iteration = 0
        self.last_stats: Optional[IterationStats] = None
        self._exhausted: set = set()

    def seed_roots(self) -> int:
        """
        Create the initial root branches.

        With explicit `initial_directions` one root grows along each of them.
        Otherwise roots grow from `start_position` toward the nearest
        attractors, up to `max_initial_branches`, skipping attractors farther
        than twice the influence radius.

        Returns
        -------
        int
            Number of roots created.
        """
        policy = self.policy
        start = np.array(policy.start_position, dtype=float)
        created = 0

        if policy.initial_directions is not None:
            for direction in policy.initial_directions:
                if not normalize(direction).any():
                    continue
                self._add_root(start, direction)
                created += 1
        else:
            points = self.field.points
            if len(points):
                distances = np.linalg.norm(points - start, axis=1)
                order = np.argsort(distances, kind="stable")
                reach = self.attractor_policy.influence_radius * 2
                for idx in order[:policy.max_initial_branches]:
                    if distances[idx] >= reach or distances[idx] < 1e-10:
                        continue
                    self._add_root(start, points[idx] - start)
                    created += 1

        if created == 0:
            logger.warning("No root branches seeded; the forest is empty")
        else:
            logger.info(f"Seeded {created} root branches")
        return created

    def _add_root(self, start: np.ndarray, direction: np.ndarray) -> Branch:
        branch = self.forest.add_root(
            start,
            direction,
            length=self.policy.branch_length,
            size=self.policy.extremities_size,
            energy=self.policy.initial_energy,
        )
        self._check_exhausted(branch)
        return branch

    def step(self, dt: float) -> bool:
        """
        Advance simulated time by dt.

        Runs one growth iteration once the accumulated time reaches
        time_between_iterations, then restarts the accumulator.

        Returns
        -------
        bool
            True if an iteration ran.
        """
        self.time_since_last_iteration += dt
        if self.time_since_last_iteration >= self.policy.time_between_iterations:
            self.time_since_last_iteration = 0.0
            self.iterate()
            return True
        return False

    def iterate(self) -> IterationStats:
        """Run one growth iteration immediately."""
        self.iteration += 1
        stats = IterationStats(iteration=self.iteration, mode="exhausted")

        leaves = self.forest.leaves()
        self.forest.clear_assignments()

        tips = self.forest.tip_positions()
        consumed = self.field.cull_near(tips, self.attractor_policy.kill_radius)
        for _, tip_index in consumed:
            self.forest[tip_index].energy += self.attractor_policy.food
        stats.consumed = len(consumed)

        if self.field.is_empty:
            stats.mode = "exhausted"
        else:
            assignments = self.field.associate(tips, self.attractor_policy.influence_radius)
            stats.associated = sum(len(a) for a in assignments.values())

            if not assignments:
                stats.mode = "leaf_extension"
                self._extend_leaves(leaves, stats)
            else:
                stats.mode = "directed"
                for tip_index, attractors in assignments.items():
                    self.forest[tip_index].assigned = attractors
                self._directed_growth(len(self.forest), stats)

        self.last_stats = stats
        logger.debug(
            f"Iteration {stats.iteration} ({stats.mode}): +{stats.branches_created} branches, "
            f"{stats.consumed} consumed, {self.field.remaining_count} attractors remaining"
        )
        return stats

    def _extend_leaves(self, leaves: List[Branch], stats: IterationStats):
        for leaf in leaves:
            if leaf.index in self._exhausted or leaf.energy / 2 <= self.policy.min_energy:
                continue
            direction = self._candidate_direction(leaf, leaf.direction, smooth=False, stats=stats)
            if direction is not None:
                self._spawn(leaf, direction)
                stats.branches_created += 1

    def _directed_growth(self, branch_count: int, stats: IterationStats):
        policy = self.policy
        # Children created this iteration are not grown until the next one
        for index in range(branch_count):
            branch = self.forest[index]
            if not branch.assigned or not self._can_spawn(branch):
                continue

            attractors = sorted(
                branch.assigned,
                key=lambda p: float(np.linalg.norm(p - branch.end)),
            )
            branch.assigned = attractors

            target = normalize(np.sum([normalize(p - branch.end) for p in attractors], axis=0))
            if not target.any():
                target = normalize(attractors[0] - branch.end)
            if angle_between(branch.direction, target) > policy.max_branching_angle:
                stats.angle_rejections += 1
                continue

            direction = self._candidate_direction(branch, target, smooth=True, stats=stats)
            if direction is None:
                continue
            self._spawn(branch, direction)
            stats.branches_created += 1

            probability = policy.branching_probability
            for attractor in attractors[1:]:
                if self.rng.random() >= probability or not self._can_spawn(branch):
                    continue
                target = normalize(attractor - branch.end)
                if angle_between(branch.direction, target) > policy.max_branching_angle:
                    stats.angle_rejections += 1
                    continue
                direction = self._candidate_direction(branch, target, smooth=True, stats=stats)
                if direction is None:
                    continue
                self._spawn(branch, direction)
                stats.branches_created += 1
                probability *= policy.branching_probability

    def _candidate_direction(
        self,
        branch: Branch,
        target: np.ndarray,
        smooth: bool,
        stats: IterationStats,
    ) -> Optional[np.ndarray]:
        """
        Perturb, smooth and obstacle-check a growth direction.

        Returns the unit direction of the new child, or None when every
        retry ended inside the obstacle.
        """
        policy = self.policy
        drift = self.environment.current_drift()

        direction = normalize(
            normalize(target) + random_in_sphere(self.rng, policy.random_growth) + drift
        )
        if smooth:
            blended = policy.smoothing_weight * branch.direction + (1 - policy.smoothing_weight) * direction
            direction = normalize(blended)
        if not direction.any():
            direction = branch.direction.copy()

        if self._blocked(branch, direction):
            for _ in range(policy.max_obstacle_retries):
                retry = normalize(random_unit_vector(self.rng) + drift)
                if retry.any() and not self._blocked(branch, retry):
                    return retry
            stats.obstacle_rejections += 1
            return None

        return direction

    def _blocked(self, branch: Branch, direction: np.ndarray) -> bool:
        if self.obstacle is None:
            return False
        end = branch.end + direction * self.policy.branch_length
        return self.obstacle.contains(end, branch.size)

    def _can_spawn(self, branch: Branch) -> bool:
        self._check_exhausted(branch)
        return branch.index not in self._exhausted

    def _check_exhausted(self, branch: Branch):
        if branch.energy <= self.policy.min_energy:
            self._exhausted.add(branch.index)

    def _spawn(self, branch: Branch, direction: np.ndarray) -> Branch:
        branch.energy = branch.energy / (1.0 + self.policy.growth_decay)
        self._check_exhausted(branch)
        child = self.forest.add_child(
            branch.index,
            direction,
            length=self.policy.branch_length,
            energy=branch.energy,
        )
        self._check_exhausted(child)
        return child

    def is_exhausted(self, index: int) -> bool:
        """True once the branch can never spawn again."""
        return index in self._exhausted

    def leaves(self) -> List[Branch]:
        return self.forest.leaves()

    def tip_positions(self) -> np.ndarray:
        return self.forest.tip_positions()

    def segments(self) -> np.ndarray:
        """Branch start/end pairs for debug line rendering, shape (N, 2, 3)."""
        return self.forest.segments()
