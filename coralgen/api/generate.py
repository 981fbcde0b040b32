"""
Host-facing generation API.

This module provides the entry points a render host or script uses:
- reset(): build a fresh attractor field and seeded growth skeleton
- CoralSimulation: per-frame facade (update, build_mesh, build_lines)
- grow_coral(): batch growth with a progress bar and an OperationReport

A simulation is single-threaded. Hosts that call it from several threads
must serialise update/build/reset on one simulation behind a single lock.
"""

from typing import Optional, Tuple, Dict
import logging
import numpy as np
from tqdm import tqdm

from ..policies import CoralConfig, OperationReport
from ..core.forest import BranchForest
from ..core.volume import Volume
from ..ops.attractors import AttractorField
from ..ops.growth import GrowthSkeleton
from ..ops.mesh.synthesis import SkeletonMesh, SkeletonMesher
from ..ops.metrics import compute_forest_metrics

logger = logging.getLogger(__name__)


def reset(
    config: CoralConfig,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[AttractorField, GrowthSkeleton]:
    """
    Build a fresh attractor field and growth skeleton from a configuration.

    Parameters
    ----------
    config : CoralConfig
        Validated configuration.
    seed : int, optional
        Seed for a new np.random.Generator. Ignored when rng is given.
    rng : np.random.Generator, optional
        Explicit source of randomness shared by sampling and growth.

    Returns
    -------
    field : AttractorField
        Newly sampled attractors.
    skeleton : GrowthSkeleton
        Skeleton with its root branches seeded.

    Raises
    ------
    ValueError
        If the configuration fails validation.
    """
    errors = config.validate()
    if errors:
        raise ValueError("Invalid coral configuration: " + "; ".join(errors))

    if rng is None:
        rng = np.random.default_rng(seed)

    volume = config.sampling.build()
    obstacle = config.obstacle.build()
    environment = config.environment.build()

    field = AttractorField.generate(config.attractors.count, volume, obstacle, rng)
    skeleton = GrowthSkeleton(
        field,
        policy=config.growth,
        attractor_policy=config.attractors,
        environment=environment,
        obstacle=obstacle,
        rng=rng,
    )
    skeleton.seed_roots()

    logger.info(
        f"Reset coral: {field.remaining_count} attractors in a {config.sampling.shape}, "
        f"{len(skeleton.forest)} roots"
    )
    return field, skeleton


class CoralSimulation:
    """
    One coral simulation driven by a host's frame clock.

    Parameters
    ----------
    config : CoralConfig, optional
        Configuration; defaults to CoralConfig().
    seed : int, optional
        Seed reused by every reset, making each reset reproducible.
    """

    def __init__(self, config: Optional[CoralConfig] = None, seed: Optional[int] = None):
        self.config = config if config is not None else CoralConfig()
        self.seed = seed
        self.field: Optional[AttractorField] = None
        self.skeleton: Optional[GrowthSkeleton] = None
        self.mesher: Optional[SkeletonMesher] = None
        self.reset()

    def reset(self, config: Optional[CoralConfig] = None):
        """Discard the forest and field and rebuild them from the configuration."""
        if config is not None:
            self.config = config
        self.field, self.skeleton = reset(self.config, seed=self.seed)
        self.mesher = SkeletonMesher(self.config.mesh)

    def update(self, dt: float) -> bool:
        """Advance the simulation clock; True when a growth iteration ran."""
        return self.skeleton.step(dt)

    @property
    def forest(self) -> BranchForest:
        return self.skeleton.forest

    @property
    def attractors(self) -> np.ndarray:
        """Live attractor positions for a debug point cloud."""
        return self.field.points

    def build_mesh(self) -> SkeletonMesh:
        return self.mesher.build(self.skeleton.forest, self.field.points, self.skeleton.environment)

    def build_lines(self) -> np.ndarray:
        return self.mesher.build_lines(self.skeleton.forest)

    @property
    def sampling_volume(self) -> Volume:
        """Volume the attractors were drawn from; to_dict() gives its wireframe descriptor."""
        return self.field.volume

    @property
    def obstacle_volume(self) -> Optional[Volume]:
        return self.skeleton.obstacle


def grow_coral(
    config: Optional[CoralConfig] = None,
    iterations: int = 100,
    seed: Optional[int] = None,
    disable_progress: bool = False,
) -> Tuple[CoralSimulation, SkeletonMesh, OperationReport]:
    """
    Grow a coral for a fixed number of iterations and mesh it.

    Growth stops early once every attractor has been consumed.

    Parameters
    ----------
    config : CoralConfig, optional
        Configuration; defaults to CoralConfig().
    iterations : int
        Maximum number of growth iterations.
    seed : int, optional
        Random seed.
    disable_progress : bool
        Hide the tqdm progress bar.

    Returns
    -------
    simulation : CoralSimulation
        The grown simulation.
    mesh : SkeletonMesh
        Surface of the final forest.
    report : OperationReport
        Summary with forest metrics and mesh statistics.
    """
    if config is None:
        config = CoralConfig()

    simulation = CoralSimulation(config, seed=seed)
    initial_attractors = simulation.field.remaining_count
    warnings = []
    if len(simulation.forest) == 0:
        warnings.append("No root branches were seeded")

    modes: Dict[str, int] = {}
    iterations_run = 0

    pbar = tqdm(total=iterations, desc="Coral growth", unit="iter", disable=disable_progress)
    for _ in range(iterations):
        stats = simulation.skeleton.iterate()
        iterations_run += 1
        modes[stats.mode] = modes.get(stats.mode, 0) + 1
        pbar.update(1)
        pbar.set_postfix({
            "branches": len(simulation.forest),
            "attractors": simulation.field.remaining_count,
        })
        if stats.mode == "exhausted":
            break
    pbar.close()

    mesh = simulation.build_mesh()
    metrics = compute_forest_metrics(simulation.forest)

    logger.info(
        f"Grew {metrics.branch_count} branches in {iterations_run} iterations, "
        f"{simulation.field.remaining_count}/{initial_attractors} attractors remaining"
    )

    report = OperationReport(
        operation="grow_coral",
        success=True,
        requested_policy=config.to_dict(),
        effective_policy=simulation.config.to_dict(),
        warnings=warnings,
        metadata={
            "seed": seed,
            "iterations_requested": iterations,
            "iterations_run": iterations_run,
            "iteration_modes": modes,
            "initial_attractors": initial_attractors,
            "remaining_attractors": simulation.field.remaining_count,
            "forest": metrics.to_dict(),
            "mesh": mesh.to_dict(),
        },
    )
    return simulation, mesh, report
