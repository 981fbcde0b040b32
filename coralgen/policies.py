"""
Policy dataclasses for parameterizing coral generation.

Every knob the host can change lives in one of these policies. Policies are
JSON-serializable and validated at the configuration boundary; the growth
core assumes validated values.

Each policy includes:
- Default values defined here
- JSON schema docstring
- validate() returning a list of error messages
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, List, Literal, Tuple
import json
import math

from .core.volume import Volume, VOLUME_TYPES, volume_from_dict
from .core.environment import Environment


ShapeType = Literal["sphere", "hemisphere", "cone", "cylinder", "cuboid"]

SHAPE_TYPES = tuple(VOLUME_TYPES)


def validate_policy(policy: Any, required_fields: Optional[List[str]] = None) -> List[str]:
    """
    Validate a policy object.

    Parameters
    ----------
    policy : Any
        Policy dataclass instance to validate
    required_fields : List[str], optional
        List of field names that must be non-None

    Returns
    -------
    List[str]
        List of validation error messages (empty if valid)
    """
    errors = []

    if required_fields:
        for field_name in required_fields:
            if not hasattr(policy, field_name):
                errors.append(f"Missing required field: {field_name}")
            elif getattr(policy, field_name) is None:
                errors.append(f"Required field is None: {field_name}")

    if hasattr(policy, "validate"):
        errors.extend(policy.validate())

    return errors


def _non_negative(policy: Any, names: List[str]) -> List[str]:
    errors = []
    for name in names:
        value = getattr(policy, name)
        if value is None or value < 0:
            errors.append(f"{type(policy).__name__}.{name} must be >= 0, got {value}")
    return errors


def _vector(policy: Any, name: str) -> List[str]:
    value = getattr(policy, name)
    if value is None or len(value) != 3:
        return [f"{type(policy).__name__}.{name} must be a 3-vector, got {value}"]
    return []


def _build_shape(
    shape: str,
    radius: float,
    height: float,
    width: float,
    depth: float,
    center: Tuple[float, float, float],
    normal: Tuple[float, float, float],
) -> Volume:
    return volume_from_dict({
        "type": shape,
        "radius": radius,
        "height": height,
        "width": width,
        "depth": depth,
        "center": center,
        "normal": normal,
    })


@dataclass
class AttractorPolicy:
    """
    Policy for the attractor field.

    JSON Schema:
    {
        "count": int,
        "influence_radius": float,
        "kill_radius": float,
        "food": float
    }
    """
    count: int = 100
    influence_radius: float = 1.0
    kill_radius: float = 0.1
    food: float = 0.5

    def validate(self) -> List[str]:
        return _non_negative(self, ["count", "influence_radius", "kill_radius", "food"])

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "AttractorPolicy":
        return AttractorPolicy(**{k: v for k, v in d.items() if k in AttractorPolicy.__dataclass_fields__})


@dataclass
class VolumePolicy:
    """
    Policy for the attractor sampling volume.

    When `center` is None the shape rests on the ground plane the way the
    interactive generator places it: spheres are lifted by their radius,
    cuboids by half their height, and cones pointing down by their height.

    JSON Schema:
    {
        "shape": "sphere" | "hemisphere" | "cone" | "cylinder" | "cuboid",
        "radius": float,
        "height": float,
        "width": float,
        "depth": float,
        "normal": [float, float, float],
        "center": [float, float, float] | null
    }
    """
    shape: ShapeType = "sphere"
    radius: float = 1.0
    height: float = 1.0
    width: float = 1.0
    depth: float = 1.0
    normal: Tuple[float, float, float] = (0.0, 1.0, 0.0)
    center: Optional[Tuple[float, float, float]] = None

    def validate(self) -> List[str]:
        errors = _non_negative(self, ["radius", "height", "width", "depth"])
        if self.shape not in SHAPE_TYPES:
            errors.append(f"VolumePolicy.shape must be one of {list(SHAPE_TYPES)}, got {self.shape}")
        errors.extend(_vector(self, "normal"))
        if self.center is not None:
            errors.extend(_vector(self, "center"))
        return errors

    def resting_center(self) -> Tuple[float, float, float]:
        if self.center is not None:
            return tuple(self.center)
        if self.shape == "sphere":
            return (0.0, self.radius, 0.0)
        if self.shape == "cuboid":
            return (0.0, self.height / 2, 0.0)
        if self.shape == "cone" and self.normal[1] < 0:
            return (0.0, self.height, 0.0)
        return (0.0, 0.0, 0.0)

    def build(self) -> Volume:
        """Create the sampling volume described by this policy."""
        return _build_shape(
            self.shape, self.radius, self.height, self.width, self.depth,
            center=self.resting_center(), normal=self.normal,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "VolumePolicy":
        return VolumePolicy(**{k: v for k, v in d.items() if k in VolumePolicy.__dataclass_fields__})


@dataclass
class ObstaclePolicy:
    """
    Policy for the obstacle volume growth must avoid.

    JSON Schema:
    {
        "enabled": bool,
        "shape": "sphere" | "hemisphere" | "cone" | "cylinder" | "cuboid",
        "radius": float,
        "height": float,
        "width": float,
        "depth": float,
        "position": [float, float, float],
        "normal": [float, float, float]
    }
    """
    enabled: bool = False
    shape: ShapeType = "sphere"
    radius: float = 1.0
    height: float = 1.0
    width: float = 1.0
    depth: float = 1.0
    position: Tuple[float, float, float] = (0.0, 3.0, 0.0)
    normal: Tuple[float, float, float] = (0.0, 1.0, 0.0)

    def validate(self) -> List[str]:
        errors = _non_negative(self, ["radius", "height", "width", "depth"])
        if self.shape not in SHAPE_TYPES:
            errors.append(f"ObstaclePolicy.shape must be one of {list(SHAPE_TYPES)}, got {self.shape}")
        errors.extend(_vector(self, "position"))
        errors.extend(_vector(self, "normal"))
        return errors

    def build(self) -> Optional[Volume]:
        """Create the obstacle volume, or None when the obstacle is disabled."""
        if not self.enabled:
            return None
        return _build_shape(
            self.shape, self.radius, self.height, self.width, self.depth,
            center=self.position, normal=self.normal,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "ObstaclePolicy":
        return ObstaclePolicy(**{k: v for k, v in d.items() if k in ObstaclePolicy.__dataclass_fields__})


@dataclass
class GrowthPolicy:
    """
    Policy for the branch growth state machine.

    Energy rule: spawning a child divides the parent's energy by
    (1 + growth_decay) and the child starts with the reduced value.

    JSON Schema:
    {
        "start_position": [float, float, float],
        "max_initial_branches": int,
        "initial_directions": [[float, float, float], ...] | null,
        "initial_energy": float,
        "extremities_size": float,
        "branch_length": float,
        "time_between_iterations": float (seconds),
        "random_growth": float,
        "branching_probability": float (0-1),
        "max_branching_angle": float (radians),
        "min_energy": float,
        "growth_decay": float (0-1],
        "smoothing_weight": float (0-1),
        "max_obstacle_retries": int
    }
    """
    start_position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    max_initial_branches: int = 5
    initial_directions: Optional[List[Tuple[float, float, float]]] = None
    initial_energy: float = 1.0
    extremities_size: float = 0.02
    branch_length: float = 0.06
    time_between_iterations: float = 0.1
    random_growth: float = 0.5
    branching_probability: float = 0.000000001
    max_branching_angle: float = math.pi / 2
    min_energy: float = 0.01
    growth_decay: float = 0.5
    smoothing_weight: float = 0.5
    max_obstacle_retries: int = 20

    def validate(self) -> List[str]:
        errors = _non_negative(self, [
            "max_initial_branches", "initial_energy", "extremities_size", "branch_length",
            "time_between_iterations", "random_growth", "min_energy", "max_obstacle_retries",
        ])
        errors.extend(_vector(self, "start_position"))
        if not 0.0 <= self.branching_probability <= 1.0:
            errors.append(f"GrowthPolicy.branching_probability must be in [0, 1], got {self.branching_probability}")
        if not 0.0 <= self.max_branching_angle <= math.pi:
            errors.append(f"GrowthPolicy.max_branching_angle must be in [0, pi], got {self.max_branching_angle}")
        if not 0.0 < self.growth_decay <= 1.0:
            errors.append(f"GrowthPolicy.growth_decay must be in (0, 1], got {self.growth_decay}")
        if not 0.0 <= self.smoothing_weight <= 1.0:
            errors.append(f"GrowthPolicy.smoothing_weight must be in [0, 1], got {self.smoothing_weight}")
        if self.initial_directions is not None:
            for direction in self.initial_directions:
                if len(direction) != 3:
                    errors.append(f"GrowthPolicy.initial_directions entries must be 3-vectors, got {direction}")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "GrowthPolicy":
        return GrowthPolicy(**{k: v for k, v in d.items() if k in GrowthPolicy.__dataclass_fields__})


@dataclass
class EnvironmentPolicy:
    """
    Policy for the ambient environment.

    JSON Schema:
    {
        "current": [float, float, float],
        "current_speed": float,
        "temperature_influence": float,
        "reference_depth": float
    }
    """
    current: Tuple[float, float, float] = (0.0, 1.0, 0.0)
    current_speed: float = 0.4
    temperature_influence: float = 0.01
    reference_depth: float = -1.0

    def validate(self) -> List[str]:
        errors = _non_negative(self, ["current_speed", "temperature_influence"])
        errors.extend(_vector(self, "current"))
        return errors

    def build(self) -> Environment:
        return Environment(
            current=self.current,
            current_speed=self.current_speed,
            temperature_influence=self.temperature_influence,
            reference_depth=self.reference_depth,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "EnvironmentPolicy":
        return EnvironmentPolicy(**{k: v for k, v in d.items() if k in EnvironmentPolicy.__dataclass_fields__})


@dataclass
class MeshPolicy:
    """
    Policy for skeleton surface meshing.

    JSON Schema:
    {
        "radial_segments": int (>= 3),
        "smooth_normals": bool
    }
    """
    radial_segments: int = 20
    smooth_normals: bool = True

    def validate(self) -> List[str]:
        if self.radial_segments is None or self.radial_segments < 3:
            return [f"MeshPolicy.radial_segments must be >= 3, got {self.radial_segments}"]
        return []

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "MeshPolicy":
        return MeshPolicy(**{k: v for k, v in d.items() if k in MeshPolicy.__dataclass_fields__})


@dataclass
class CoralConfig:
    """
    Complete configuration surface of the coral generator.

    Any change is expected to be followed by a reset; the core never watches
    the configuration for changes.
    """
    attractors: AttractorPolicy = field(default_factory=AttractorPolicy)
    sampling: VolumePolicy = field(default_factory=VolumePolicy)
    obstacle: ObstaclePolicy = field(default_factory=ObstaclePolicy)
    growth: GrowthPolicy = field(default_factory=GrowthPolicy)
    environment: EnvironmentPolicy = field(default_factory=EnvironmentPolicy)
    mesh: MeshPolicy = field(default_factory=MeshPolicy)

    def validate(self) -> List[str]:
        errors = []
        for policy in (self.attractors, self.sampling, self.obstacle,
                       self.growth, self.environment, self.mesh):
            errors.extend(policy.validate())
        return errors

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "CoralConfig":
        return CoralConfig(
            attractors=AttractorPolicy.from_dict(d.get("attractors", {})),
            sampling=VolumePolicy.from_dict(d.get("sampling", {})),
            obstacle=ObstaclePolicy.from_dict(d.get("obstacle", {})),
            growth=GrowthPolicy.from_dict(d.get("growth", {})),
            environment=EnvironmentPolicy.from_dict(d.get("environment", {})),
            mesh=MeshPolicy.from_dict(d.get("mesh", {})),
        )

    @staticmethod
    def from_json(path: str) -> "CoralConfig":
        with open(path, "r", encoding="utf-8") as f:
            return CoralConfig.from_dict(json.load(f))


@dataclass
class OperationReport:
    """
    Standard report structure for batch operations.

    Every operation returns a report with requested vs effective policy,
    warnings, and operation-specific metadata.
    """
    operation: str
    success: bool
    requested_policy: Dict[str, Any]
    effective_policy: Dict[str, Any]
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


__all__ = [
    "validate_policy",
    "SHAPE_TYPES",
    "AttractorPolicy",
    "VolumePolicy",
    "ObstaclePolicy",
    "GrowthPolicy",
    "EnvironmentPolicy",
    "MeshPolicy",
    "CoralConfig",
    "OperationReport",
]
