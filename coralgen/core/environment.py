"""
Ambient environment acting on the coral.

The environment contributes two effects:
- A constant drift added to every growth direction (the sea current)
- A depth-dependent radius offset applied when meshing (temperature)
"""

from dataclasses import dataclass
from typing import Optional
import numpy as np

from ..utils.geometry import normalize, map_linear


@dataclass(eq=False)
class Environment:
    """
    Environment parameters.

    Parameters
    ----------
    current : array-like
        Current direction (normalised internally).
    current_speed : float
        Magnitude of the drift added to growth directions.
    temperature_influence : float
        Scale of the radius offset at full temperature.
    reference_depth : float
        Height mapped to zero temperature.
    """

    current: Optional[np.ndarray] = None
    current_speed: float = 0.4
    temperature_influence: float = 0.01
    reference_depth: float = -1.0

    def __post_init__(self):
        if self.current is None:
            self.current = np.array([0.0, 1.0, 0.0])
        self.current = np.array(self.current, dtype=float).reshape(3)

    def current_drift(self) -> np.ndarray:
        """Drift vector added to every candidate growth direction."""
        return normalize(self.current) * self.current_speed

    def temperature_offset(self, position: np.ndarray, attractors: np.ndarray) -> float:
        """
        Radius offset for a ring centered at `position`.

        The height of `position` is mapped linearly from [reference_depth,
        highest live attractor height] to [0, 1] and scaled by
        temperature_influence. Without live attractors, or when the range
        collapses, the offset is 0. Heights below reference_depth give a
        negative offset; the mesher keeps ring radii non-negative.
        """
        if self.temperature_influence == 0 or attractors is None or len(attractors) == 0:
            return 0.0
        extremum = float(np.max(attractors[:, 1]))
        temperature = map_linear(float(position[1]), self.reference_depth, extremum, 0.0, 1.0)
        if temperature is None:
            return 0.0
        return temperature * self.temperature_influence

    def to_dict(self) -> dict:
        return {
            "current": self.current.tolist(),
            "current_speed": self.current_speed,
            "temperature_influence": self.temperature_influence,
            "reference_depth": self.reference_depth,
        }
