"""Simulation parameters used by the host scripts and `FluidSimulation.from_config`."""

import math
from dataclasses import dataclass, field, asdict

from .obstacles import Circular
from .solver import MODE_GAUSS_SEIDEL


@dataclass
class SimulationConfig:
    """Domain, fluid and solver settings for one run.

    The domain is `domain_height` meters tall and `aspect_ratio` times as
    wide, split into square cells of `domain_height / resolution` meters.
    """

    domain_height: float = 1.0
    aspect_ratio: float = 1.0
    resolution: int = 150
    density: float = 1000.0
    gravity: float = -9.81

    dt: float = 1.0 / 60.0
    iterations: int = 40
    over_relaxation: float = 1.9
    projection_mode: str = MODE_GAUSS_SEIDEL

    scenario: str = "vortex"
    inflow_velocity: float = 2.0
    obstacles: list = field(default_factory=lambda: [Circular(x=0.4, y=0.5, r=0.3)])

    @property
    def cell_size(self) -> float:
        return self.domain_height / self.resolution

    @property
    def interior_dims(self) -> tuple[int, int]:
        """Interior cell counts (num_x, num_y), without the border."""
        h = self.cell_size
        domain_width = self.domain_height * self.aspect_ratio
        # Small epsilon so 1.0 / (1.0 / 150) still floors to 150
        num_x = math.floor(domain_width / h + 1e-9)
        num_y = math.floor(self.domain_height / h + 1e-9)
        return num_x, num_y

    @classmethod
    def from_aspect_ratio(cls, width: float, height: float, **kwargs) -> "SimulationConfig":
        """Build a config whose domain matches a `width` x `height` display."""
        return cls(aspect_ratio=width / height, **kwargs)

    def to_dict(self) -> dict:
        return asdict(self)
