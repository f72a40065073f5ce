"""
macfluid/ — 2D Eulerian Fluid Package
======================================
Exports the interfaces the host layer uses.

Viewer imports: FluidSimulation → pressure(), sample()
CLI imports: SimulationConfig → FluidSimulation.from_config(), simulate()
"""

from .config import SimulationConfig
from .grid import Field, FluidGrid
from .obstacles import Circular, Rectangular, Shape
from .simulation import FluidSimulation
from .solver import MODE_GAUSS_SEIDEL, MODE_RED_BLACK

__all__ = [
    "Circular",
    "Field",
    "FluidGrid",
    "FluidSimulation",
    "MODE_GAUSS_SEIDEL",
    "MODE_RED_BLACK",
    "Rectangular",
    "Shape",
    "SimulationConfig",
]
