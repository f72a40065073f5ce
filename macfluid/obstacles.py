"""
obstacles.py — Obstacle Mask & Scenario Setup
==============================================
Builds the solid/fluid mask `s` and the boundary/inflow conditions.

Two named scenarios:
  - tank            : closed on the left, right and bottom, open at the top
  - vortex shedding : pipe flow entering from the left at a fixed speed,
                      open on the right, walls at the top and bottom

Obstacle shapes are a closed set of plain values with one capability,
`contains(x, y)`. Stamping a list of shapes combines them with OR: a cell
is solid if its center is inside ANY of them. Only interior cells are
stamped; the border belongs to the scenario.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Union

import numpy as np

from .grid import FluidGrid

log = logging.getLogger(__name__)


# Height of the smoke-free marker band at the inlet, as a fraction of the
# interior height
SMOKE_BAND_FRACTION = 0.1


@dataclass(frozen=True)
class Rectangular:
    """Axis-aligned box centered on (x, y), in meters."""
    x: float
    y: float
    half_w: float
    half_h: float

    def contains(self, x, y):
        return (np.abs(x - self.x) < self.half_w) & (np.abs(y - self.y) < self.half_h)


@dataclass(frozen=True)
class Circular:
    """Disc centered on (x, y) with radius r, in meters."""
    x: float
    y: float
    r: float

    def contains(self, x, y):
        return np.hypot(x - self.x, y - self.y) < self.r


Shape = Union[Rectangular, Circular]


def clear_obstacles(grid: FluidGrid):
    """Mark every cell as fluid. Velocity, pressure and smoke are untouched."""
    grid.s.fill(1.0)


def tank(grid: FluidGrid):
    """
    Open-top tank: left, right and bottom border cells are solid,
    everything else is fluid.
    """
    grid.s.fill(1.0)
    grid.s[0, :] = 0.0
    grid.s[-1, :] = 0.0
    grid.s[:, 0] = 0.0
    log.info("Configured tank scenario (%dx%d)", grid.num_x - 2, grid.num_y - 2)


def vortex_shedding(grid: FluidGrid, inflow_velocity: float, obstacles: Iterable[Shape] = ()):
    """
    Wind tunnel: fluid enters through the first interior column at
    `inflow_velocity` and leaves through the open right border.

    Args:
        grid            : The FluidGrid to configure in-place
        inflow_velocity : u forced on the inflow column (i == 1)
        obstacles       : Shapes stamped into the interior after the border setup

    Side effects: sets grid.gravity to 0 (pipe-flow regime) and clears a
    thin band of smoke at the inlet so the flow is visible.
    """
    obstacles = list(obstacles)

    grid.s.fill(1.0)
    grid.s[0, :] = 0.0
    grid.s[:, 0] = 0.0
    grid.s[:, -1] = 0.0

    grid.u[1, :] = inflow_velocity

    # Centered on the padded column, like the inflow itself
    band_h = SMOKE_BAND_FRACTION * (grid.num_y - 2)
    min_j = math.floor(0.5 * grid.num_y - 0.5 * band_h)
    max_j = math.floor(0.5 * grid.num_y + 0.5 * band_h)
    grid.m[1, min_j:max_j] = 0.0

    grid.gravity = 0.0

    add_obstacles(grid, obstacles)
    log.info("Configured vortex shedding scenario: inflow=%.3f, %d obstacle(s)",
             inflow_velocity, len(obstacles))


def add_obstacle(grid: FluidGrid, shape: Shape):
    """Stamp a single shape. Same as `add_obstacles(grid, [shape])`."""
    add_obstacles(grid, [shape])


def add_obstacles(grid: FluidGrid, shapes: Iterable[Shape]):
    """
    Re-evaluate every interior cell against `shapes`.

    Interior cells outside all shapes become fluid. Cells whose center lies
    inside any shape become solid, get full smoke (1) back, and have the four
    face velocities bordering them zeroed. Repeating the call with the same
    shapes leaves the grid unchanged.
    """
    shapes = list(shapes)
    for shape in shapes:
        if not isinstance(shape, (Rectangular, Circular)):
            raise TypeError(f"Unsupported obstacle shape: {shape!r}")

    solid = _interior_solid_mask(grid, shapes)

    grid.s[1:-1, 1:-1] = np.where(solid, 0.0, 1.0)

    full = np.zeros(grid.shape, dtype=bool)
    full[1:-1, 1:-1] = solid

    grid.m[full] = 1.0
    # Four faces of each solid cell: u on its left/right, v on its bottom/top
    grid.u[full] = 0.0
    grid.u[1:, :][full[:-1, :]] = 0.0
    grid.v[full] = 0.0
    grid.v[:, 1:][full[:, :-1]] = 0.0

    log.debug("Stamped %d shape(s): %d solid interior cell(s)", len(shapes), int(solid.sum()))


def _interior_solid_mask(grid: FluidGrid, shapes: list) -> np.ndarray:
    """Boolean (num_x - 2, num_y - 2) mask of interior cells inside any shape."""
    h = grid.h
    i = np.arange(1, grid.num_x - 1)
    j = np.arange(1, grid.num_y - 1)
    ci, cj = np.meshgrid(i, j, indexing='ij')

    # Cell centers in meters
    x = (ci + 0.5) * h
    y = (cj + 0.5) * h

    solid = np.zeros(ci.shape, dtype=bool)
    for shape in shapes:
        solid |= shape.contains(x, y)
    return solid
