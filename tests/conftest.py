"""Pytest configuration and fixtures for the fluid solver tests."""

import numpy as np
import pytest

from macfluid import Circular, FluidGrid, FluidSimulation
from macfluid import obstacles


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def open_grid():
    """8x6 interior, unit cells, every cell fluid, no gravity."""
    grid = FluidGrid(gravity=0.0, num_x=8, num_y=6, h=1.0, density=1.0)
    obstacles.clear_obstacles(grid)
    return grid


@pytest.fixture
def tank_grid():
    """6x6 open-top tank, unit cells, no gravity."""
    grid = FluidGrid(gravity=0.0, num_x=6, num_y=6, h=1.0, density=1.0)
    obstacles.tank(grid)
    return grid


@pytest.fixture
def noisy_tank_grid(tank_grid, rng):
    """Open-top tank with random face velocities (far from divergence-free)."""
    tank_grid.u[:] = rng.uniform(-1.0, 1.0, tank_grid.shape)
    tank_grid.v[:] = rng.uniform(-1.0, 1.0, tank_grid.shape)
    return tank_grid


@pytest.fixture
def vortex_sim():
    """20x10 wind tunnel with a circular obstacle, as used in the end-to-end check."""
    sim = FluidSimulation.create(gravity=0.0, interior_w=20, interior_h=10,
                                 cell_size=1.0, density=1.0)
    sim.vortex_shedding(inflow_velocity=2.0, shapes=[Circular(x=10, y=5, r=2)])
    return sim
