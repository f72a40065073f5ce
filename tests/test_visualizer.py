"""Tests for the viewer helpers that only read the simulation."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from macfluid import FluidSimulation, SimulationConfig
from visualizer import FluidVisualizer, trace_streamline


@pytest.fixture
def uniform_flow():
    sim = FluidSimulation.create(gravity=0.0, interior_w=10, interior_h=10,
                                 cell_size=1.0, density=1.0)
    sim.clear_obstacles()
    sim.grid.u[:] = 1.0
    return sim


def test_streamline_follows_flow(uniform_flow):
    line = trace_streamline(uniform_flow, 5.5, 5.5, num_segments=10, segment_length=0.1)
    assert line.shape == (11, 2)
    np.testing.assert_allclose(line[:, 1], 5.5)
    np.testing.assert_allclose(line[-1, 0], 6.5)


def test_streamline_stops_at_rest():
    sim = FluidSimulation.create(gravity=0.0, interior_w=5, interior_h=5,
                                 cell_size=1.0, density=1.0)
    line = trace_streamline(sim, 2.5, 2.5)
    assert line.shape == (1, 2)


def test_streamline_stops_leaving_domain(uniform_flow):
    line = trace_streamline(uniform_flow, 11.5, 5.5, num_segments=10, segment_length=0.5)
    # x_max = 12 * h; the second step would cross it
    assert line.shape == (2, 2)


def test_update_steps_simulation():
    config = SimulationConfig(resolution=8, aspect_ratio=1.5, iterations=5)
    sim = FluidSimulation.from_config(config)
    viz = FluidVisualizer(sim, config)

    artists = viz.update(0)

    assert sim.step_count == 1
    assert len(artists) == 3
    assert "step 1" in viz.title_text.get_text()


def test_update_skips_non_positive_dt():
    config = SimulationConfig(resolution=8, dt=0.0)
    sim = FluidSimulation.from_config(config)
    viz = FluidVisualizer(sim, config, show_pressure=False)
    viz.update(0)
    assert sim.step_count == 0
