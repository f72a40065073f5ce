"""Tests for pressure projection and border extrapolation."""

import numpy as np
import pytest

from macfluid import MODE_GAUSS_SEIDEL, MODE_RED_BLACK, FluidGrid
from macfluid import obstacles
from macfluid.solver import extrapolate, project


def total_divergence(grid):
    return float(np.abs(grid.compute_divergence()).sum())


def noisy_tank(seed=7, size=6):
    grid = FluidGrid(gravity=0.0, num_x=size, num_y=size, h=1.0, density=1.0)
    obstacles.tank(grid)
    rng = np.random.default_rng(seed)
    grid.u[:] = rng.uniform(-1.0, 1.0, grid.shape)
    grid.v[:] = rng.uniform(-1.0, 1.0, grid.shape)
    return grid


class TestGaussSeidel:
    """Exact values of the in-place sweep on tiny grids."""

    def test_single_sweep_reads_earlier_corrections(self):
        grid = FluidGrid(gravity=0.0, num_x=2, num_y=1, h=1.0, density=1.0)
        obstacles.clear_obstacles(grid)
        # Face shared by cells (1, 1) and (2, 1)
        grid.u[2, 1] = 1.0

        project(grid, dt=1.0, iterations=1, over_relaxation=1.0)

        # Cell (1, 1): div = 1, four open neighbors → correction -0.25
        assert grid.p[1, 1] == pytest.approx(-0.25)
        assert grid.u[1, 1] == pytest.approx(0.25)
        assert grid.v[1, 1] == pytest.approx(0.25)
        assert grid.v[1, 2] == pytest.approx(-0.25)
        # Cell (2, 1) sees u[2, 1] = 0.75: div = -0.75 → correction 0.1875
        assert grid.p[2, 1] == pytest.approx(0.1875)
        assert grid.u[2, 1] == pytest.approx(0.5625)
        assert grid.u[3, 1] == pytest.approx(0.1875)
        assert grid.v[2, 1] == pytest.approx(-0.1875)
        assert grid.v[2, 2] == pytest.approx(0.1875)

    def test_pressure_scales_with_density_cell_size_and_dt(self):
        grid = FluidGrid(gravity=0.0, num_x=2, num_y=1, h=0.5, density=2.0)
        obstacles.clear_obstacles(grid)
        grid.u[2, 1] = 1.0

        project(grid, dt=0.25, iterations=1, over_relaxation=1.0)

        # density * h / dt = 4
        assert grid.p[1, 1] == pytest.approx(-1.0)

    def test_over_relaxation_scales_first_correction(self):
        grid = FluidGrid(gravity=0.0, num_x=2, num_y=1, h=1.0, density=1.0)
        obstacles.clear_obstacles(grid)
        grid.u[2, 1] = 1.0

        project(grid, dt=1.0, iterations=1, over_relaxation=1.9)

        assert grid.p[1, 1] == pytest.approx(-0.25 * 1.9)

    def test_no_correction_through_solid_faces(self):
        grid = FluidGrid(gravity=0.0, num_x=3, num_y=3, h=1.0, density=1.0)
        obstacles.clear_obstacles(grid)
        grid.s[1, 2] = 0.0
        grid.u[3, 2] = 1.0

        project(grid, dt=1.0, iterations=10, over_relaxation=1.5)

        # Left face of cell (2, 2) borders the solid cell (1, 2)
        assert grid.u[2, 2] == 0.0

    def test_enclosed_fluid_cell_is_skipped(self, rng):
        grid = FluidGrid(gravity=0.0, num_x=3, num_y=3, h=1.0, density=1.0)
        grid.s[2, 2] = 1.0
        grid.u[:] = rng.uniform(-1, 1, grid.shape)
        grid.v[:] = rng.uniform(-1, 1, grid.shape)
        u_before, v_before = grid.u.copy(), grid.v.copy()

        project(grid, dt=0.1, iterations=5, over_relaxation=1.9)

        np.testing.assert_array_equal(grid.u, u_before)
        np.testing.assert_array_equal(grid.v, v_before)
        assert not grid.p.any()

    def test_pressure_is_cleared_first(self):
        grid = FluidGrid(gravity=0.0, num_x=4, num_y=4, h=1.0, density=1.0)
        grid.p[:] = 7.0
        project(grid, dt=0.1, iterations=3)
        assert not grid.p.any()


class TestRedBlack:

    def test_update_order_differs_from_gauss_seidel(self):
        """Red cells (1, 1) and (3, 1) go before black (2, 1), so (3, 1) misses (2, 1)'s correction."""
        grids = {}
        for mode in (MODE_GAUSS_SEIDEL, MODE_RED_BLACK):
            grid = FluidGrid(gravity=0.0, num_x=3, num_y=1, h=1.0, density=1.0)
            obstacles.clear_obstacles(grid)
            grid.u[2, 1] = 1.0
            project(grid, dt=1.0, iterations=1, over_relaxation=1.0, mode=mode)
            grids[mode] = grid

        assert grids[MODE_GAUSS_SEIDEL].p[3, 1] == pytest.approx(0.046875)
        assert grids[MODE_RED_BLACK].p[3, 1] == 0.0
        for grid in grids.values():
            assert grid.p[1, 1] == pytest.approx(-0.25)
            assert grid.p[2, 1] == pytest.approx(0.1875)

    def test_converges_to_gauss_seidel_solution(self):
        gs = noisy_tank()
        rb = noisy_tank()

        project(gs, dt=0.1, iterations=400, over_relaxation=1.5, mode=MODE_GAUSS_SEIDEL)
        project(rb, dt=0.1, iterations=400, over_relaxation=1.5, mode=MODE_RED_BLACK)

        np.testing.assert_allclose(rb.u, gs.u, atol=1e-4)
        np.testing.assert_allclose(rb.v, gs.v, atol=1e-4)

    def test_enclosed_fluid_cell_is_skipped(self, rng):
        grid = FluidGrid(gravity=0.0, num_x=3, num_y=3, h=1.0, density=1.0)
        grid.s[2, 2] = 1.0
        grid.u[:] = rng.uniform(-1, 1, grid.shape)
        u_before = grid.u.copy()

        project(grid, dt=0.1, iterations=5, mode=MODE_RED_BLACK)

        np.testing.assert_array_equal(grid.u, u_before)
        assert not grid.p.any()


class TestConvergence:
    """Total divergence over fluid cells trends to zero with more sweeps."""

    @pytest.mark.parametrize("mode", [MODE_GAUSS_SEIDEL, MODE_RED_BLACK])
    @pytest.mark.parametrize("over_relaxation", [1.0, 1.5, 1.9])
    def test_divergence_trends_to_zero(self, mode, over_relaxation):
        initial = total_divergence(noisy_tank())
        results = {}
        for iterations in (20, 400):
            grid = noisy_tank()
            project(grid, dt=0.1, iterations=iterations,
                    over_relaxation=over_relaxation, mode=mode)
            results[iterations] = total_divergence(grid)

        assert results[400] < results[20]
        assert results[400] < 1e-3 * initial

    def test_metrics(self):
        grid = noisy_tank()
        metrics = project(grid, dt=0.1, iterations=50, over_relaxation=1.9)

        assert metrics["mode"] == MODE_GAUSS_SEIDEL
        assert metrics["iterations"] == 50
        assert metrics["time_ms"] >= 0.0
        assert metrics["divergence_after_max"] < metrics["divergence_before_max"]
        assert metrics["divergence_after_mean"] <= metrics["divergence_after_max"]

    def test_rejects_unknown_mode(self):
        grid = noisy_tank()
        with pytest.raises(ValueError, match="Unknown projection mode"):
            project(grid, dt=0.1, mode="JACOBI")


class TestExtrapolate:

    def test_copies_nearest_interior_values(self, rng):
        grid = FluidGrid(gravity=0.0, num_x=5, num_y=4, h=1.0, density=1.0)
        grid.u[:] = rng.uniform(-1, 1, grid.shape)
        grid.v[:] = rng.uniform(-1, 1, grid.shape)
        u_inner = grid.u[:, 1:-1].copy()
        v_inner = grid.v[1:-1, :].copy()

        extrapolate(grid)

        np.testing.assert_array_equal(grid.u[:, 0], grid.u[:, 1])
        np.testing.assert_array_equal(grid.u[:, -1], grid.u[:, -2])
        np.testing.assert_array_equal(grid.v[0, :], grid.v[1, :])
        np.testing.assert_array_equal(grid.v[-1, :], grid.v[-2, :])

        np.testing.assert_array_equal(grid.u[:, 1:-1], u_inner)
        np.testing.assert_array_equal(grid.v[1:-1, :], v_inner)
