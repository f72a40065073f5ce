"""
solver.py — Pressure Projection & Boundary Extrapolation
=========================================================
The pressure projection step enforces INCOMPRESSIBILITY:
  div(v) = 0 in every fluid cell

Gravity (and later the inflow) leave the velocity field with net in/outflow
in some cells. We fix it cell by cell:
  1. Count the neighbors the cell can exchange flow with
     (s = sx0 + sx1 + sy0 + sy1, solid neighbors count 0)
  2. Compute the cell's divergence from its four faces
  3. Push -div/s through every open face, times an over-relaxation factor
  4. Accumulate the matching pressure: p += density * h / dt * correction

Faces shared with a solid neighbor get no correction, so no flow ever
crosses a wall. There is no convergence check: the caller picks the number
of sweeps.

The "mode switch" lives here:
  - MODE_GAUSS_SEIDEL : row-major, in-place sweep. Later cells read the
                        corrections made by earlier cells in the same sweep.
                        This is the reference behavior and the default.
  - MODE_RED_BLACK    : numpy-vectorized two-color sweep. Same-colored cells
                        share no face, so each half-sweep is exact, but the
                        update ORDER differs from Gauss-Seidel. Results are
                        close but not identical; it trades that for speed on
                        large grids.
"""

import logging
import time

import numpy as np

from .grid import FluidGrid

log = logging.getLogger(__name__)


MODE_GAUSS_SEIDEL = "GAUSS_SEIDEL"
MODE_RED_BLACK    = "RED_BLACK"
PROJECTION_MODES  = (MODE_GAUSS_SEIDEL, MODE_RED_BLACK)


def project(grid: FluidGrid, dt: float, iterations: int = 40,
            over_relaxation: float = 1.9, mode: str = MODE_GAUSS_SEIDEL) -> dict:
    """
    Pressure projection: make the velocity field divergence-free.

    The pressure buffer is reset to zero first, so after the call it holds
    only this step's pressure.

    Args:
        grid            : The FluidGrid to modify in-place
        dt              : Timestep, must be > 0 (not checked)
        iterations      : Number of full sweeps over the grid
        over_relaxation : Correction multiplier, typically in [1, 2)
        mode            : MODE_GAUSS_SEIDEL or MODE_RED_BLACK

    Returns:
        dict with timing and divergence metrics
    """
    if mode not in PROJECTION_MODES:
        raise ValueError(f"Unknown projection mode: {mode}. Use one of {PROJECTION_MODES}.")

    t_start = time.perf_counter()
    div_before = grid.compute_divergence()

    grid.p.fill(0.0)

    if mode == MODE_GAUSS_SEIDEL:
        _project_gauss_seidel(grid, dt, iterations, over_relaxation)
    else:
        _project_red_black(grid, dt, iterations, over_relaxation)

    t_end = time.perf_counter()
    div_after = grid.compute_divergence()

    return {
        "mode"                  : mode,
        "time_ms"               : (t_end - t_start) * 1000,
        "iterations"            : iterations,
        "divergence_before_max" : float(np.abs(div_before).max()),
        "divergence_after_max"  : float(np.abs(div_after).max()),
        "divergence_after_mean" : float(np.abs(div_after).mean()),
    }


def _project_gauss_seidel(grid: FluidGrid, dt: float, iterations: int, over_relaxation: float):
    """
    Sequential in-place relaxation over flat buffers (index c = i*num_y + j).

    The mask does not change during projection, so the fluid cells and their
    neighbor indicators are gathered once. The sweeps then run on plain
    Python lists, which are much faster to index one element at a time than
    numpy arrays.
    """
    n = grid.num_y
    cp = grid.density * grid.h / dt

    s = grid.s.ravel().tolist()
    u = grid.u.ravel().tolist()
    v = grid.v.ravel().tolist()
    p = grid.p.ravel().tolist()

    # (cell, sx0, sx1, sy0, sy1, over_relaxation / s), row-major order
    cells = []
    for i in range(1, grid.num_x - 1):
        for j in range(1, grid.num_y - 1):
            c = i * n + j
            if s[c] == 0.0:
                continue

            sx0 = s[c - n]
            sx1 = s[c + n]
            sy0 = s[c - 1]
            sy1 = s[c + 1]
            total = sx0 + sx1 + sy0 + sy1

            # Enclosed by solids: nothing to exchange with
            if total == 0.0:
                continue

            cells.append((c, sx0, sx1, sy0, sy1, over_relaxation / total))

    for _ in range(iterations):
        for c, sx0, sx1, sy0, sy1, k in cells:
            div = u[c + n] - u[c] + v[c + 1] - v[c]
            corr = -div * k

            p[c] += cp * corr

            u[c] -= sx0 * corr
            u[c + n] += sx1 * corr
            v[c] -= sy0 * corr
            v[c + 1] += sy1 * corr

    grid.u[:] = np.asarray(u).reshape(grid.shape)
    grid.v[:] = np.asarray(v).reshape(grid.shape)
    grid.p[:] = np.asarray(p).reshape(grid.shape)


def _project_red_black(grid: FluidGrid, dt: float, iterations: int, over_relaxation: float):
    """
    Two-color variant: all "red" cells ((i + j) even) are relaxed at once,
    then all "black" cells. Works on interior slices, no Python loop over cells.
    """
    cp = grid.density * grid.h / dt
    s = grid.s
    u, v, p = grid.u, grid.v, grid.p

    # Neighbor indicators of every interior cell
    sx0 = s[:-2, 1:-1]
    sx1 = s[2:, 1:-1]
    sy0 = s[1:-1, :-2]
    sy1 = s[1:-1, 2:]
    total = sx0 + sx1 + sy0 + sy1

    active = (s[1:-1, 1:-1] != 0.0) & (total != 0.0)
    k = np.where(active, over_relaxation / np.where(total == 0.0, 1.0, total), 0.0).astype(u.dtype)

    ci, cj = np.meshgrid(np.arange(1, grid.num_x - 1), np.arange(1, grid.num_y - 1), indexing='ij')
    colors = [k * ((ci + cj) % 2 == color) for color in (0, 1)]

    for _ in range(iterations):
        for kc in colors:
            div = u[2:, 1:-1] - u[1:-1, 1:-1] + v[1:-1, 2:] - v[1:-1, 1:-1]
            corr = -div * kc

            p[1:-1, 1:-1] += cp * corr

            u[1:-1, 1:-1] -= sx0 * corr
            u[2:, 1:-1] += sx1 * corr
            v[1:-1, 1:-1] -= sy0 * corr
            v[1:-1, 2:] += sy1 * corr


def extrapolate(grid: FluidGrid):
    """
    Zero-gradient condition on the border: copy the nearest interior value
    outward, so later sampling never reads stale edge velocities.

      u : bottom row (j = 0) and top row (j = num_y - 1)
      v : left column (i = 0) and right column (i = num_x - 1)

    Modifies: grid.u, grid.v (in-place)
    """
    grid.u[:, 0] = grid.u[:, 1]
    grid.u[:, -1] = grid.u[:, -2]
    grid.v[0, :] = grid.v[1, :]
    grid.v[-1, :] = grid.v[-2, :]
