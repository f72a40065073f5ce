"""
sampler.py — Bilinear Sampling on the Staggered Grid
=====================================================
Semi-Lagrangian advection lands between grid points, so every field has to
be readable at arbitrary continuous (x, y) positions in meters.

Each field sits at its own offset inside a cell:
  - u : x = i*h,        y = j*h + h/2   → offset by h/2 in y
  - v : x = i*h + h/2,  y = j*h         → offset by h/2 in x
  - m : x = i*h + h/2,  y = j*h + h/2   → offset by h/2 in both

`sample_field` removes that offset before interpolating, so callers always
pass physical coordinates. It accepts plain floats or numpy arrays of
positions (vectorized, like the rest of the solver).
"""

import numpy as np

from .grid import Field, FluidGrid


def _field_offset(grid: FluidGrid, field: Field) -> tuple[np.ndarray, float, float]:
    half = 0.5 * grid.h
    if field is Field.U:
        return grid.u, 0.0, half
    if field is Field.V:
        return grid.v, half, 0.0
    if field is Field.S:
        return grid.m, half, half
    raise ValueError(f"Unknown field: {field!r}")


def _lower_index(pos, offset: float, h: float, n: int):
    """Lower grid index, upper index and fractional weight along one axis."""
    i0 = np.minimum(np.floor((pos - offset) / h), n - 1)
    t = ((pos - offset) - i0 * h) / h
    i1 = np.minimum(i0 + 1, n - 1)
    return i0.astype(np.intp), i1.astype(np.intp), t


def sample_field(grid: FluidGrid, x, y, field: Field):
    """
    Bilinear interpolation of u, v or smoke at physical coordinates (x, y).

    Positions are clamped into [h, num*h] on each axis first, so nothing is
    extrapolated beyond the padded domain.

    Args:
        grid  : The FluidGrid to read
        x, y  : Query position(s) in meters (floats or same-shape arrays)
        field : Field.U, Field.V or Field.S

    Returns:
        Interpolated value(s); a float for scalar input, else an array.
    """
    h = grid.h
    f, dx, dy = _field_offset(grid, field)

    scalar = np.ndim(x) == 0 and np.ndim(y) == 0

    x = np.clip(np.asarray(x, dtype=np.float64), h, grid.num_x * h)
    y = np.clip(np.asarray(y, dtype=np.float64), h, grid.num_y * h)

    x0, x1, tx = _lower_index(x, dx, h, grid.num_x)
    y0, y1, ty = _lower_index(y, dy, h, grid.num_y)

    sx = 1.0 - tx
    sy = 1.0 - ty

    val = (
        sx * sy * f[x0, y0] +
        tx * sy * f[x1, y0] +
        tx * ty * f[x1, y1] +
        sx * ty * f[x0, y1]
    )

    if scalar:
        return float(val)
    return val


def avg_u(grid: FluidGrid, i, j):
    """
    u estimated at the v-face (i, j): mean of the four u faces around it.
    `i` and `j` can be ints or index arrays.
    """
    u = grid.u
    return 0.25 * (u[i, j - 1] + u[i, j] + u[i + 1, j - 1] + u[i + 1, j])


def avg_v(grid: FluidGrid, i, j):
    """
    v estimated at the u-face (i, j): mean of the four v faces around it.
    `i` and `j` can be ints or index arrays.
    """
    v = grid.v
    return 0.25 * (v[i - 1, j] + v[i, j] + v[i - 1, j + 1] + v[i, j + 1])
