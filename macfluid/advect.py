"""
advect.py — Semi-Lagrangian Advection
======================================
This is what makes fluid look like it's *actually flowing*.

The algorithm (per face or cell):
  1. Take the physical position of the sample (face center or cell center).
  2. Estimate the velocity there.
  3. Trace BACKWARD along that velocity by one timestep (dt).
     → "Where did the stuff at this point come FROM?"
  4. Sample the field at the back-traced position with bilinear
     interpolation (it'll land between grid points).
  5. That sampled value becomes the new value.

Unconditionally stable for any dt: a sample is always an interpolation
of existing values, never an extrapolation.

Every pass reads ONLY the pre-pass buffers and writes into the `new_*`
buffers, which are swapped in once the whole pass is done. Samples that are
not eligible (touching a solid, or on an excluded edge) are carried forward
unchanged.

Key reference: Jos Stam, "Stable Fluids" (SIGGRAPH 1999)
"""

import numpy as np

from .grid import Field, FluidGrid
from .sampler import avg_u, avg_v, sample_field


def advect_velocity(grid: FluidGrid, dt: float):
    """
    Advect the velocity field through itself (self-advection).

    u and v live on different faces, so each component is traced from its
    own face positions. The component along the face normal is read
    directly; the other one is averaged from the four surrounding faces.

    Modifies: grid.u, grid.v (buffer swap with grid.new_u, grid.new_v)
    """
    h = grid.h
    h2 = 0.5 * h
    s, u, v = grid.s, grid.u, grid.v

    np.copyto(grid.new_u, u)
    np.copyto(grid.new_v, v)

    # ── Advect u (left faces): i ∈ [1, num_x-1], j ∈ [1, num_y-2] ──────────
    iu, ju = np.meshgrid(
        np.arange(1, grid.num_x),
        np.arange(1, grid.num_y - 1),
        indexing='ij'
    )
    ok = (s[iu, ju] != 0.0) & (s[iu - 1, ju] != 0.0)
    iu, ju = iu[ok], ju[ok]

    x = iu * h - dt * u[iu, ju]
    y = ju * h + h2 - dt * avg_v(grid, iu, ju)
    grid.new_u[iu, ju] = sample_field(grid, x, y, Field.U)

    # ── Advect v (bottom faces): i ∈ [1, num_x-2], j ∈ [1, num_y-1] ────────
    iv, jv = np.meshgrid(
        np.arange(1, grid.num_x - 1),
        np.arange(1, grid.num_y),
        indexing='ij'
    )
    ok = (s[iv, jv] != 0.0) & (s[iv, jv - 1] != 0.0)
    iv, jv = iv[ok], jv[ok]

    x = iv * h + h2 - dt * avg_u(grid, iv, jv)
    y = jv * h - dt * v[iv, jv]
    grid.new_v[iv, jv] = sample_field(grid, x, y, Field.V)

    grid.u, grid.new_u = grid.new_u, grid.u
    grid.v, grid.new_v = grid.new_v, grid.v


def advect_smoke(grid: FluidGrid, dt: float):
    """
    Advect the smoke field through the (already advected) velocity field.

    For each fluid cell center, average the velocity from the cell's faces,
    trace backward by dt and sample the smoke there. Solid cells keep their
    value: smoke is never carried through obstacles.

    Modifies: grid.m (buffer swap with grid.new_m)
    """
    h = grid.h
    h2 = 0.5 * h
    s, u, v = grid.s, grid.u, grid.v

    np.copyto(grid.new_m, grid.m)

    i, j = np.meshgrid(
        np.arange(1, grid.num_x - 1),
        np.arange(1, grid.num_y - 1),
        indexing='ij'
    )
    ok = s[i, j] != 0.0
    i, j = i[ok], j[ok]

    uc = 0.5 * (u[i, j] + u[i + 1, j])
    vc = 0.5 * (v[i, j] + v[i, j + 1])

    x = i * h + h2 - dt * uc
    y = j * h + h2 - dt * vc
    grid.new_m[i, j] = sample_field(grid, x, y, Field.S)

    grid.m, grid.new_m = grid.new_m, grid.m
