"""
forces.py — External Forces (Gravity)
======================================
Applies body forces to the velocity field each timestep.

Only gravity acts on this fluid. It is added to the vertical velocity `v`,
which lives on the bottom face of each cell, so a face only receives it
when both cells it separates (the cell and the one directly below) are
fluid. Faces touching a solid never move.
"""

from .grid import FluidGrid


def apply_gravity(grid: FluidGrid, dt: float):
    """
    v += dt * gravity on every eligible v-face.

    The face range is i ∈ [1, num_x - 1], j ∈ [1, num_y - 2]: the left border
    column and the bottom/top border rows are never touched.

    Modifies: grid.v (in-place)
    """
    if grid.gravity == 0.0:
        return

    s = grid.s
    fluid = (s[1:, 1:-1] != 0.0) & (s[1:, :-2] != 0.0)
    grid.v[1:, 1:-1][fluid] += dt * grid.gravity
