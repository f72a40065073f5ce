"""
grid.py — Padded 2D MAC (Marker-and-Cell) Staggered Grid
=========================================================
The foundation of the entire simulation.

Every buffer has the same shape (num_x, num_y) = (interior + 2) in both
axes: one border cell is padded on each side. Buffers are C-ordered, so
`buf.ravel()[i * num_y + j]` is `buf[i, j]`. The 2D layout is only an
indexing convention over one contiguous arena.

Layout on a single cell (i, j):

         v[i, j+1]
       ─────X─────
       |         |
 u[i,j]X  p, s, m X u[i+1, j]
       |         |
       ─────X─────
         v[i, j]

  - Pressure `p`, obstacle mask `s` and smoke `m` live at CELL CENTERS
  - Velocity `u` lives on the LEFT face of the cell (x = i*h)
  - Velocity `v` lives on the BOTTOM face of the cell (y = j*h)

Mask convention: s == 0 → solid, s == 1 → fluid.
"""

from enum import Enum

import numpy as np


DTYPE = np.float32


class Field(Enum):
    """Selector for the sampled field."""
    U = "u"
    V = "v"
    S = "smoke"


class FluidGrid:
    """
    Padded MAC grid storing all simulation state.
    This is the single source of truth passed between all physics steps.
    """

    def __init__(self, gravity: float, num_x: int, num_y: int,
                 h: float, density: float):
        """
        Args:
            gravity : Vertical acceleration added to v every step (m/s²)
            num_x   : Interior cell count along x (border cells are added)
            num_y   : Interior cell count along y (border cells are added)
            h       : Cell size in meters
            density : Fluid density (scales the pressure field only)

        Raises:
            ValueError: if an interior dimension or the cell size is not positive.
        """
        if num_x < 1 or num_y < 1:
            raise ValueError(f"Grid needs at least 1x1 interior cells, got {num_x}x{num_y}")
        if h <= 0:
            raise ValueError(f"Cell size must be positive, got {h}")

        self.gravity = float(gravity)
        self.density = float(density)
        self.h = float(h)

        # Two border cells per axis
        self.num_x = int(num_x) + 2
        self.num_y = int(num_y) + 2
        shape = (self.num_x, self.num_y)

        # ── Velocity fields (face-centered, staggered) ─────────────────────
        self.u = np.zeros(shape, dtype=DTYPE)
        self.v = np.zeros(shape, dtype=DTYPE)

        # Velocity at t + dt, written by advection then swapped in
        self.new_u = np.zeros(shape, dtype=DTYPE)
        self.new_v = np.zeros(shape, dtype=DTYPE)

        # ── Scalar fields (cell-centered) ──────────────────────────────────
        self.p = np.zeros(shape, dtype=DTYPE)
        # Undefined until a scenario configures it
        self.s = np.zeros(shape, dtype=DTYPE)
        self.m = np.ones(shape, dtype=DTYPE)
        self.new_m = np.zeros(shape, dtype=DTYPE)

    @property
    def shape(self) -> tuple[int, int]:
        return self.num_x, self.num_y

    @property
    def num_cells(self) -> int:
        return self.num_x * self.num_y

    def index(self, i: int, j: int) -> int:
        """Flat offset of cell (i, j) in every buffer."""
        return i * self.num_y + j

    def pressure(self) -> np.ndarray:
        """
        Read-only flat snapshot of the pressure buffer, in `i * num_y + j`
        order. Later steps never modify the returned array.
        """
        snapshot = self.p.ravel().copy()
        snapshot.setflags(write=False)
        return snapshot

    def get_velocity_at_center(self) -> tuple[np.ndarray, np.ndarray]:
        """
        Average the two faces of every cell to its center.

        Returns (uc, vc), each of shape (num_x - 1, num_y - 1): entry [i, j]
        is the center velocity of cell (i, j). The last row/column has no
        right/top face and is left out.
        """
        uc = 0.5 * (self.u[:-1, :-1] + self.u[1:, :-1])
        vc = 0.5 * (self.v[:-1, :-1] + self.v[:-1, 1:])
        return uc, vc

    def compute_divergence(self) -> np.ndarray:
        """
        Net outflow of every interior cell, in the same units the pressure
        solver uses (face velocity differences, not divided by h).

        div = u(right) - u(left) + v(top) - v(bottom)

        Solid cells report 0. For an incompressible fluid the fluid cells
        should be ~0 after projection.

        Returns: (num_x - 2, num_y - 2) array for the interior cells.
        """
        div = (
            self.u[2:, 1:-1] - self.u[1:-1, 1:-1] +
            self.v[1:-1, 2:] - self.v[1:-1, 1:-1]
        )
        return np.where(self.s[1:-1, 1:-1] != 0.0, div, 0.0).astype(DTYPE)

    def save_state(self) -> dict:
        """
        Snapshot current state as numpy arrays (copies).
        """
        return {
            "velocity_u": self.u.copy(),
            "velocity_v": self.v.copy(),
            "pressure":   self.p.copy(),
            "obstacle":   self.s.copy(),
            "smoke":      self.m.copy(),
        }

    def reset(self):
        """Zero velocity and pressure and refill the smoke. The mask is kept."""
        for arr in [self.u, self.v, self.new_u, self.new_v, self.p, self.new_m]:
            arr[:] = 0.0
        self.m[:] = 1.0

    def __repr__(self):
        interior = self.s[1:-1, 1:-1]
        max_div = np.abs(self.compute_divergence()).max()
        max_vel = max(np.abs(self.u).max(), np.abs(self.v).max())
        return (
            f"FluidGrid({self.num_x - 2}x{self.num_y - 2} interior, h={self.h})\n"
            f"  fluid    : {int(interior.sum())}/{interior.size} cells\n"
            f"  velocity : max_component={max_vel:.4f}\n"
            f"  pressure : min={self.p.min():.4f}, max={self.p.max():.4f}\n"
            f"  divergence: max={max_div:.6f} (target: ~0)"
        )
