"""
simulation.py — Master Physics Loop
====================================
This is the complete simulation step that ties everything together.
One call to `simulate()` advances the fluid by dt seconds.

Physics pipeline per step (fixed order, nothing kept between steps except
the buffers themselves):
  1. Integrate gravity into v
  2. Clear pressure
  3. Project velocity (enforce incompressibility)
  4. Extrapolate border velocities
  5. Advect velocity (self-advection)
  6. Advect smoke

This follows the Eulerian fluid of "Ten Minute Physics" (M. Müller).

The host (CLI, viewer) owns timing and display; it configures a scenario,
calls `simulate()` once per tick and reads `pressure()` / `sample()`.
Nothing here is thread-safe: one caller at a time per instance.
"""

import logging
import time
from collections import deque
from typing import Iterable, Union

import numpy as np

from .advect import advect_smoke, advect_velocity
from .forces import apply_gravity
from .grid import Field, FluidGrid
from .obstacles import Shape
from .sampler import sample_field
from .solver import MODE_GAUSS_SEIDEL, PROJECTION_MODES, extrapolate, project
from . import obstacles

log = logging.getLogger(__name__)


SCENARIO_TANK   = "tank"
SCENARIO_VORTEX = "vortex"
SCENARIOS       = (SCENARIO_TANK, SCENARIO_VORTEX)

# Per-step metrics kept for benchmarking
PERF_LOG_SIZE = 1000


class FluidSimulation:
    """
    The complete 2D fluid simulation.

    Usage:
        sim = FluidSimulation.create(gravity=0.0, interior_w=20, interior_h=10,
                                     cell_size=1.0, density=1.0)
        sim.vortex_shedding(2.0, [Circular(x=10, y=5, r=2)])
        for frame in range(100):
            sim.simulate(dt=0.1, iterations=20, over_relaxation=1.9)
            p = sim.pressure()              # Hand to the renderer
    """

    def __init__(self, gravity: float, num_x: int, num_y: int, h: float,
                 density: float, projection_mode: str = MODE_GAUSS_SEIDEL):
        """
        Args:
            gravity         : Vertical acceleration (m/s², negative is down)
            num_x, num_y    : Interior cell counts
            h               : Cell size (m)
            density         : Fluid density (kg/m³)
            projection_mode : MODE_GAUSS_SEIDEL (default) or MODE_RED_BLACK
        """
        if projection_mode not in PROJECTION_MODES:
            raise ValueError(f"Unknown projection mode: {projection_mode}. Use one of {PROJECTION_MODES}.")

        self.grid = FluidGrid(gravity, num_x, num_y, h, density)
        self.mode = projection_mode
        self.step_count = 0
        self.perf_log = deque(maxlen=PERF_LOG_SIZE)

    @classmethod
    def create(cls, gravity: float, interior_w: int, interior_h: int,
               cell_size: float, density: float) -> "FluidSimulation":
        """Allocate a simulation; the obstacle mask stays all-solid until configured."""
        return cls(gravity, interior_w, interior_h, cell_size, density)

    @classmethod
    def from_config(cls, config) -> "FluidSimulation":
        """Build and configure a simulation from a `SimulationConfig`."""
        num_x, num_y = config.interior_dims
        sim = cls(config.gravity, num_x, num_y, config.cell_size, config.density,
                  projection_mode=config.projection_mode)
        sim.configure(config.scenario, inflow_velocity=config.inflow_velocity,
                      shapes=config.obstacles)
        return sim

    def set_projection_mode(self, mode: str):
        """
        Switch the pressure solver between MODE_GAUSS_SEIDEL and MODE_RED_BLACK.
        """
        if mode not in PROJECTION_MODES:
            raise ValueError(f"Unknown projection mode: {mode}. Use one of {PROJECTION_MODES}.")
        self.mode = mode
        log.info("Projection mode switched to: %s", mode)

    # ── Obstacles & scenarios ──────────────────────────────────────────────

    def clear_obstacles(self):
        obstacles.clear_obstacles(self.grid)

    def tank(self):
        obstacles.tank(self.grid)

    def vortex_shedding(self, inflow_velocity: float, shapes: Iterable[Shape] = ()):
        obstacles.vortex_shedding(self.grid, inflow_velocity, shapes)

    def add_obstacle(self, shape: Shape):
        obstacles.add_obstacle(self.grid, shape)

    def add_obstacles(self, shapes: Iterable[Shape]):
        obstacles.add_obstacles(self.grid, shapes)

    def configure(self, scenario: str, inflow_velocity: float = 2.0,
                  shapes: Iterable[Shape] = ()):
        """
        Switch to a named scenario: clear the mask, then set it up.

        Args:
            scenario        : "tank" or "vortex"
            inflow_velocity : Inflow speed (vortex only)
            shapes          : Obstacles to stamp (vortex only)
        """
        if scenario not in SCENARIOS:
            raise ValueError(f"Unknown scenario: {scenario}. Use one of {SCENARIOS}.")

        self.clear_obstacles()
        if scenario == SCENARIO_TANK:
            self.tank()
        else:
            self.vortex_shedding(inflow_velocity, shapes)

    # ── Stepping ───────────────────────────────────────────────────────────

    def simulate(self, dt: float, iterations: int = 40, over_relaxation: float = 1.9) -> dict:
        """
        Advance the simulation by one timestep.

        `dt` must be strictly positive; it is not checked here (the pressure
        coefficient divides by it). Hosts skip the call for dt <= 0.

        Args:
            dt              : Timestep (s)
            iterations      : Pressure solver sweeps (fixed, no convergence test)
            over_relaxation : Correction multiplier, typically in [1, 2)

        Returns performance metrics dict for benchmarking.
        """
        t_total_start = time.perf_counter()
        g = self.grid

        # ── Step 1: Gravity ────────────────────────────────────────────────
        t0 = time.perf_counter()
        apply_gravity(g, dt)
        t_forces = (time.perf_counter() - t0) * 1000

        # ── Steps 2-3: Clear pressure, project ─────────────────────────────
        proj_metrics = project(g, dt, iterations=iterations,
                               over_relaxation=over_relaxation, mode=self.mode)

        # ── Step 4: Border extrapolation ───────────────────────────────────
        extrapolate(g)

        # ── Step 5: Advect velocity ────────────────────────────────────────
        t0 = time.perf_counter()
        advect_velocity(g, dt)
        t_advect_vel = (time.perf_counter() - t0) * 1000

        # ── Step 6: Advect smoke ───────────────────────────────────────────
        t0 = time.perf_counter()
        advect_smoke(g, dt)
        t_advect_smoke = (time.perf_counter() - t0) * 1000

        # ── Frame bookkeeping ──────────────────────────────────────────────
        self.step_count += 1
        t_total = (time.perf_counter() - t_total_start) * 1000

        metrics = {
            "step"            : self.step_count,
            "mode"            : self.mode,
            "total_ms"        : t_total,
            "fps"             : 1000.0 / t_total if t_total > 0 else 0,
            "forces_ms"       : t_forces,
            "project_ms"      : proj_metrics["time_ms"],
            "advect_vel_ms"   : t_advect_vel,
            "advect_smoke_ms" : t_advect_smoke,
            "divergence_max"  : proj_metrics["divergence_after_max"],
            "divergence_mean" : proj_metrics["divergence_after_mean"],
            "smoke_total"     : float(g.m[1:-1, 1:-1].sum()),
        }
        self.perf_log.append(metrics)
        log.debug("step %d: %.1fms, div_max=%.6f", self.step_count, t_total,
                  metrics["divergence_max"])
        return metrics

    # ── Read-out for the renderer ──────────────────────────────────────────

    def pressure(self) -> np.ndarray:
        """Read-only flat copy of the pressure buffer (i * num_y + j order)."""
        return self.grid.pressure()

    def sample(self, x, y, component: Union[Field, str]):
        """
        Bilinearly sampled u, v or smoke at physical coordinates (x, y).

        `component` is a Field or its value ("u", "v", "smoke").
        """
        return sample_field(self.grid, x, y, Field(component))

    def status(self) -> str:
        """One-screen summary of the current state."""
        g = self.grid
        div = g.compute_divergence()
        lines = [
            f"Step: {self.step_count}  |  Mode: {self.mode}",
            f"  Smoke     : min={g.m.min():.4f}, total={g.m[1:-1, 1:-1].sum():.2f}",
            f"  Velocity  : max_u={np.abs(g.u).max():.4f}, max_v={np.abs(g.v).max():.4f}",
            f"  Divergence: max={np.abs(div).max():.6f}, mean={np.abs(div).mean():.8f}",
            f"  Pressure  : min={g.p.min():.4f}, max={g.p.max():.4f}",
        ]
        if self.perf_log:
            last = self.perf_log[-1]
            lines.append(f"  Perf      : {last['total_ms']:.1f}ms/step ({last['fps']:.1f} FPS)")
        return "\n".join(lines)
