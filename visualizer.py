"""
visualizer.py — Pressure / Smoke Viewer
=========================================
Renders the interior of the 2D simulation:
  - pressure field (scientific colormap) or smoke field (grayscale)
  - obstacles in black
  - optional streamlines traced through `FluidSimulation.sample()`

Uses matplotlib FuncAnimation for real-time updates. The viewer owns the
timing: it calls `simulate()` once per frame and only reads the fields back.
"""

import numpy as np
import matplotlib
import matplotlib.pyplot as plt
import matplotlib.animation as animation
from matplotlib.collections import LineCollection
from matplotlib.colors import LinearSegmentedColormap

from macfluid import Field

# Blue → cyan → green → yellow → red
SCI_COLORS = ["#0000ff", "#00ffff", "#00ff00", "#ffff00", "#ff0000"]
sci_cmap = LinearSegmentedColormap.from_list("sci", SCI_COLORS)
sci_cmap.set_bad("#000000")

smoke_cmap = matplotlib.colormaps["gray"].copy()
smoke_cmap.set_bad("#000000")

# Streamlines start every STREAMLINE_STRIDE cells
STREAMLINE_STRIDE = 5


def trace_streamline(sim, x: float, y: float, num_segments: int = 10,
                     segment_length: float = 0.01) -> np.ndarray:
    """
    Follow the velocity field from (x, y) in fixed-length steps.

    Stops early when the flow is at rest or the line leaves the domain.

    Returns: (k, 2) array of points in meters, starting with (x, y).
    """
    grid = sim.grid
    x_max = grid.num_x * grid.h
    points = [(x, y)]

    for _ in range(num_segments):
        u = sim.sample(x, y, Field.U)
        v = sim.sample(x, y, Field.V)
        speed = np.hypot(u, v)
        if speed == 0.0:
            break

        x += u / speed * segment_length
        y += v / speed * segment_length
        if x > x_max:
            break
        points.append((x, y))

    return np.asarray(points)


class FluidVisualizer:
    """
    Real-time viewer of the fluid simulation.

    Usage (standalone):
        from macfluid import FluidSimulation, SimulationConfig
        from visualizer import FluidVisualizer

        config = SimulationConfig(resolution=50)
        sim = FluidSimulation.from_config(config)
        viz = FluidVisualizer(sim, config)
        viz.run()  # Opens live window
    """

    def __init__(self, simulation, config, show_pressure: bool = True,
                 show_streamlines: bool = True):
        """
        Args:
            simulation       : FluidSimulation instance
            config           : SimulationConfig with dt / iterations / over_relaxation
            show_pressure    : Pressure map if True, smoke otherwise
            show_streamlines : Overlay streamlines
        """
        self.sim = simulation
        self.config = config
        self.show_pressure = show_pressure
        self.show_streamlines = show_streamlines

        self._setup_figure()

    def _setup_figure(self):
        g = self.sim.grid
        self.fig, self.ax = plt.subplots(figsize=(10, 10 * g.num_y / g.num_x))
        self.fig.patch.set_facecolor('#0a0a0a')
        self.ax.set_xticks([])
        self.ax.set_yticks([])

        extent = (g.h, (g.num_x - 1) * g.h, g.h, (g.num_y - 1) * g.h)
        self.img = self.ax.imshow(
            self._field_image(),
            cmap=sci_cmap if self.show_pressure else smoke_cmap,
            interpolation='nearest',
            origin='lower',
            extent=extent,
            aspect='equal'
        )

        self.lines = LineCollection([], colors='red', linewidths=1.0)
        self.ax.add_collection(self.lines)

        self.title_text = self.ax.set_title(
            "", color='#cccccc', fontsize=10, fontfamily='monospace'
        )
        plt.tight_layout()

    def _field_image(self) -> np.ma.MaskedArray:
        """Interior field transposed for imshow (x horizontal), obstacles masked."""
        g = self.sim.grid
        if self.show_pressure:
            data = self.sim.pressure().reshape(g.shape)
        else:
            data = g.m
        interior = data[1:-1, 1:-1].T
        solid = g.s[1:-1, 1:-1].T == 0.0
        return np.ma.masked_array(interior, mask=solid)

    def _streamlines(self) -> list:
        g = self.sim.grid
        h = g.h
        lines = []
        for i in range(1, g.num_x - 1, STREAMLINE_STRIDE):
            for j in range(1, g.num_y - 1, STREAMLINE_STRIDE):
                line = trace_streamline(self.sim, (i + 0.5) * h, (j + 0.5) * h)
                if len(line) > 1:
                    lines.append(line)
        return lines

    def update(self, frame_num):
        """Called by FuncAnimation each frame. Steps sim and updates the plot."""
        c = self.config
        if c.dt <= 0:
            return [self.img, self.lines, self.title_text]

        metrics = self.sim.simulate(c.dt, c.iterations, c.over_relaxation)

        image = self._field_image()
        self.img.set_data(image)
        if image.count():
            self.img.set_clim(image.min(), image.max())

        self.lines.set_segments(self._streamlines() if self.show_streamlines else [])

        p = self.sim.pressure()
        self.title_text.set_text(
            f"min: {p.min():.2f} max: {p.max():.2f} | step {metrics['step']} | "
            f"{metrics['fps']:.1f} FPS"
        )
        return [self.img, self.lines, self.title_text]

    def run(self, fps: int = 60, frames: int = None):
        """
        Start the live animation window.

        Args:
            fps    : Target animation frame rate
            frames : Total frames to render (None = infinite)
        """
        interval_ms = 1000 // fps
        self.anim = animation.FuncAnimation(
            self.fig,
            self.update,
            frames=frames,
            interval=interval_ms,
            blit=False,
            cache_frame_data=False
        )
        plt.show()

    def save_gif(self, path: str = "fluid_sim.gif", fps: int = 30, frames: int = 100):
        """Save animation as a GIF (for reports and demos)."""
        print(f"Rendering {frames} frames to {path}...")
        self.anim = animation.FuncAnimation(
            self.fig, self.update, frames=frames, interval=1000 // fps, blit=False
        )
        writer = animation.PillowWriter(fps=fps)
        self.anim.save(path, writer=writer)
        print(f"Saved: {path}")
