"""
main.py — Master Entry Point
=============================
Top-level script that hosts the simulation: it owns the timing loop and the
display, configures a scenario and calls `simulate()` once per tick.

Usage:
    python main.py                               # Headless run (default)
    python main.py --mode live                   # Live visualization
    python main.py --mode benchmark              # Per-step timing breakdown
    python main.py --scenario tank --resolution 60
    python main.py --projection red-black        # Vectorized pressure solver
"""

import argparse
import logging

import numpy as np

from macfluid import MODE_GAUSS_SEIDEL, MODE_RED_BLACK, FluidSimulation, SimulationConfig

log = logging.getLogger(__name__)

PROJECTION_CHOICES = {
    "gauss-seidel": MODE_GAUSS_SEIDEL,
    "red-black": MODE_RED_BLACK,
}


def run_live(config: SimulationConfig, show_pressure: bool = True):
    """Live interactive visualization."""
    from visualizer import FluidVisualizer

    print(f"Starting live simulation ({config.scenario}, resolution={config.resolution})...")
    print("Close the window to exit.\n")

    sim = FluidSimulation.from_config(config)
    viz = FluidVisualizer(sim, config, show_pressure=show_pressure)
    viz.run()


def run_headless(config: SimulationConfig, frames: int = 100):
    """Run simulation without display, printing stats every 10 steps."""
    print(f"\nHeadless simulation | {config.scenario} | {frames} steps")
    print(f"{'─'*60}")

    sim = FluidSimulation.from_config(config)
    if config.dt <= 0:
        print(f"  dt={config.dt} is not positive, nothing to simulate")
        return

    total_times = []
    for f in range(frames):
        metrics = sim.simulate(config.dt, config.iterations, config.over_relaxation)
        total_times.append(metrics["total_ms"])

        if f % 10 == 0:
            print(f"  Step {f:03d} | {metrics['total_ms']:7.1f}ms "
                  f"({metrics['fps']:.1f} FPS) | "
                  f"div_max={metrics['divergence_max']:.5f} | "
                  f"smoke={metrics['smoke_total']:.1f}")

    print(f"\n{'─'*60}")
    print(sim.status())
    if not total_times:
        return
    print(f"\n  Average: {np.mean(total_times):.1f}ms/step ({1000/np.mean(total_times):.1f} FPS)")
    print(f"  Min:     {np.min(total_times):.1f}ms")
    print(f"  Max:     {np.max(total_times):.1f}ms")


def run_benchmark(config: SimulationConfig, frames: int = 50):
    """
    Detailed performance breakdown.
    Shows how long each physics step takes.
    """
    print(f"\n{'='*60}")
    print(f"  BENCHMARK | {config.scenario} | {config.projection_mode} | {frames} steps")
    print(f"{'='*60}")

    sim = FluidSimulation.from_config(config)
    if config.dt <= 0:
        print(f"  dt={config.dt} is not positive, nothing to simulate")
        return

    # Warm up
    for _ in range(5):
        sim.simulate(config.dt, config.iterations, config.over_relaxation)

    logs = [sim.simulate(config.dt, config.iterations, config.over_relaxation)
            for _ in range(frames)]
    if not logs:
        return

    keys = ["forces_ms", "project_ms", "advect_vel_ms", "advect_smoke_ms", "total_ms"]

    print(f"\n{'Step':<20} {'Mean':>8} {'Min':>8} {'Max':>8}")
    print(f"{'─'*50}")
    for k in keys:
        vals = [m[k] for m in logs]
        print(f"  {k:<18} {np.mean(vals):>7.1f}ms {np.min(vals):>7.1f}ms {np.max(vals):>7.1f}ms")

    total_vals = [m["total_ms"] for m in logs]
    print(f"\n{'─'*50}")
    print(f"  FPS (physics only): {1000/np.mean(total_vals):.1f}")


def build_config(args: argparse.Namespace) -> SimulationConfig:
    """Turn parsed CLI arguments into a SimulationConfig."""
    return SimulationConfig(
        aspect_ratio=args.aspect,
        resolution=args.resolution,
        dt=args.dt,
        iterations=args.iterations,
        over_relaxation=args.over_relaxation,
        projection_mode=PROJECTION_CHOICES[args.projection],
        scenario=args.scenario,
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="2D Eulerian Fluid Simulation")
    parser.add_argument(
        "--mode", choices=["live", "headless", "benchmark"],
        default="headless",
        help="Run mode (default: headless)"
    )
    parser.add_argument("--scenario", choices=["tank", "vortex"], default="vortex",
                        help="Obstacle setup (default: vortex)")
    parser.add_argument("--resolution", type=int, default=50,
                        help="Interior cells along the domain height (default: 50)")
    parser.add_argument("--aspect", type=float, default=16 / 9,
                        help="Domain width / height (default: 16/9)")
    parser.add_argument("--dt", type=float, default=1 / 60, help="Timestep in seconds")
    parser.add_argument("--iterations", type=int, default=40, help="Pressure solver sweeps")
    parser.add_argument("--over-relaxation", type=float, default=1.9,
                        help="Pressure correction multiplier (default: 1.9)")
    parser.add_argument("--projection", choices=sorted(PROJECTION_CHOICES),
                        default="gauss-seidel", help="Pressure solver variant")
    parser.add_argument("--smoke", action="store_true",
                        help="Show smoke instead of pressure in live mode")
    parser.add_argument("--frames", type=int, default=100, help="Number of steps")
    parser.add_argument("--log-level", default="WARNING", help="Python logging level")
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    config = build_config(args)
    log.info("Config: %s", config.to_dict())

    if args.mode == "live":
        run_live(config, show_pressure=not args.smoke)
    elif args.mode == "headless":
        run_headless(config, frames=args.frames)
    elif args.mode == "benchmark":
        run_benchmark(config, frames=args.frames)
