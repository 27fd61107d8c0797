"""Run a quantize simulation from a saved settings JSON.

Usage:
  python scripts/run_from_settings.py <path/to/settings.json> [steps]

Notes:
- The settings document holds t_0, x_0, x_f, dt, dx, hslash, m, psi0_src, v_src.
- Ψ0 and V sources are Python code defining psi0(x) and V(x, t).
- Results land in a new run folder under QUANTIZE_OUTPUT_DIR; library log
  messages of the run go to its logs/run.log.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np

from quantize.grid import DEFAULT_CONFIG
from quantize.plotting import (
    plot_energy,
    plot_momentum_estimates,
    plot_position_estimates,
    plot_region_probabilities,
    plot_space,
    plot_uncertainty,
    save_fig,
)
from quantize.runner import make_simulation, run_simulation
from quantize.settings import load_settings
from quantize.trace import RunContext


def main(settings_path: Path, steps: int = 500) -> int:
    doc = load_settings(settings_path)

    sim, engine = make_simulation(DEFAULT_CONFIG)
    if not sim.from_document(doc):
        print("Invalid settings JSON! Expected fields: t_0, x_0, x_f, dt, dx, hslash, m, psi0_src, v_src")
        return 1

    ctx = RunContext.create(kind="run", tag=settings_path.stem)
    ctx.save_env()
    ctx.save_settings(sim.to_document())

    log_handler = ctx.attach_log_file()
    try:
        df, errors = run_simulation(sim, engine, steps, tag=settings_path.stem)
    finally:
        ctx.detach_log_file(log_handler)
    if sim.record_size == 0:
        print("Simulation did not start:", "; ".join(errors))
        return 1

    df.to_csv(ctx.data_dir / "records.csv", index=False)
    np.savez(ctx.data_dir / "final_state.npz", x=sim.x, V=sim.v, psi=sim.psi, psisq=sim.psi_squared)

    save_fig(plot_space(sim.x, sim.psi_squared, sim.v), ctx.figures_dir, "space.png")
    save_fig(plot_position_estimates(df), ctx.figures_dir, "position.png")
    save_fig(plot_momentum_estimates(df), ctx.figures_dir, "momentum.png")
    save_fig(plot_uncertainty(df, hslash=sim.config.hslash), ctx.figures_dir, "uncertainty.png")
    save_fig(plot_energy(df), ctx.figures_dir, "energy.png")
    save_fig(plot_region_probabilities(df), ctx.figures_dir, "regions.png")

    print(f"Ran {sim.iteration} iterations. Final norm: {sim.current('norm'):.8f}. Output: {ctx.run_dir}")
    return 0 if not errors else 2


if __name__ == "__main__":
    if len(sys.argv) not in (2, 3):
        raise SystemExit("Usage: python scripts/run_from_settings.py <path/to/settings.json> [steps]")
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(main(Path(sys.argv[1]), int(sys.argv[2]) if len(sys.argv) == 3 else 500))
