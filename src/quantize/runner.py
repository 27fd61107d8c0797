from __future__ import annotations

import dataclasses
import math
import time
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd

from .grid import SimulationConfig
from .scripting import PythonSourceEngine
from .simulation import Simulation

# Dense inversion is O(n^3) per step; keep the grid and the run bounded.
MAX_SUPPORTED_DIMENSIONS = 400
MAX_SUPPORTED_ITERATIONS = 5000


ProgressCallback = Callable[[int, Dict[str, float]], None]


def validate_config(cfg: SimulationConfig, max_dimensions: int = MAX_SUPPORTED_DIMENSIONS) -> List[str]:
    """Errors that must be fixed before the simulation may run."""
    errors: List[str] = []
    bad = [f.name for f in dataclasses.fields(cfg) if not math.isfinite(getattr(cfg, f.name))]
    if bad:
        return [f"simulation parameters must be finite numbers (got non-finite {', '.join(bad)})"]
    if cfg.x_0 == cfg.x_f:
        errors.append("x0 must not equal to xf")
    elif cfg.x_0 > cfg.x_f:
        errors.append("x0 must be smaller than xf")
    elif cfg.dx <= 0:
        errors.append("space step must be strictly positive")
    elif cfg.n <= 0:
        errors.append("no discretization dimensions, too small space step for the space start/end interval")
    elif cfg.n > max_dimensions:
        errors.append(
            f"too many discretization dimensions ({cfg.n} > limit={max_dimensions}), "
            "too small space step and/or too big space start/end interval"
        )
    if cfg.dt <= 0:
        errors.append("time step must be strictly positive")
    if cfg.hslash <= 0:
        errors.append("hslash must be strictly positive")
    if cfg.m <= 0:
        errors.append("mass must be strictly positive")
    return errors


def ensure_sources_evaluated(sim: Simulation, engine: PythonSourceEngine) -> List[str]:
    """Evaluate every unevaluated binding (Ψ0 first, then V) and report bad ones."""
    errors: List[str] = []
    if not sim.is_psi0_source_evaluated():
        engine.bind_variables(sim.config)
        sim.notify_psi0_source_evaluated(engine.evaluate(sim.psi0_source, entry="psi0"))
    if not sim.is_psi0_source_ok():
        errors.append("Ψ0 source error")

    if not sim.is_v_source_evaluated():
        engine.bind_variables(sim.config)
        sim.notify_v_source_evaluated(engine.evaluate(sim.v_source, entry="V"))
    if not sim.is_v_source_ok():
        errors.append("V source error")
    return errors


def tick(sim: Simulation, engine: PythonSourceEngine, max_iterations: int = MAX_SUPPORTED_ITERATIONS) -> List[str]:
    """One host-loop tick: evaluate sources, validate, then step at most once."""
    errors = ensure_sources_evaluated(sim, engine)
    errors += validate_config(sim.config)
    if errors or sim.iteration >= max_iterations:
        return errors

    first = sim.iteration == 0
    if not sim.compute_next_iteration():
        prefix = "error in initial" if first else "error in"
        if not sim.is_psi0_source_ok():
            errors.append(f"{prefix} Ψ0 invocation")
        if not sim.is_v_source_ok():
            errors.append(f"{prefix} V invocation")
    return errors


def make_simulation(cfg: SimulationConfig, engine: Optional[PythonSourceEngine] = None, **kwargs) -> Tuple[Simulation, PythonSourceEngine]:
    """Simulation wired to a Python source engine."""
    engine = engine or PythonSourceEngine(cfg)
    sim = Simulation(cfg, psi0_fn=engine.try_evaluate_psi0, v_fn=engine.try_evaluate_v, **kwargs)
    return sim, engine


def run_simulation(
    sim: Simulation,
    engine: PythonSourceEngine,
    steps: int,
    progress: Optional[ProgressCallback] = None,
    print_every: int = 100,
    tag: str = "sim",
) -> Tuple[pd.DataFrame, List[str]]:
    """Tick until `steps` records exist or an error stops the run.

    Returns the record history (DataFrame) and the errors of the last tick.
    """
    steps = min(int(steps), MAX_SUPPORTED_ITERATIONS)
    errors: List[str] = []
    t0 = time.time()

    while sim.record_size < steps:
        errors = tick(sim, engine)
        if errors:
            for err in errors:
                print(f"[{tag}] ERROR: {err}")
            break

        step = sim.iteration
        row = {"iteration": float(step), "norm": sim.current("norm"), "energy_est": sim.current("energy_est")}
        if progress is not None:
            progress(step, row)
        if step % int(print_every) == 0 or step == 1:
            dt = time.time() - t0
            print(f"[{tag}] step={step}/{steps} norm={row['norm']:.8f} E={row['energy_est']:.8f} t={dt:.1f}s")

    return sim.records_frame(), errors
