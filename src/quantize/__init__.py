"""Quantize: Crank-Nicolson integrator for the 1D time-dependent Schrödinger equation."""

from .grid import DEFAULT_CONFIG, SimulationConfig, make_grid
from .physics import RECORD_FIELDS, IterationRecord, compute_record
from .presets import DEFAULT_PSI0_SOURCE, DEFAULT_V_SOURCE, available_psi0_presets, available_v_presets
from .scripting import PythonSourceEngine
from .settings import SETTINGS_KEYS, load_settings, save_settings
from .simulation import Simulation, SimulationState
from .runner import make_simulation, run_simulation, tick, validate_config
