from __future__ import annotations

import dataclasses
import enum
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from .grid import DEFAULT_CONFIG, SimulationConfig, make_grid
from .physics import RECORD_FIELDS, IterationRecord, compute_record, norm_squared
from .presets import DEFAULT_PSI0_SOURCE, DEFAULT_V_SOURCE
from .settings import document_from, parse_document
from .solver_cn import EvolutionOperatorCache
from .sources import Psi0Callback, SourceBinding, VCallback, sample_psi0, sample_v

logger = logging.getLogger(__name__)


class SimulationState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    FAULTED = "faulted"


def _readonly(a: np.ndarray) -> np.ndarray:
    view = a.view()
    view.flags.writeable = False
    return view


_EMPTY_C = np.zeros(0, dtype=np.complex128)
_EMPTY_R = np.zeros(0, dtype=np.float64)


class Simulation:
    """Crank-Nicolson integrator for the 1D time-dependent Schrödinger equation.

    Owns the configuration, the Ψ0/V source bindings, the current state
    (x, V, psi, |psi|^2) and the per-step record history. Ψ0 and V samples
    come from two callbacks:

      psi0_fn(x) -> (ok, complex)
      v_fn(x, t) -> (ok, float)

    Any configuration change or new source text resets the simulation.
    Not thread-safe: callers serialize access to one instance.
    """

    def __init__(
        self,
        cfg: SimulationConfig = DEFAULT_CONFIG,
        psi0_fn: Optional[Psi0Callback] = None,
        v_fn: Optional[VCallback] = None,
        psi0_source: str = DEFAULT_PSI0_SOURCE,
        v_source: str = DEFAULT_V_SOURCE,
    ):
        self.psi0_fn = psi0_fn
        self.v_fn = v_fn
        self._cfg = cfg
        self._psi0 = SourceBinding(psi0_source)
        self._v_src = SourceBinding(v_source)
        self._ops = EvolutionOperatorCache()
        self.reset()

    # ---------- Lifecycle ----------

    def reset(self) -> None:
        self._iteration = 0
        self._faulted = False
        self._x = _EMPTY_R
        self._V = _EMPTY_R
        self._psi = _EMPTY_C
        self._psisq = _EMPTY_R
        self._records: List[IterationRecord] = []
        self._ops.clear()
        self._psi0.invalidate()
        self._v_src.invalidate()
        logger.debug("Simulation reset (n=%d)", self._cfg.n)

    @property
    def state(self) -> SimulationState:
        if self._iteration == 0:
            return SimulationState.UNINITIALIZED
        if self._faulted:
            return SimulationState.FAULTED
        return SimulationState.RUNNING

    def compute_next_iteration(self) -> bool:
        """Advance one time step and append one record.

        On a failed Ψ0 or V sample nothing is mutated apart from the failing
        binding being flagged not-ok; the same step can be retried later.
        """
        cfg = self._cfg
        if self._iteration == 0:
            x = make_grid(cfg)
            psi = sample_psi0(self.psi0_fn, x) if self.psi0_fn is not None else None
            if psi is None:
                self._psi0.ok = False
                logger.warning("Ψ0 sampling failed, simulation not started")
                return False
        else:
            x = self._x
            psi = self._ops.get(self._V, cfg) @ self._psi

        t = cfg.discrete_t(self._iteration)
        V = sample_v(self.v_fn, x, t) if self.v_fn is not None else None
        if V is None:
            self._v_src.ok = False
            self._faulted = self._iteration > 0
            logger.warning("V sampling failed at t=%g (iteration %d)", t, self._iteration)
            return False

        psisq = norm_squared(psi)
        record = compute_record(self._iteration, psi, psisq, x, V, cfg)

        self._x = x
        self._psi = psi
        self._psisq = psisq
        self._V = V
        self._records.append(record)
        self._iteration += 1
        self._faulted = False
        return True

    # ---------- Configuration ----------

    @property
    def config(self) -> SimulationConfig:
        return self._cfg

    def reconfigure(self, cfg: SimulationConfig) -> bool:
        """Replace the configuration; resets when anything changed."""
        if cfg == self._cfg:
            return False
        self._cfg = cfg
        self.reset()
        return True

    def _replace(self, **changes: float) -> bool:
        return self.reconfigure(dataclasses.replace(self._cfg, **changes))

    def set_hslash(self, hslash: float) -> bool:
        return self._replace(hslash=hslash)

    def set_mass(self, m: float) -> bool:
        return self._replace(m=m)

    def set_space_start(self, x_0: float) -> bool:
        return self._replace(x_0=x_0)

    def set_space_end(self, x_f: float) -> bool:
        return self._replace(x_f=x_f)

    def set_space_step(self, dx: float) -> bool:
        return self._replace(dx=dx)

    def set_time_start(self, t_0: float) -> bool:
        return self._replace(t_0=t_0)

    def set_time_step(self, dt: float) -> bool:
        return self._replace(dt=dt)

    def set_region_separators(self, left_sep: float, right_sep: float) -> bool:
        return self._replace(left_sep=left_sep, right_sep=right_sep)

    def update_all(self, hslash: float, m: float, t_0: float, dt: float, x_0: float, x_f: float, dx: float) -> None:
        """Set every physical field at once and always reset."""
        self._cfg = dataclasses.replace(self._cfg, hslash=hslash, m=m, t_0=t_0, dt=dt, x_0=x_0, x_f=x_f, dx=dx)
        self.reset()

    @property
    def dimensions(self) -> int:
        return self._cfg.n

    @property
    def iteration(self) -> int:
        return self._iteration

    def discrete_x(self, i: int) -> float:
        return self._cfg.discrete_x(i)

    def discrete_t(self, k: int) -> float:
        return self._cfg.discrete_t(k)

    # ---------- Sources ----------

    @property
    def psi0_source(self) -> str:
        return self._psi0.source

    @property
    def v_source(self) -> str:
        return self._v_src.source

    def update_psi0_source(self, src: str) -> bool:
        """Bind new Ψ0 source text. Identical text is a no-op (returns False)."""
        if self._psi0.matches(src):
            return False
        self._psi0.update(src)
        self.reset()
        return True

    def update_v_source(self, src: str) -> bool:
        """Bind new V source text. Identical text is a no-op (returns False)."""
        if self._v_src.matches(src):
            return False
        self._v_src.update(src)
        self.reset()
        return True

    def notify_psi0_source_evaluated(self, ok: bool) -> None:
        self._psi0.notify_evaluated(ok)

    def notify_v_source_evaluated(self, ok: bool) -> None:
        self._v_src.notify_evaluated(ok)

    def is_psi0_source_evaluated(self) -> bool:
        return self._psi0.evaluated

    def is_psi0_source_ok(self) -> bool:
        return self._psi0.ok

    def is_v_source_evaluated(self) -> bool:
        return self._v_src.evaluated

    def is_v_source_ok(self) -> bool:
        return self._v_src.ok

    # ---------- Settings document ----------

    def to_document(self) -> Dict[str, Any]:
        return document_from(self._cfg, self._psi0.source, self._v_src.source)

    def from_document(self, doc: Mapping[str, Any]) -> bool:
        """Load a settings document; False (and no change) if it is incomplete."""
        parsed = parse_document(doc)
        if parsed is None:
            logger.warning("Settings document rejected: missing or invalid fields")
            return False
        fields_, psi0_src, v_src = parsed
        self._psi0.update(psi0_src)
        self._v_src.update(v_src)
        self.update_all(**fields_)
        return True

    # ---------- Read-only queries ----------

    @property
    def x(self) -> np.ndarray:
        return _readonly(self._x)

    @property
    def v(self) -> np.ndarray:
        return _readonly(self._V)

    @property
    def psi(self) -> np.ndarray:
        return _readonly(self._psi)

    @property
    def psi_squared(self) -> np.ndarray:
        return _readonly(self._psisq)

    @property
    def records(self) -> Tuple[IterationRecord, ...]:
        return tuple(self._records)

    @property
    def record_size(self) -> int:
        return len(self._records)

    def history(self, field: str) -> np.ndarray:
        """All recorded values of one record field, oldest first."""
        if field not in RECORD_FIELDS:
            raise KeyError(f"Unknown record field: {field}")
        a = np.array([getattr(r, field) for r in self._records], dtype=np.float64)
        return _readonly(a)

    def current(self, field: str) -> float:
        """Most recent value of one record field."""
        if field not in RECORD_FIELDS:
            raise KeyError(f"Unknown record field: {field}")
        if not self._records:
            raise IndexError("No records yet")
        return getattr(self._records[-1], field)

    def records_frame(self) -> pd.DataFrame:
        """Record history as a DataFrame, one row per step."""
        return pd.DataFrame([dataclasses.asdict(r) for r in self._records], columns=list(RECORD_FIELDS))
