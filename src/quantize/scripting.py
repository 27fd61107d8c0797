from __future__ import annotations

import cmath
import logging
import math
from typing import Any, Dict, Optional, Tuple

import numpy as np
from scipy.special import eval_hermite

from .grid import SimulationConfig

logger = logging.getLogger(__name__)


def gauss(x: float, x0: float, k0: float, a: float) -> complex:
    """Normalized Gaussian packet centred at x0 with width a and wavenumber k0."""
    return (2.0 / (math.pi * a**2)) ** 0.25 * cmath.exp(1j * k0 * (x - x0)) * math.exp(-(((x - x0) / a) ** 2))


def hermite(n: int, x: float) -> float:
    """Physicists' Hermite polynomial H_n(x)."""
    return float(eval_hermite(int(n), x))


class PythonSourceEngine:
    """Evaluates Ψ0/V sources written in Python.

    A Ψ0 source must define ``psi0(x)`` and a V source ``V(x, t)``. Both are
    executed in one shared namespace (Ψ0 first, then V), so a name defined in
    the V source overrides the same name from the Ψ0 source. Passing the
    entry point name to ``evaluate`` drops the previous definition first, so
    a reworked source that no longer defines it does not keep the stale one.

    Errors raised by user code never escape: ``evaluate`` returns False and
    the ``try_evaluate_*`` callbacks return ``(False, 0)``.
    """

    def __init__(self, cfg: Optional[SimulationConfig] = None):
        self.namespace: Dict[str, Any] = {}
        self._dx = 0.0
        self._reset_namespace()
        if cfg is not None:
            self.bind_variables(cfg)

    def _reset_namespace(self) -> None:
        self.namespace.clear()
        self.namespace.update({
            "__builtins__": __builtins__,
            "np": np,
            "math": math,
            "cmath": cmath,
            "gauss": gauss,
            "delta": self.delta,
            "hermite": hermite,
        })

    def delta(self, x: float, x0: float, val: float) -> float:
        """Dirac delta approximation: val within one space step of x0, else 0."""
        return val if abs(x - x0) <= self._dx else 0.0

    def bind_variables(self, cfg: SimulationConfig) -> None:
        """Expose the simulation variables hslash, m, x0, xf, dx, t0, dt."""
        self._dx = float(cfg.dx)
        self.namespace.update({
            "hslash": cfg.hslash,
            "m": cfg.m,
            "x0": cfg.x_0,
            "xf": cfg.x_f,
            "dx": cfg.dx,
            "t0": cfg.t_0,
            "dt": cfg.dt,
        })

    def evaluate(self, src: str, entry: Optional[str] = None) -> bool:
        if entry is not None:
            self.namespace.pop(entry, None)
        try:
            exec(compile(src, "<source>", "exec"), self.namespace)
        except Exception as e:
            logger.warning("Source evaluation failed: %s: %s", type(e).__name__, e)
            return False
        return True

    def try_evaluate_psi0(self, x: float) -> Tuple[bool, complex]:
        fn = self.namespace.get("psi0")
        if not callable(fn):
            return False, 0j
        try:
            return True, complex(fn(x))
        except Exception as e:
            logger.debug("psi0(%r) failed: %s", x, e)
            return False, 0j

    def try_evaluate_v(self, x: float, t: float) -> Tuple[bool, float]:
        fn = self.namespace.get("V")
        if not callable(fn):
            return False, 0.0
        try:
            val = float(fn(x, t))
        except Exception as e:
            logger.debug("V(%r, %r) failed: %s", x, t, e)
            return False, 0.0
        if not math.isfinite(val):
            return False, 0.0
        return True, val
