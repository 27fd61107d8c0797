from __future__ import annotations

from typing import Optional

import numpy as np
import scipy.linalg as sla

from .grid import SimulationConfig


def evolution_matrix(V_np: np.ndarray, cfg: SimulationConfig) -> np.ndarray:
    """Implicit half-step matrix M of the Crank-Nicolson scheme.

    Interior rows discretize:
      M = 1/2 (1 + r (2 + dx^2 v)),   off-diagonals -r/2

    with r = i hbar^2 dt / (4 dx^2 m) and v = V 2m / hbar^2. Rows 0 and n-1
    are identity rows, which holds the amplitude at the interval edges
    (an infinite wall just outside [x_0, x_f]).
    """
    assert V_np.ndim == 1

    n = V_np.size
    hslash2 = cfg.hslash**2
    dx2 = cfg.dx**2
    r = 1j * (hslash2 * cfg.dt) / (4.0 * dx2 * cfg.m)

    M = np.zeros((n, n), dtype=np.complex128)
    if n == 0:
        return M

    M[0, 0] = 1.0
    M[n - 1, n - 1] = 1.0

    idx = np.arange(1, n - 1)
    v_int = V_np[idx] * ((2.0 * cfg.m) / hslash2)
    M[idx, idx] = 0.5 * (1.0 + r * (2.0 + dx2 * v_int))
    M[idx, idx - 1] = 0.5 * (-r)
    M[idx, idx + 1] = 0.5 * (-r)
    return M


def evolution_operator(V_np: np.ndarray, cfg: SimulationConfig) -> np.ndarray:
    """Per-step propagator inv(M) - 1 (dense, O(n^3))."""
    M = evolution_matrix(V_np, cfg)
    n = M.shape[0]
    if n == 0:
        return M
    return sla.inv(M) - np.eye(n, dtype=np.complex128)


class EvolutionOperatorCache:
    """Keeps the last propagator and reuses it for a bit-identical potential.

    A time-dependent V produces a fresh sample every step and therefore a
    fresh inverse; a static V is inverted once.
    """

    def __init__(self) -> None:
        self._key: Optional[tuple] = None
        self._op: Optional[np.ndarray] = None
        self.hits = 0
        self.misses = 0

    def clear(self) -> None:
        self._key = None
        self._op = None

    def get(self, V_np: np.ndarray, cfg: SimulationConfig) -> np.ndarray:
        key = (cfg, V_np.tobytes())
        if self._op is not None and key == self._key:
            self.hits += 1
            return self._op
        self.misses += 1
        self._op = evolution_operator(V_np, cfg)
        self._key = key
        return self._op
