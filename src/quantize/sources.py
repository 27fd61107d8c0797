from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

# Both callbacks report failure through the boolean, never by raising.
Psi0Callback = Callable[[float], Tuple[bool, complex]]
VCallback = Callable[[float, float], Tuple[bool, float]]


@dataclass
class SourceBinding:
    """Source text of Ψ0 or V plus its evaluation status."""

    source: str
    evaluated: bool = False
    ok: bool = False

    def matches(self, source: str) -> bool:
        return self.source == source

    def update(self, source: str) -> None:
        self.source = source
        self.invalidate()

    def invalidate(self) -> None:
        self.evaluated = False
        self.ok = False

    def notify_evaluated(self, ok: bool) -> None:
        self.evaluated = True
        self.ok = bool(ok)


def sample_psi0(fn: Psi0Callback, x_np: np.ndarray) -> Optional[np.ndarray]:
    """Ψ0(x_i) at every grid point, or None on the first failed sample."""
    out = np.zeros(x_np.size, dtype=np.complex128)
    for i, x in enumerate(x_np):
        ok, val = fn(float(x))
        if not ok:
            return None
        out[i] = complex(val)
    return out


def sample_v(fn: VCallback, x_np: np.ndarray, t: float) -> Optional[np.ndarray]:
    """V(x_i, t) at every grid point, or None on a failed or non-finite sample."""
    out = np.zeros(x_np.size, dtype=np.float64)
    for i, x in enumerate(x_np):
        ok, val = fn(float(x), float(t))
        if not ok or not math.isfinite(val):
            return None
        out[i] = val
    return out
