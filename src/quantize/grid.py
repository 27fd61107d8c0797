from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class SimulationConfig:
    """Physical constants plus the uniform space/time discretization.

    No validation happens here: degenerate values are carried as-is and
    the derived dimension count may be non-positive.
    """

    hslash: float = 1.0
    m: float = 0.5
    t_0: float = 0.0
    dt: float = 0.001
    x_0: float = -1.0
    x_f: float = 3.0
    dx: float = 0.02
    # probability regions: x <= left_sep, left_sep < x < right_sep, x >= right_sep
    left_sep: float = -0.5
    right_sep: float = 0.5

    @property
    def n(self) -> int:
        """Dimension count floor((x_f - x_0) / dx) + 1."""
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            q = np.float64(self.x_f - self.x_0) / np.float64(self.dx)
        if not np.isfinite(q):
            return 0
        return int(math.floor(q)) + 1

    def discrete_x(self, i: int) -> float:
        return self.x_0 + i * self.dx

    def discrete_t(self, k: int) -> float:
        return self.t_0 + k * self.dt


DEFAULT_CONFIG = SimulationConfig()


def make_grid(cfg: SimulationConfig) -> np.ndarray:
    """Discretized positions x_i = x_0 + i * dx (empty for a degenerate grid)."""
    n = max(cfg.n, 0)
    return cfg.x_0 + np.arange(n, dtype=np.float64) * cfg.dx
