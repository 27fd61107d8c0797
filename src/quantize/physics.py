from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Tuple

import numpy as np

from .grid import SimulationConfig


def riemann_sum(y: np.ndarray, dx: float) -> float:
    """Left Riemann sum on a uniform grid: Σ y_i dx."""
    return float(np.sum(y) * dx)


def forward_derivative(v: np.ndarray, dx: float) -> np.ndarray:
    """Forward difference dv/dx, taking the value past the last point as zero."""
    nxt = np.append(v[1:], 0.0)
    return (nxt - v) / dx


def second_derivative(v: np.ndarray, dx: float) -> np.ndarray:
    """Central second difference, taking values outside the grid as zero.

    The zero padding only feeds the estimate; the state itself is untouched.
    """
    padded = np.concatenate(([0.0], v, [0.0]))
    return (padded[2:] - 2.0 * padded[1:-1] + padded[:-2]) / dx**2


def norm_squared(psi: np.ndarray) -> np.ndarray:
    """Component-wise |psi_i|^2."""
    return psi.real**2 + psi.imag**2


def region_masses(x: np.ndarray, psisq: np.ndarray, dx: float, left_sep: float, right_sep: float) -> Tuple[float, float, float]:
    """Unnormalized (left, middle, right) probability masses."""
    left = x <= left_sep
    right = (x >= right_sep) & ~left
    mid = ~(left | right)
    return (
        riemann_sum(psisq[left], dx),
        riemann_sum(psisq[mid], dx),
        riemann_sum(psisq[right], dx),
    )


def expectation(psi: np.ndarray, op_psi: np.ndarray, dx: float) -> float:
    """Re Σ conj(psi_i) (A psi)_i dx, unnormalized."""
    return float(np.real(np.sum(np.conj(psi) * op_psi * dx)))


def _spread(mean_sq: float, mean: float) -> float:
    # roundoff can push a vanishing variance slightly negative
    return float(np.sqrt(max(mean_sq - mean**2, 0.0)))


@dataclass(frozen=True)
class IterationRecord:
    """Observable estimates for one simulation step."""

    iteration: int
    norm: float
    x_est: float
    x2_est: float
    delta_x: float
    p_est: float
    p2_est: float
    delta_p: float
    delta_product: float
    energy_est: float
    left_prob: float
    mid_prob: float
    right_prob: float


RECORD_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(IterationRecord))


def compute_record(
    iteration: int,
    psi: np.ndarray,
    psisq: np.ndarray,
    x: np.ndarray,
    Vx: np.ndarray,
    cfg: SimulationConfig,
) -> IterationRecord:
    """Estimate every observable from the current state.

    Integrals are Riemann sums with cell dx and every estimate is divided by
    the norm, so an unnormalized psi is fine. A zero norm gives NaN estimates.
    """
    dx = cfg.dx
    with np.errstate(divide="ignore", invalid="ignore"):
        nrm = riemann_sum(psisq, dx)
        left, mid, right = (np.float64(mass) / nrm for mass in region_masses(x, psisq, dx, cfg.left_sep, cfg.right_sep))

        x_est = np.float64(riemann_sum(x * psisq, dx)) / nrm
        x2_est = np.float64(riemann_sum(x**2 * psisq, dx)) / nrm
        delta_x = _spread(x2_est, x_est)

        p_psi = -1j * cfg.hslash * forward_derivative(psi, dx)
        p2_psi = -(cfg.hslash**2) * second_derivative(psi, dx)
        p_est = np.float64(expectation(psi, p_psi, dx)) / nrm
        p2_est = np.float64(expectation(psi, p2_psi, dx)) / nrm
        delta_p = _spread(p2_est, p_est)

        h_psi = p2_psi / (2.0 * cfg.m) + Vx * psi
        energy_est = np.float64(expectation(psi, h_psi, dx)) / nrm

    return IterationRecord(
        iteration=int(iteration),
        norm=float(nrm),
        x_est=float(x_est),
        x2_est=float(x2_est),
        delta_x=delta_x,
        p_est=float(p_est),
        p2_est=float(p2_est),
        delta_p=delta_p,
        delta_product=float(delta_x * delta_p),
        energy_est=float(energy_est),
        left_prob=float(left),
        mid_prob=float(mid),
        right_prob=float(right),
    )
