from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt


def save_fig(fig, out_dir: Path, filename: str, dpi: int = 180) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / filename
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    return path


def plot_space(x_np: np.ndarray, psisq_np: np.ndarray, V_np: np.ndarray, title: str = "Space"):
    """|psi|^2 over x, with V on a secondary axis."""
    fig, ax = plt.subplots()
    ax.plot(x_np, psisq_np, label="|psi|^2")
    ax.set_xlabel("x")
    ax.set_ylabel("|psi(x)|^2")
    ax.grid(True)
    ax2 = ax.twinx()
    ax2.plot(x_np, V_np, color="tab:red", alpha=0.6, label="V")
    ax2.set_ylabel("V(x, t)")
    ax.set_title(title)
    return fig


def _plot_columns(df: pd.DataFrame, columns, ylabel: str, title: str):
    fig = plt.figure()
    for col in columns:
        plt.plot(df["iteration"], df[col], label=col)
    plt.xlabel("iteration")
    plt.ylabel(ylabel)
    plt.title(title)
    plt.grid(True)
    plt.legend()
    return fig


def plot_position_estimates(df: pd.DataFrame, title: str = "Space operators"):
    return _plot_columns(df, ["x_est", "x2_est", "delta_x"], "value", title)


def plot_momentum_estimates(df: pd.DataFrame, title: str = "Momentum operators"):
    return _plot_columns(df, ["p_est", "p2_est", "delta_p"], "value", title)


def plot_uncertainty(df: pd.DataFrame, hslash: float = 1.0, title: str = "Uncertainty"):
    fig = _plot_columns(df, ["delta_product"], "Δx·Δp", title)
    plt.axhline(0.5 * hslash, color="k", linestyle="--", label="hslash/2")
    plt.legend()
    return fig


def plot_energy(df: pd.DataFrame, title: str = "Energy"):
    return _plot_columns(df, ["energy_est"], "⟨E⟩", title)


def plot_region_probabilities(df: pd.DataFrame, title: str = "Region probabilities"):
    return _plot_columns(df, ["left_prob", "mid_prob", "right_prob"], "probability", title)
