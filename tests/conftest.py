from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import pytest

from quantize.grid import SimulationConfig
from quantize.scripting import gauss
from quantize.simulation import Simulation


def gaussian_psi0(x):
    return True, gauss(x, 0.0, 1.0, 0.25)


def free_v(x, t):
    return True, 0.0


@pytest.fixture
def cfg():
    # hslash=1, m=0.5, t0=0, dt=0.001, x in [-1, 3] with dx=0.02 -> n=201
    return SimulationConfig(hslash=1.0, m=0.5, t_0=0.0, dt=0.001, x_0=-1.0, x_f=3.0, dx=0.02)


@pytest.fixture
def sim(cfg):
    return Simulation(cfg, psi0_fn=gaussian_psi0, v_fn=free_v)
