import dataclasses

import numpy as np
import pytest

from quantize.grid import SimulationConfig, make_grid
from quantize.physics import norm_squared
from quantize.scripting import gauss
from quantize.solver_cn import EvolutionOperatorCache, evolution_matrix, evolution_operator


@pytest.fixture
def small_cfg():
    return SimulationConfig(hslash=1.0, m=0.5, dt=0.001, x_0=0.0, x_f=1.0, dx=0.25)


def test_evolution_matrix_entries(small_cfg):
    V = np.array([0.0, 1.0, 2.0, 3.0, 4.0])
    M = evolution_matrix(V, small_cfg)
    assert M.shape == (5, 5)

    r = 1j * (1.0 * 0.001) / (4.0 * 0.25**2 * 0.5)
    for i in range(1, 4):
        v_i = V[i] * (2.0 * 0.5) / 1.0
        assert M[i, i] == pytest.approx(0.5 * (1.0 + r * (2.0 + 0.25**2 * v_i)))
        assert M[i, i - 1] == pytest.approx(-0.5 * r)
        assert M[i, i + 1] == pytest.approx(-0.5 * r)

    np.testing.assert_array_equal(M[0], [1, 0, 0, 0, 0])
    np.testing.assert_array_equal(M[4], [0, 0, 0, 0, 1])
    assert M[1, 3] == 0.0


def test_evolution_operator_is_inverse_minus_identity(small_cfg):
    V = np.linspace(0.0, 1.0, 5)
    U = evolution_operator(V, small_cfg)
    M = evolution_matrix(V, small_cfg)
    np.testing.assert_allclose((U + np.eye(5)) @ M, np.eye(5), atol=1e-12)
    # the edge amplitudes are cleared by the propagator
    np.testing.assert_allclose(U[0], 0.0, atol=1e-12)
    np.testing.assert_allclose(U[-1], 0.0, atol=1e-12)


def test_degenerate_sizes(small_cfg):
    assert evolution_operator(np.zeros(0), small_cfg).shape == (0, 0)
    U = evolution_operator(np.zeros(1), small_cfg)
    np.testing.assert_allclose(U, [[0.0]])


def test_free_packet_norm_is_preserved(cfg):
    x = make_grid(cfg)
    psi = np.array([gauss(xi, 0.0, 1.0, 0.25) for xi in x])
    U = evolution_operator(np.zeros_like(x), cfg)
    n0 = norm_squared(psi).sum() * cfg.dx
    for _ in range(10):
        psi = U @ psi
    assert norm_squared(psi).sum() * cfg.dx == pytest.approx(n0, abs=1e-6)


def test_cache_reuses_operator_for_identical_potential(small_cfg):
    cache = EvolutionOperatorCache()
    V = np.linspace(0.0, 1.0, 5)
    a = cache.get(V, small_cfg)
    b = cache.get(V.copy(), small_cfg)
    assert a is b
    assert (cache.hits, cache.misses) == (1, 1)


def test_cache_recomputes_for_new_potential_or_config(small_cfg):
    cache = EvolutionOperatorCache()
    V = np.linspace(0.0, 1.0, 5)
    cache.get(V, small_cfg)
    fresh = cache.get(V + 1e-12, small_cfg)
    np.testing.assert_array_equal(fresh, evolution_operator(V + 1e-12, small_cfg))
    cache.get(V + 1e-12, dataclasses.replace(small_cfg, dt=0.002))
    assert cache.misses == 3

    cache.clear()
    cache.get(V, small_cfg)
    assert cache.misses == 4
