import math

import numpy as np
import pytest

from quantize.grid import make_grid
from quantize.presets import PSI0_PRESETS, V_PRESETS, available_psi0_presets, available_v_presets
from quantize.scripting import PythonSourceEngine, gauss, hermite


def test_gauss_is_normalized(cfg):
    x = make_grid(cfg)
    psisq = np.abs([gauss(xi, 0.5, 3.0, 0.25) for xi in x]) ** 2
    assert psisq.sum() * cfg.dx == pytest.approx(1.0, abs=1e-6)
    assert gauss(0.5, 0.5, 3.0, 0.25) == pytest.approx((2.0 / (math.pi * 0.0625)) ** 0.25)


def test_hermite():
    assert hermite(0, 1.7) == 1.0
    assert hermite(2, 1.5) == pytest.approx(4 * 1.5**2 - 2)
    assert hermite(3, -0.5) == pytest.approx(8 * (-0.5) ** 3 - 12 * (-0.5))


def test_delta_uses_space_step(cfg):
    engine = PythonSourceEngine(cfg)
    assert engine.delta(0.01, 0.0, 5.0) == 5.0
    assert engine.delta(0.03, 0.0, 5.0) == 0.0


def test_simulation_variables_are_bound(cfg):
    engine = PythonSourceEngine(cfg)
    assert engine.evaluate("def V(x, t):\n    return hslash + m + x0 + xf + dx + t0 + dt\n")
    ok, val = engine.try_evaluate_v(0.0, 0.0)
    assert ok
    assert val == pytest.approx(1.0 + 0.5 - 1.0 + 3.0 + 0.02 + 0.0 + 0.001)


def test_evaluation_errors_are_reported_not_raised(cfg):
    engine = PythonSourceEngine(cfg)
    assert not engine.evaluate("def psi0(x) return 1")
    assert not engine.evaluate("raise RuntimeError('boom')")


def test_missing_functions_fail(cfg):
    engine = PythonSourceEngine(cfg)
    assert engine.try_evaluate_psi0(0.0) == (False, 0j)
    assert engine.try_evaluate_v(0.0, 0.0) == (False, 0.0)


def test_callback_failures(cfg):
    engine = PythonSourceEngine(cfg)
    assert engine.evaluate(
        "def psi0(x):\n    return 1 / x\n"
        "def V(x, t):\n    return float('nan') if x > 0 else 'abc'\n"
    )
    assert engine.try_evaluate_psi0(0.0)[0] is False
    assert engine.try_evaluate_psi0(2.0) == (True, 0.5 + 0j)
    assert engine.try_evaluate_v(1.0, 0.0)[0] is False
    assert engine.try_evaluate_v(-1.0, 0.0)[0] is False


def test_v_source_overrides_psi0_names(cfg):
    engine = PythonSourceEngine(cfg)
    assert engine.evaluate("xc = 1\ndef psi0(x):\n    return xc\n")
    assert engine.evaluate("xc = 2\ndef V(x, t):\n    return 0\n")
    assert engine.try_evaluate_psi0(0.0) == (True, 2 + 0j)


@pytest.mark.parametrize("key", sorted(PSI0_PRESETS))
def test_psi0_presets_evaluate(cfg, key):
    engine = PythonSourceEngine(cfg)
    assert engine.evaluate(PSI0_PRESETS[key].source)
    for x in make_grid(cfg):
        ok, val = engine.try_evaluate_psi0(float(x))
        assert ok
        assert np.isfinite(val)


@pytest.mark.parametrize("key", sorted(V_PRESETS))
def test_v_presets_evaluate(cfg, key):
    engine = PythonSourceEngine(cfg)
    assert engine.evaluate(V_PRESETS[key].source)
    for x in make_grid(cfg):
        ok, val = engine.try_evaluate_v(float(x), 0.0)
        assert ok
        assert np.isfinite(val)


def test_preset_labels():
    assert available_psi0_presets()["gaussian_packet"] == "Gaussian wave packet"
    assert available_v_presets()["none"] == "No potential"


def test_entry_point_is_dropped_before_reevaluation(cfg):
    engine = PythonSourceEngine(cfg)
    assert engine.evaluate("def psi0(x):\n    return 1\n", entry="psi0")
    assert engine.evaluate("def V(x, t):\n    return 2\n", entry="V")

    assert engine.evaluate("W = 3\n", entry="V")
    assert engine.try_evaluate_v(0.0, 0.0) == (False, 0.0)
    assert engine.try_evaluate_psi0(0.0) == (True, 1 + 0j)

    # without an entry name the previous definition stays in place
    assert engine.evaluate("def psi0(x):\n    return 4\n", entry="psi0")
    assert engine.evaluate("W = 5\n")
    assert engine.try_evaluate_psi0(0.0) == (True, 4 + 0j)
