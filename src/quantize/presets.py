from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class SourceSpec:
    """A ready-made Ψ0 or V source for the Python source engine."""

    key: str
    label: str
    source: str


_SQUARE_PULSE_PSI0 = '''\
# Square pulse spanning the (xa, xb) space interval
xa = -0.5
xb = 0.5

def psi0(x):
    if xa < x < xb:
        # keeps the state normalized
        return math.sqrt(1 / (xb - xa))
    return 0
'''

_INFINITE_WELL_PSI0 = '''\
# Infinite well of size u, eigenstate |n>
n = 1
u = 0.5

def psi0(x):
    if 0 < x < u:
        return math.sqrt(2 / u) * math.sin((n * math.pi / u) * x)
    return 0
'''

_GAUSSIAN_PACKET_PSI0 = '''\
# Gaussian wave packet
k = 1  # wavenumber, proportional to the group velocity
xc = 0  # initial packet centre
s = 0.25  # width

def psi0(x):
    return gauss(x, xc, k, s)
'''

_HARMONIC_OSCILLATOR_PSI0 = '''\
# Harmonic oscillator eigenstate |n>
omega = 5
n = 1

def psi0(x):
    a = (m * omega) / hslash
    return (1 / math.sqrt(2**n * math.factorial(n))) * (a / math.pi) ** 0.25 \\
        * math.exp(-a * x**2 / 2) * hermite(n, math.sqrt(a) * x)
'''

_DIRAC_DELTA_PSI0 = '''\
# Dirac delta at xc (particle fully located there)
xc = 0

def psi0(x):
    return delta(x, xc, 10000)
'''

_NONE_V = '''\
# Free particle, no potential
def V(x, t):
    return 0
'''

_INFINITE_WELL_V = '''\
# Well of size w
w = 1

def V(x, t):
    if -w / 2 < x < w / 2:
        return 0
    return 10000
'''

_DIRAC_DELTA_V = '''\
# Dirac delta at xc
xc = 0

def V(x, t):
    return delta(x, xc, 10000)
'''

_STEP_V = '''\
# Finite step potential
V0 = 2  # step height
si = -0.5  # step start
sf = 0.5  # step end

def V(x, t):
    if si < x < sf:
        return V0
    return 0
'''

_HARMONIC_OSCILLATOR_V = '''\
# Harmonic oscillator potential
omega = 2

def V(x, t):
    return 0.5 * m * omega**2 * x**2
'''


PSI0_PRESETS: Dict[str, SourceSpec] = {
    "square_pulse": SourceSpec("square_pulse", "Square pulse", _SQUARE_PULSE_PSI0),
    "infinite_well": SourceSpec("infinite_well", "Infinite well eigenstate", _INFINITE_WELL_PSI0),
    "gaussian_packet": SourceSpec("gaussian_packet", "Gaussian wave packet", _GAUSSIAN_PACKET_PSI0),
    "harmonic": SourceSpec("harmonic", "Harmonic oscillator eigenstate", _HARMONIC_OSCILLATOR_PSI0),
    "dirac_delta": SourceSpec("dirac_delta", "Dirac delta (position eigenstate)", _DIRAC_DELTA_PSI0),
}

V_PRESETS: Dict[str, SourceSpec] = {
    "none": SourceSpec("none", "No potential", _NONE_V),
    "infinite_well": SourceSpec("infinite_well", "Infinite well", _INFINITE_WELL_V),
    "dirac_delta": SourceSpec("dirac_delta", "Dirac delta", _DIRAC_DELTA_V),
    "step": SourceSpec("step", "Finite step", _STEP_V),
    "harmonic": SourceSpec("harmonic", "Harmonic oscillator", _HARMONIC_OSCILLATOR_V),
}

DEFAULT_PSI0_SOURCE = PSI0_PRESETS["gaussian_packet"].source
DEFAULT_V_SOURCE = V_PRESETS["none"].source


def available_psi0_presets() -> Dict[str, str]:
    """Mapping key -> label."""
    return {k: v.label for k, v in PSI0_PRESETS.items()}


def available_v_presets() -> Dict[str, str]:
    """Mapping key -> label."""
    return {k: v.label for k, v in V_PRESETS.items()}
