from __future__ import annotations

import json
import numbers
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .grid import SimulationConfig

NUMERIC_KEYS: Tuple[str, ...] = ("t_0", "x_0", "x_f", "dt", "dx", "hslash", "m")
SOURCE_KEYS: Tuple[str, ...] = ("psi0_src", "v_src")
SETTINGS_KEYS: Tuple[str, ...] = NUMERIC_KEYS + SOURCE_KEYS


def document_from(cfg: SimulationConfig, psi0_src: str, v_src: str) -> Dict[str, Any]:
    """Flat settings document with exactly SETTINGS_KEYS."""
    doc: Dict[str, Any] = {k: float(getattr(cfg, k)) for k in NUMERIC_KEYS}
    doc["psi0_src"] = psi0_src
    doc["v_src"] = v_src
    return doc


def parse_document(doc: Mapping[str, Any]) -> Optional[Tuple[Dict[str, float], str, str]]:
    """Return (numeric fields, psi0 source, V source), or None if doc is unusable.

    Every key of SETTINGS_KEYS must be present with the right type; extra
    keys are ignored.
    """
    if not isinstance(doc, Mapping) or any(k not in doc for k in SETTINGS_KEYS):
        return None
    fields: Dict[str, float] = {}
    for k in NUMERIC_KEYS:
        val = doc[k]
        if isinstance(val, bool) or not isinstance(val, numbers.Real):
            return None
        fields[k] = float(val)
    if not all(isinstance(doc[k], str) for k in SOURCE_KEYS):
        return None
    return fields, doc["psi0_src"], doc["v_src"]


def save_settings(path: Path, doc: Mapping[str, Any]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(dict(doc), f, indent=4)
    return path


def load_settings(path: Path) -> Dict[str, Any]:
    """Read a settings document. Raises on unreadable or non-JSON files."""
    with open(Path(path)) as f:
        return json.load(f)
