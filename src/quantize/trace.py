from __future__ import annotations

import json
import logging
import os
import platform
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import matplotlib
import numpy as np
import pandas as pd
import scipy

from .settings import save_settings


def _now_id() -> str:
    return time.strftime("%Y%m%d_%H%M%S")


def get_output_base_dir() -> Path:
    """Return the output base dir (QUANTIZE_OUTPUT_DIR, default `quantize_output`)."""
    base = os.environ.get("QUANTIZE_OUTPUT_DIR", "quantize_output")
    return Path(base)


def _safe_name(s: str) -> str:
    return "".join(c if c.isalnum() or c in "-_." else "_" for c in s)


def get_env_info() -> Dict[str, Any]:
    """Collect environment information for reproducibility."""
    return {
        "python": sys.version,
        "platform": platform.platform(),
        "executable": sys.executable,
        "numpy_version": np.__version__,
        "scipy_version": scipy.__version__,
        "pandas_version": pd.__version__,
        "matplotlib_version": matplotlib.__version__,
    }


def write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(obj, f, indent=2)


@dataclass
class RunContext:
    """A run directory with standard subfolders."""

    run_dir: Path

    @property
    def data_dir(self) -> Path:
        return self.run_dir / "data"

    @property
    def figures_dir(self) -> Path:
        return self.run_dir / "figures"

    @property
    def logs_dir(self) -> Path:
        return self.run_dir / "logs"

    def mkdirs(self) -> None:
        for p in [self.data_dir, self.figures_dir, self.logs_dir]:
            p.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def create(kind: str, tag: str = "") -> "RunContext":
        base = get_output_base_dir()
        run_id = _now_id()
        name = f"{run_id}_{_safe_name(kind)}"
        if tag:
            name += f"_{_safe_name(tag)}"
        ctx = RunContext(run_dir=base / "runs" / name)
        ctx.mkdirs()
        return ctx

    def save_env(self) -> None:
        write_json(self.data_dir / "env.json", get_env_info())

    def save_settings(self, doc: Dict[str, Any]) -> Path:
        return save_settings(self.data_dir / "settings.json", doc)

    def attach_log_file(self, name: str = "run.log", level: int = logging.INFO) -> logging.Handler:
        """Mirror the `quantize` loggers into logs/<name> for this run."""
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(self.logs_dir / name, encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logging.getLogger("quantize").addHandler(handler)
        return handler

    @staticmethod
    def detach_log_file(handler: logging.Handler) -> None:
        logging.getLogger("quantize").removeHandler(handler)
        handler.close()
