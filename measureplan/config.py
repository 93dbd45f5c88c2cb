"""Configuration loading for measurement-plan calculations."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

import yaml


# ---------------------------------------------------------------------------
# Formula engine config
# ---------------------------------------------------------------------------

@dataclass
class FormulaConfig:
    # How rows are ordered before "identity" takes the latest value:
    #   date  - stable sort by measurement date (ascending)
    #   store - keep the order the store returned
    identity_order: str = "date"
    # Functions accepted by the formula validator. ``median`` is evaluated
    # but not accepted here unless listed explicitly.
    validated_functions: list = field(default_factory=lambda: [
        "sum", "avg", "count", "min", "max",
    ])


# ---------------------------------------------------------------------------
# Estimation defaults
# ---------------------------------------------------------------------------

@dataclass
class EstimationConfig:
    productivity_factor: float = 10.0  # hours per function point
    average_daily_working_hours: float = 8.0
    team_size: int = 1
    hourly_rate: float = 0.0
    # Productivity rating thresholds (hours per function point)
    high_productivity_max: float = 12.0
    average_productivity_max: float = 18.0


# ---------------------------------------------------------------------------
# Output config
# ---------------------------------------------------------------------------

@dataclass
class OutputConfig:
    directory: str = "measureplan_output"
    formats: list = field(default_factory=lambda: ["json", "csv", "markdown"])


# ---------------------------------------------------------------------------
# Top-level Config
# ---------------------------------------------------------------------------

@dataclass
class MeasurePlanConfig:
    version: str = "1.0"
    root: str = "."
    formula: FormulaConfig = field(default_factory=FormulaConfig)
    estimation: EstimationConfig = field(default_factory=EstimationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def _apply_dict(obj, data: dict):
    """Apply dictionary values to a dataclass instance, recursively."""
    if not isinstance(data, dict):
        return
    for key, value in data.items():
        if hasattr(obj, key):
            current = getattr(obj, key)
            if hasattr(current, '__dataclass_fields__') and isinstance(value, dict):
                _apply_dict(current, value)
            else:
                setattr(obj, key, value)


def load_config(config_path: Optional[str] = None, root: Optional[str] = None) -> MeasurePlanConfig:
    """Load configuration from YAML file.

    Search order when *config_path* is None:
      1. ``measureplan.yaml`` in *root*
      2. ``config/measureplan.yaml`` in *root*

    *root* defaults to cwd.
    """
    if root is None:
        root = os.getcwd()

    config = MeasurePlanConfig()

    if config_path is None:
        candidates = [
            os.path.join(root, "measureplan.yaml"),
            os.path.join(root, "config", "measureplan.yaml"),
        ]
        for candidate in candidates:
            if os.path.isfile(candidate):
                config_path = candidate
                break

    if config_path and os.path.isfile(config_path):
        with open(config_path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if "version" in data:
            config.version = str(data["version"])
        if "root" in data:
            config.root = data["root"]
        if "formula" in data:
            _apply_dict(config.formula, data["formula"])
        if "estimation" in data:
            _apply_dict(config.estimation, data["estimation"])
        if "output" in data:
            _apply_dict(config.output, data["output"])

    # Resolve root to absolute
    if not os.path.isabs(config.root):
        if config_path:
            config_dir = os.path.dirname(os.path.abspath(config_path))
            config.root = os.path.normpath(os.path.join(config_dir, config.root))
        else:
            config.root = os.path.abspath(os.path.join(root, config.root))

    config.formula.identity_order = str(config.formula.identity_order).lower()
    config.formula.validated_functions = [
        str(f).lower() for f in config.formula.validated_functions
    ]

    return config
