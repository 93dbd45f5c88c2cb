"""JSON output writer."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import List

from ..models import (
    CalculationRecord,
    EstimateSummary,
    FormulaCheck,
    PlanCycleStatus,
    PlanStatus,
)


def write_calculations(calculations: List[CalculationRecord], output_dir: str) -> str:
    """Write every metric-per-cycle calculation to JSON."""
    path = os.path.join(output_dir, "calculations.json")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    data = {
        "generated_at": _now_iso(),
        "count": len(calculations),
        "failed": sum(1 for c in calculations if not c.succeeded),
        "calculations": [c.to_dict() for c in calculations],
    }

    _write_json(path, data)
    return path


def write_status(
    cycle_statuses: List[PlanCycleStatus],
    plan_statuses: List[PlanStatus],
    output_dir: str,
) -> str:
    """Write calculated (per cycle) and raw (all data) statuses to JSON."""
    path = os.path.join(output_dir, "status.json")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    data = {
        "generated_at": _now_iso(),
        "cycles": [cs.to_dict() for cs in cycle_statuses],
        "plans": [ps.to_dict() for ps in plan_statuses],
    }

    _write_json(path, data)
    return path


def write_validation(formula_checks: List[FormulaCheck], output_dir: str) -> str:
    path = os.path.join(output_dir, "validation.json")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    data = {
        "generated_at": _now_iso(),
        "count": len(formula_checks),
        "invalid": sum(1 for fc in formula_checks if not fc.validation.valid),
        "formulas": [fc.to_dict() for fc in formula_checks],
    }

    _write_json(path, data)
    return path


def write_estimates(estimates: List[EstimateSummary], output_dir: str) -> str:
    """Write function-point estimate summaries to JSON."""
    path = os.path.join(output_dir, "estimates.json")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    data = {
        "generated_at": _now_iso(),
        "count": len(estimates),
        "estimates": [e.to_dict() for e in estimates],
    }

    _write_json(path, data)
    return path


def write_metadata(
    output_dir: str,
    config_version: str,
    plans_analyzed: List[str],
    cycles_analyzed: List[str],
    duration_seconds: float,
) -> str:
    """Write metadata about the run."""
    path = os.path.join(output_dir, "metadata.json")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    data = {
        "generated_at": _now_iso(),
        "config_version": config_version,
        "plans_analyzed": plans_analyzed,
        "cycles_analyzed": cycles_analyzed,
        "duration_seconds": round(duration_seconds, 2),
    }

    _write_json(path, data)
    return path


def _write_json(path: str, data: dict):
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False, default=str)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
