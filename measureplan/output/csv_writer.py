"""CSV output writer."""

from __future__ import annotations

import csv
import os
from typing import List

from ..models import CalculationRecord, EstimateSummary


_CALCULATION_HEADERS = [
    "plan_id", "cycle_id", "cycle_name",
    "metric_id", "metric_name", "formula",
    "calculated_value", "error",
]

_ESTIMATE_HEADERS = [
    "estimate_id", "name",
    "unadjusted_function_points", "value_adjustment_factor",
    "adjusted_function_points", "productivity_factor",
    "effort_hours", "duration_days", "total_cost",
    "productivity_rating",
]


def write_calculations_csv(calculations: List[CalculationRecord], output_dir: str) -> str:
    """Write one row per metric per cycle. Variables are left to the JSON output."""
    path = os.path.join(output_dir, "calculations.csv")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=_CALCULATION_HEADERS)
        writer.writeheader()
        for record in calculations:
            row = record.to_dict()
            writer.writerow({
                k: "" if row.get(k) is None else row.get(k)
                for k in _CALCULATION_HEADERS
            })

    return path


def write_estimates_csv(estimates: List[EstimateSummary], output_dir: str) -> str:
    path = os.path.join(output_dir, "estimates.csv")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=_ESTIMATE_HEADERS)
        writer.writeheader()
        for summary in estimates:
            writer.writerow({k: summary.to_dict().get(k, "") for k in _ESTIMATE_HEADERS})

    return path
