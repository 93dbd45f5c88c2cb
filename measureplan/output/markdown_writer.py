"""Markdown report writer."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import List, Optional

from ..models import (
    STATUS_OK,
    CalculationRecord,
    EstimateSummary,
    FormulaCheck,
    MetricOutcome,
    PlanCycleStatus,
)


def write_report_md(result, output_dir: str) -> str:
    """Write the run report (statuses, calculations, formulas, estimates)."""
    path = os.path.join(output_dir, "report.md")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    lines: list = []
    lines.append("# Measurement Plan Report\n")
    lines.append(f"_Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}_\n")

    lines.append("## Overview\n")
    lines.append("| Parameter | Value |")
    lines.append("|---|---|")
    lines.append(f"| Plans | {len(result.plans_analyzed)} |")
    lines.append(f"| Cycles | {len(result.cycles_analyzed)} |")
    lines.append(f"| Calculations | {len(result.calculations)} |")
    lines.append(f"| Calculation failures | {result.error_count} |")
    lines.append(f"| Invalid formulas | {len(result.invalid_formulas)} |")
    lines.append(f"| Estimates | {len(result.estimates)} |")
    lines.append("")

    lines.extend(_status_section(result.cycle_statuses))
    lines.extend(_calculations_section(result.calculations))
    lines.extend(_formulas_section(result.formula_checks))
    lines.extend(_estimates_section(result.estimates))

    with open(path, "w", encoding="utf-8") as fh:
        fh.write("\n".join(lines))

    return path


def _status_section(cycle_statuses: List[PlanCycleStatus]) -> list:
    lines = ["## Status per Cycle\n"]
    if not cycle_statuses:
        lines.append("_No cycles._\n")
        return lines

    for cs in cycle_statuses:
        lines.append(f"### {cs.cycle.name} ({cs.plan_id}) {_indicator(cs.overall_status)}\n")
        lines.append(
            f"OK: {cs.metrics_ok} / Needs attention: {cs.metrics_need_attention} / "
            f"No data: {cs.metrics_no_data} / Error: {cs.metrics_error}\n"
        )
        lines.append("| Metric | Value | Control range | Status |")
        lines.append("|---|---|---|---|")
        for ms in cs.metrics:
            if ms.outcome is MetricOutcome.VALUE:
                status = f"{_indicator(ms.status)} {ms.status}"
            else:
                status = f"{ms.outcome.value}: {ms.message}"
            lines.append(
                f"| {ms.metric_name} | {_fmt(ms.value)} "
                f"| {_fmt_range(ms.control_range)} | {status} |"
            )
        lines.append("")
    return lines


def _calculations_section(calculations: List[CalculationRecord]) -> list:
    lines = ["## Calculations\n"]
    lines.append("| Cycle | Metric | Formula | Value |")
    lines.append("|---|---|---|---|")
    for record in calculations:
        if record.succeeded:
            value = _fmt(record.result.calculated_value)
            formula = record.result.metric_formula
        else:
            value = f"_{record.error}_"
            formula = ""
        lines.append(
            f"| {record.cycle.name} | {record.metric_name} | `{formula}` | {value} |"
        )
    lines.append("")
    return lines


def _formulas_section(formula_checks: List[FormulaCheck]) -> list:
    invalid = [fc for fc in formula_checks if not fc.validation.valid]
    lines = ["## Formula Checks\n"]
    if not invalid:
        lines.append(f"All {len(formula_checks)} formulas passed.\n")
        return lines

    for fc in invalid:
        lines.append(f"- **{fc.metric_name}** `{fc.formula}`")
        for error, suggestion in zip(fc.validation.errors, fc.validation.suggestions):
            lines.append(f"  - {error} {suggestion}")
    lines.append("")
    return lines


def _estimates_section(estimates: List[EstimateSummary]) -> list:
    lines = ["## Estimates\n"]
    if not estimates:
        lines.append("_No estimates._\n")
        return lines

    lines.append("| Estimate | UFP | VAF | AFP | Effort (h) | Days | Cost | Productivity |")
    lines.append("|---|---|---|---|---|---|---|---|")
    for s in estimates:
        lines.append(
            f"| {s.name} | {s.unadjusted_function_points:.0f} "
            f"| {s.value_adjustment_factor:.2f} | {s.adjusted_function_points:.2f} "
            f"| {s.effort_hours:.1f} | {s.duration_days:.1f} "
            f"| {s.total_cost:,.2f} | {s.productivity_rating} |"
        )
    lines.append("")

    for s in estimates:
        lines.append(f"### {s.name}: breakdown by type\n")
        lines.append("| Type | Count | Points | % |")
        lines.append("|---|---|---|---|")
        for key, entry in s.component_breakdown.items():
            lines.append(
                f"| {key.upper()} | {entry.count} | {entry.points:.0f} | {entry.percentage:.1f} |"
            )
        lines.append("")
    return lines


def _indicator(status: Optional[str]) -> str:
    """Return a color indicator for a status."""
    if status is None:
        return "⚪"
    elif status == STATUS_OK:
        return "🟢"
    else:
        return "🔴"


def _fmt(value: Optional[float]) -> str:
    if value is None:
        return "n/a"
    return f"{value:.2f}"


def _fmt_range(control_range) -> str:
    if not control_range:
        return "-"
    return f"{control_range[0]:g} to {control_range[1]:g}"
