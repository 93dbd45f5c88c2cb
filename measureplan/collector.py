"""Collector: orchestrates formula checks, metric calculation, status and output."""

from __future__ import annotations

import os
import sys
import time
from typing import List, Optional

from .aggregation.status_aggregator import cycle_status, plan_status
from .calculation import MetricCalculationService
from .config import MeasurePlanConfig
from .errors import MeasurePlanError
from .fpa.estimate import summarize_estimate
from .models import (
    CalculationRecord,
    EstimateSummary,
    FormulaCheck,
    MeasurementPlan,
    PlanCycleStatus,
    PlanStatus,
)
from .output import csv_writer, json_writer, markdown_writer
from .store import MeasurementStore


class CollectorResult:
    """Container for everything computed in one run."""

    def __init__(self):
        self.plans_analyzed: List[str] = []
        self.cycles_analyzed: List[str] = []
        self.formula_checks: List[FormulaCheck] = []
        self.calculations: List[CalculationRecord] = []
        self.cycle_statuses: List[PlanCycleStatus] = []
        self.plan_statuses: List[PlanStatus] = []
        self.estimates: List[EstimateSummary] = []
        self.error_count: int = 0
        self.duration_seconds: float = 0.0

    @property
    def invalid_formulas(self) -> List[FormulaCheck]:
        return [fc for fc in self.formula_checks if not fc.validation.valid]


def collect(
    store: MeasurementStore,
    config: MeasurePlanConfig,
    plan_filter: Optional[str] = None,
    cycle_filter: Optional[str] = None,
    verbose: bool = True,
) -> CollectorResult:
    """Main entry point: check formulas, calculate metrics, derive statuses."""

    start_time = time.time()
    result = CollectorResult()
    service = MetricCalculationService(store, config)

    plans: List[MeasurementPlan] = list(store.plans.values())
    if plan_filter:
        plans = [p for p in plans if p.id == plan_filter or p.name == plan_filter]

    if verbose:
        print(f"[measureplan] Workspace root: {config.root}")
        print(f"[measureplan] Plans found: {len(plans)}")
        for p in plans:
            print(f"  - {p.name} ({p.id})")

    if not plans and not store.estimates:
        print("[measureplan] Nothing to analyze!")
        return result

    # 1. Phase 1: Formula checks
    if verbose:
        print("\n[measureplan] Phase 1: Checking formulas...")

    for plan in plans:
        for metric in plan.iter_metrics():
            if not metric.formula:
                continue
            check = FormulaCheck(
                plan_id=plan.id,
                metric_id=metric.id,
                metric_name=metric.name,
                formula=metric.formula,
                validation=service.validate_formula(metric.formula),
            )
            result.formula_checks.append(check)
            if verbose and not check.validation.valid:
                for error in check.validation.errors:
                    print(f"  [!] {metric.name}: {error}", file=sys.stderr)

    if verbose:
        print(f"  Formulas: {len(result.formula_checks)}, "
              f"invalid: {len(result.invalid_formulas)}")

    # 2. Phase 2: Calculations per cycle
    if verbose:
        print("\n[measureplan] Phase 2: Calculating metrics...")

    plan_cycles = {}
    for plan in plans:
        cycles = store.find_cycles_by_plan(plan.id)
        if cycle_filter:
            cycles = [c for c in cycles if c.id == cycle_filter or c.name == cycle_filter]
        plan_cycles[plan.id] = cycles

        for cycle in cycles:
            result.cycles_analyzed.append(cycle.id)
            ok = 0
            for metric in plan.iter_metrics():
                if not metric.formula:
                    continue
                record = CalculationRecord(
                    plan_id=plan.id,
                    metric_id=metric.id,
                    metric_name=metric.name,
                    cycle=cycle.ref(),
                )
                try:
                    record.result = service.calculate_metric_for_cycle(
                        plan.id, metric.id, cycle.id
                    )
                    ok += 1
                except MeasurePlanError as e:
                    record.error = str(e)
                    result.error_count += 1
                result.calculations.append(record)

            if verbose:
                print(f"  {plan.name} / {cycle.name}: {ok} calculated")

    # 3. Phase 3: Status (calculated per cycle, raw over all data)
    if verbose:
        print("\n[measureplan] Phase 3: Status...")

    for plan in plans:
        for cycle in plan_cycles[plan.id]:
            cs = cycle_status(service, plan, cycle)
            result.cycle_statuses.append(cs)
            if verbose:
                print(
                    f"  {plan.name} / {cycle.name}: {cs.overall_status} "
                    f"(ok {cs.metrics_ok}, attention {cs.metrics_need_attention}, "
                    f"no data {cs.metrics_no_data}, error {cs.metrics_error})"
                )
        result.plan_statuses.append(plan_status(plan, store))
        result.plans_analyzed.append(plan.id)

    # 4. Phase 4: Estimates
    if verbose:
        print("\n[measureplan] Phase 4: Estimates...")

    for estimate in store.estimates.values():
        summary = summarize_estimate(estimate, config.estimation)
        result.estimates.append(summary)
        if verbose:
            print(
                f"  {summary.name}: {summary.adjusted_function_points:.1f} AFP, "
                f"{summary.effort_hours:.1f}h, {summary.productivity_rating}"
            )

    result.duration_seconds = time.time() - start_time

    if verbose:
        print("\n[measureplan] Summary:")
        print(f"  Plans: {len(result.plans_analyzed)}")
        print(f"  Cycles: {len(result.cycles_analyzed)}")
        print(f"  Calculations: {len(result.calculations)}")
        if result.error_count:
            print(f"  Calculation failures: {result.error_count}")
        print(f"  Estimates: {len(result.estimates)}")
        print(f"  Time: {result.duration_seconds:.1f}s")

    return result


def write_output(
    result: CollectorResult,
    config: MeasurePlanConfig,
    verbose: bool = True,
) -> List[str]:
    """Write all output files based on config."""

    output_dir = config.output.directory
    if not os.path.isabs(output_dir):
        output_dir = os.path.join(config.root, output_dir)

    formats = config.output.formats
    written_files: List[str] = []

    if verbose:
        print(f"\n[measureplan] Writing results to {output_dir}...")

    if "json" in formats:
        written_files.append(json_writer.write_calculations(result.calculations, output_dir))
        written_files.append(
            json_writer.write_status(result.cycle_statuses, result.plan_statuses, output_dir)
        )
        written_files.append(json_writer.write_validation(result.formula_checks, output_dir))
        written_files.append(json_writer.write_estimates(result.estimates, output_dir))
        written_files.append(
            json_writer.write_metadata(
                output_dir,
                config.version,
                result.plans_analyzed,
                result.cycles_analyzed,
                result.duration_seconds,
            )
        )

    if "csv" in formats:
        written_files.append(csv_writer.write_calculations_csv(result.calculations, output_dir))
        written_files.append(csv_writer.write_estimates_csv(result.estimates, output_dir))

    if "markdown" in formats:
        written_files.append(markdown_writer.write_report_md(result, output_dir))

    if verbose:
        print(f"  Files written: {len(written_files)}")
        for f in written_files:
            rel = os.path.relpath(f, config.root) if os.path.isabs(f) else f
            print(f"    - {rel}")

    return written_files
