"""Plan-level status from control ranges.

Two views:

- raw status: every value collected for a metric checked against its
  control range, across all cycles;
- cycle status: each monitored metric calculated for one cycle, the result
  checked against the control range. Each metric yields a typed outcome
  (value / no data / error); one metric failing never aborts the summary.
"""

from __future__ import annotations

from typing import List

from ..calculation import MetricCalculationService
from ..errors import MeasurePlanError, MissingMeasurementDataError
from ..models import (
    STATUS_NEEDS_ATTENTION,
    STATUS_OK,
    Cycle,
    MeasurementData,
    MeasurementPlan,
    Metric,
    MetricCycleStatus,
    MetricOutcome,
    MetricStatus,
    PlanCycleStatus,
    PlanStatus,
)
from ..store import MeasurementStore


def metric_status(metric: Metric, data: List[MeasurementData]) -> MetricStatus:
    """Count collected values inside / outside the metric's control range."""
    status = MetricStatus(
        metric_id=metric.id,
        metric_name=metric.name,
        control_range=metric.control_range,
        total_measurements=len(data),
    )
    for row in data:
        if metric.in_control_range(row.value):
            status.within_range += 1
        else:
            status.out_of_range += 1

    if data:
        status.latest_value = max(data, key=lambda row: row.date).value
    status.status = STATUS_OK if status.out_of_range == 0 else STATUS_NEEDS_ATTENTION
    return status


def plan_status(plan: MeasurementPlan, store: MeasurementStore) -> PlanStatus:
    """Raw status of every monitored metric of *plan*."""
    summary = PlanStatus(plan_id=plan.id)
    for metric in plan.iter_metrics():
        if not metric.is_monitored:
            continue
        ms = metric_status(metric, store.find_data_by_metric(metric.id))
        summary.metrics.append(ms)
        if ms.status == STATUS_OK:
            summary.metrics_ok += 1
        else:
            summary.metrics_need_attention += 1

    summary.total_metrics = len(summary.metrics)
    summary.overall_status = (
        STATUS_OK if summary.metrics_need_attention == 0 else STATUS_NEEDS_ATTENTION
    )
    return summary


def calculate_metric_status(
    service: MetricCalculationService,
    plan: MeasurementPlan,
    metric: Metric,
    cycle: Cycle,
) -> MetricCycleStatus:
    """Calculate one metric for *cycle* and classify the outcome."""
    status = MetricCycleStatus(
        metric_id=metric.id,
        metric_name=metric.name,
        outcome=MetricOutcome.NO_DATA,
        control_range=metric.control_range,
    )
    try:
        result = service.calculate_metric_for_cycle(plan.id, metric.id, cycle.id)
    except MissingMeasurementDataError as exc:
        status.message = str(exc)
        return status
    except MeasurePlanError as exc:
        status.outcome = MetricOutcome.ERROR
        status.message = str(exc)
        return status

    if result.calculated_value is None:
        status.message = "Formula yields no value (division by zero or undefined guard)"
        return status

    status.outcome = MetricOutcome.VALUE
    status.value = result.calculated_value
    status.status = (
        STATUS_OK if metric.in_control_range(result.calculated_value)
        else STATUS_NEEDS_ATTENTION
    )
    return status


def cycle_status(
    service: MetricCalculationService,
    plan: MeasurementPlan,
    cycle: Cycle,
) -> PlanCycleStatus:
    """Calculated status of every monitored metric of *plan* for *cycle*."""
    summary = PlanCycleStatus(plan_id=plan.id, cycle=cycle.ref())

    for metric in plan.iter_metrics():
        if not metric.is_monitored:
            continue
        ms = calculate_metric_status(service, plan, metric, cycle)
        summary.metrics.append(ms)
        if ms.outcome is MetricOutcome.ERROR:
            summary.metrics_error += 1
        elif ms.outcome is MetricOutcome.NO_DATA:
            summary.metrics_no_data += 1
        elif ms.status == STATUS_OK:
            summary.metrics_ok += 1
        else:
            summary.metrics_need_attention += 1

    summary.overall_status = (
        STATUS_OK if summary.metrics_need_attention == 0 else STATUS_NEEDS_ATTENTION
    )
    return summary
