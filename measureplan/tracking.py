"""Write rules for cycles and collected measurement data."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from .errors import ConflictError, NotFoundError, ValidationError
from .models import Cycle, MeasurementData, MeasurementPlan
from .store import MeasurementStore


def _plan(store: MeasurementStore, plan_id: str) -> MeasurementPlan:
    plan = store.find_plan(plan_id)
    if plan is None:
        raise NotFoundError("Measurement plan not found")
    return plan


def _cycle(store: MeasurementStore, plan_id: str, cycle_id: str) -> Cycle:
    cycle = store.find_cycle(cycle_id)
    if cycle is None or cycle.plan_id != plan_id:
        raise NotFoundError("Cycle not found")
    return cycle


def _data(store: MeasurementStore, plan_id: str, data_id: str) -> MeasurementData:
    data = store.find_measurement_data_by_id(data_id)
    if data is None or data.plan_id != plan_id:
        raise NotFoundError("Measurement data not found")
    return data


def _check_window(start_date: datetime, end_date: datetime) -> None:
    if end_date <= start_date:
        raise ValidationError("End date must be after start date")


def _check_in_cycle(cycle: Cycle, when: datetime) -> None:
    if not cycle.contains(when):
        raise ValidationError(
            f"Measurement date {when.isoformat()} is outside cycle range "
            f"({cycle.start_date.isoformat()} to {cycle.end_date.isoformat()})"
        )


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------

def create_cycle(
    store: MeasurementStore,
    plan_id: str,
    name: str,
    start_date: datetime,
    end_date: datetime,
) -> Cycle:
    _plan(store, plan_id)
    _check_window(start_date, end_date)
    if store.find_cycle_by_name(plan_id, name) is not None:
        raise ConflictError("A cycle with this name already exists in this plan")

    return store.add_cycle(Cycle(
        id=store.new_id("cycle"),
        plan_id=plan_id,
        name=name,
        start_date=start_date,
        end_date=end_date,
    ))


def update_cycle(
    store: MeasurementStore,
    plan_id: str,
    cycle_id: str,
    name: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Cycle:
    """Rename or move a cycle.

    The resulting window must still be valid. Data already recorded in the
    cycle is not re-checked against the new window.
    """
    cycle = _cycle(store, plan_id, cycle_id)

    new_start = start_date or cycle.start_date
    new_end = end_date or cycle.end_date
    _check_window(new_start, new_end)

    if name and name != cycle.name:
        if store.find_cycle_by_name(plan_id, name) is not None:
            raise ConflictError("A cycle with this name already exists in this plan")
        cycle.name = name

    cycle.start_date = new_start
    cycle.end_date = new_end
    return cycle


def delete_cycle(store: MeasurementStore, plan_id: str, cycle_id: str) -> None:
    _cycle(store, plan_id, cycle_id)
    count = store.count_by_cycle(cycle_id)
    if count > 0:
        raise ConflictError(f"Cannot delete cycle with {count} existing measurements")
    store.remove_cycle(cycle_id)


# ---------------------------------------------------------------------------
# Measurement data
# ---------------------------------------------------------------------------

def record_measurement(
    store: MeasurementStore,
    plan_id: str,
    objective_id: str,
    question_id: str,
    metric_id: str,
    cycle_id: str,
    definition_id: str,
    value: float,
    date: datetime,
    notes: Optional[str] = None,
) -> MeasurementData:
    """Record one collected value, checking every reference and the date."""
    plan = _plan(store, plan_id)
    cycle = _cycle(store, plan_id, cycle_id)

    objective = plan.find_objective(objective_id)
    if objective is None:
        raise NotFoundError("Objective not found")
    question = objective.find_question(question_id)
    if question is None:
        raise NotFoundError("Question not found")
    metric = question.find_metric(metric_id)
    if metric is None:
        raise NotFoundError("Metric not found")
    if metric.find_measurement(definition_id) is None:
        raise NotFoundError("Measurement definition not found")

    _check_in_cycle(cycle, date)

    return store.add_measurement_data(MeasurementData(
        id=store.new_id("md"),
        plan_id=plan_id,
        cycle_id=cycle_id,
        objective_id=objective_id,
        question_id=question_id,
        metric_id=metric_id,
        measurement_definition_id=definition_id,
        value=float(value),
        date=date,
        notes=notes,
    ))


def update_measurement(
    store: MeasurementStore,
    plan_id: str,
    data_id: str,
    value: Optional[float] = None,
    date: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> MeasurementData:
    data = _data(store, plan_id, data_id)

    if date is not None:
        cycle = store.find_cycle(data.cycle_id)
        if cycle is None:
            raise NotFoundError("Cycle not found")
        _check_in_cycle(cycle, date)
        data.date = date
    if value is not None:
        data.value = float(value)
    if notes is not None:
        data.notes = notes
    return data


def delete_measurement(store: MeasurementStore, plan_id: str, data_id: str) -> None:
    _data(store, plan_id, data_id)
    store.remove_measurement_data(data_id)
