from datetime import datetime

import pytest

from measureplan.calculation import MetricCalculationService
from measureplan.config import MeasurePlanConfig
from measureplan.models import (
    Cycle,
    MeasurementData,
    MeasurementDefinition,
    MeasurementPlan,
    Metric,
    Objective,
    Question,
)
from measureplan.store import MeasurementStore


def make_data(store, data_id, cycle_id, metric_id, definition_id, value, when, plan_id="p1"):
    return store.add_measurement_data(MeasurementData(
        id=data_id,
        plan_id=plan_id,
        cycle_id=cycle_id,
        objective_id="o1",
        question_id="q1",
        metric_id=metric_id,
        measurement_definition_id=definition_id,
        value=value,
        date=when,
    ))


@pytest.fixture
def plan() -> MeasurementPlan:
    """
    One objective, one question, three metrics:

    - ``m-density``: ratio of two sums guarded by nullIf, control range [0, 1];
    - ``m-latency``: naked acronym (latest value), control range [0, 100];
    - ``m-notes``: no formula, never monitored.
    """
    density = Metric(
        id="m-density",
        name="Defect density",
        formula="DD = sum(ESF_H) / nullIf(sum(PFD), 0)",
        control_range=(0.0, 1.0),
        measurements=[
            MeasurementDefinition(id="md-esf", entity="Story", acronym="ESF"),
            MeasurementDefinition(id="md-pfd", entity="Story", acronym="PFD"),
        ],
    )
    latency = Metric(
        id="m-latency",
        name="Latency",
        formula="LAT = LATENCY",
        control_range=(0.0, 100.0),
        measurements=[
            MeasurementDefinition(id="md-lat", entity="Service", acronym="LATENCY"),
        ],
    )
    notes = Metric(id="m-notes", name="Notes", measurements=[])
    return MeasurementPlan(
        id="p1",
        name="Quality plan",
        objectives=[Objective(
            id="o1",
            title="Improve quality",
            questions=[Question(id="q1", text="How good is it?", metrics=[density, latency, notes])],
        )],
    )


@pytest.fixture
def store(plan) -> MeasurementStore:
    store = MeasurementStore()
    store.add_plan(plan)
    store.add_cycle(Cycle(
        id="c1", plan_id="p1", name="January",
        start_date=datetime(2024, 1, 1), end_date=datetime(2024, 2, 1),
    ))
    store.add_cycle(Cycle(
        id="c2", plan_id="p1", name="February",
        start_date=datetime(2024, 2, 1), end_date=datetime(2024, 3, 1),
    ))

    make_data(store, "d1", "c1", "m-density", "md-esf", 3, datetime(2024, 1, 5))
    make_data(store, "d2", "c1", "m-density", "md-esf", 5, datetime(2024, 1, 6))
    make_data(store, "d3", "c1", "m-density", "md-pfd", 4, datetime(2024, 1, 5))
    make_data(store, "d4", "c1", "m-density", "md-pfd", 4, datetime(2024, 1, 6))
    # inserted newest first: latest by date is 120
    make_data(store, "d5", "c1", "m-latency", "md-lat", 120, datetime(2024, 1, 20))
    make_data(store, "d6", "c1", "m-latency", "md-lat", 80, datetime(2024, 1, 10))
    return store


@pytest.fixture
def config() -> MeasurePlanConfig:
    return MeasurePlanConfig()


@pytest.fixture
def service(store, config) -> MetricCalculationService:
    return MetricCalculationService(store, config)
