from datetime import datetime

import pytest

from conftest import make_data
from measureplan.calculation import MetricCalculationService
from measureplan.config import MeasurePlanConfig
from measureplan.errors import (
    FormulaEvaluationError,
    MissingMeasurementDataError,
    NotFoundError,
)
from measureplan.models import Cycle


def test_calculates_guarded_ratio(service):
    result = service.calculate_metric_for_cycle("p1", "m-density", "c1")

    assert result.metric_name == "Defect density"
    assert result.metric_formula == "DD = sum(ESF_H) / nullIf(sum(PFD), 0)"
    assert result.calculated_value == 1.0
    assert result.variables == {"sum(ESF_H)": 8, "sum(PFD)": 8}
    assert result.cycle.id == "c1"
    assert result.cycle.name == "January"


def test_identity_takes_latest_by_date(service):
    result = service.calculate_metric_for_cycle("p1", "m-latency", "c1")
    assert result.calculated_value == 120.0
    assert result.variables == {"LATENCY": 120}


def test_identity_store_order_is_configurable(store):
    config = MeasurePlanConfig()
    config.formula.identity_order = "store"
    service = MetricCalculationService(store, config)

    result = service.calculate_metric_for_cycle("p1", "m-latency", "c1")
    assert result.calculated_value == 80.0


def test_recalculation_is_idempotent(service):
    first = service.calculate_metric_for_cycle("p1", "m-density", "c1")
    second = service.calculate_metric_for_cycle("p1", "m-density", "c1")
    assert first.calculated_value == second.calculated_value
    assert first.variables == second.variables


def test_zero_denominator_is_a_none_result(store, service):
    # replace PFD values with zeros
    store.find_measurement_data_by_id("d3").value = 0
    store.find_measurement_data_by_id("d4").value = 0

    result = service.calculate_metric_for_cycle("p1", "m-density", "c1")
    assert result.calculated_value is None
    assert result.variables["sum(PFD)"] == 0


def test_missing_data_is_an_error(service):
    with pytest.raises(MissingMeasurementDataError) as exc_info:
        service.calculate_metric_for_cycle("p1", "m-density", "c2")
    assert exc_info.value.acronyms == ["ESF_H", "PFD"]


def test_partially_missing_data_lists_only_missing(store, service):
    make_data(store, "d9", "c2", "m-density", "md-pfd", 2, datetime(2024, 2, 3))
    with pytest.raises(MissingMeasurementDataError) as exc_info:
        service.calculate_metric_for_cycle("p1", "m-density", "c2")
    assert exc_info.value.acronyms == ["ESF_H"]


def test_malformed_formula_is_an_error(plan, service):
    plan.find_metric("m-density").formula = "DD = sum(ESF_H) / "
    with pytest.raises(FormulaEvaluationError):
        service.calculate_metric_for_cycle("p1", "m-density", "c1")


@pytest.mark.parametrize(
    "plan_id, metric_id, cycle_id, message",
    [
        ("nope", "m-density", "c1", "Measurement plan not found"),
        ("p1", "nope", "c1", "Metric not found"),
        ("p1", "m-density", "nope", "Cycle not found"),
        ("p1", "m-density", "c-other", "Cycle not found"),
    ],
)
def test_not_found(store, service, plan_id, metric_id, cycle_id, message):
    store.add_cycle(Cycle(
        id="c-other", plan_id="p2", name="Other",
        start_date=datetime(2024, 1, 1), end_date=datetime(2024, 2, 1),
    ))
    with pytest.raises(NotFoundError, match=message):
        service.calculate_metric_for_cycle(plan_id, metric_id, cycle_id)


def test_measurements_with_acronyms(service):
    view = service.get_measurements_with_acronyms("p1", "c1", "m-density")

    assert view.metric_name == "Defect density"
    assert [m.acronym for m in view.measurements] == ["ESF", "PFD"]
    esf = view.measurements[0]
    assert [cv.id for cv in esf.collected_values] == ["d1", "d2"]
    assert esf.stats.mean == 4.0
    assert esf.stats.min_val == 3
    assert esf.stats.max_val == 5

    d = view.to_dict()
    assert d["cycle"]["start_date"] == "2024-01-01T00:00:00"
    assert d["measurements"][1]["collected_values"][0]["value"] == 4


def test_measurements_empty_cycle(service):
    view = service.get_measurements_with_acronyms("p1", "c2", "m-latency")
    assert view.measurements[0].collected_values == []
    assert view.measurements[0].stats.mean == 0.0


def test_validate_formula_uses_configured_allow_list(store):
    config = MeasurePlanConfig()
    assert MetricCalculationService(store, config).validate_formula("R = median(X)").valid is False

    config.formula.validated_functions = ["sum", "median"]
    assert MetricCalculationService(store, config).validate_formula("R = median(X)").valid is True
