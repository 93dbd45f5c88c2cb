import pytest

from measureplan.config import EstimationConfig
from measureplan.fpa.estimate import (
    productivity_rating,
    summarize_estimate,
    value_adjustment_factor,
)
from measureplan.models import ComponentType, Estimate, FpaComponent


@pytest.fixture
def estimate() -> Estimate:
    return Estimate(
        id="e1",
        name="Checkout",
        components=[
            FpaComponent("f1", "Orders", ComponentType.ALI, record_element_types=2, data_element_types=25),
            FpaComponent("f2", "Catalog", ComponentType.AIE),
            FpaComponent("f3", "Place order", ComponentType.EI, file_types_referenced=2, data_element_types=16),
            FpaComponent("f4", "Order report", ComponentType.EO, file_types_referenced=1, data_element_types=3),
        ],
        general_system_characteristics=[3] * 14,
        productivity_factor=8,
        average_daily_working_hours=8,
        team_size=2,
        hourly_rate=50,
    )


def test_value_adjustment_factor():
    assert value_adjustment_factor([]) == 1.0
    assert value_adjustment_factor([0] * 14) == pytest.approx(0.65)
    assert value_adjustment_factor([5] * 14) == pytest.approx(1.35)
    # out-of-range scores clamp to 0..5
    assert value_adjustment_factor([9, -2]) == pytest.approx(0.70)


def test_productivity_rating_thresholds():
    cfg = EstimationConfig()
    assert productivity_rating(12, cfg) == "HIGH"
    assert productivity_rating(18, cfg) == "AVERAGE"
    assert productivity_rating(18.5, cfg) == "LOW"


def test_summary_arithmetic(estimate):
    summary = summarize_estimate(estimate)

    # ALI Average 6 + AIE Low 5 + EI High 6 + EO Low 4
    assert summary.unadjusted_function_points == 21
    assert summary.value_adjustment_factor == pytest.approx(1.07)
    assert summary.adjusted_function_points == pytest.approx(22.47)
    assert summary.effort_hours == pytest.approx(179.76)
    assert summary.duration_days == pytest.approx(179.76 / 16)
    assert summary.total_cost == pytest.approx(8988.0)
    assert summary.productivity_rating == "HIGH"


def test_summary_breakdowns(estimate):
    summary = summarize_estimate(estimate)

    assert summary.component_breakdown["ali"].count == 1
    assert summary.component_breakdown["eq"].count == 0
    assert summary.complexity_breakdown["low"].count == 2
    assert summary.complexity_breakdown["low"].points == 9
    total = sum(e.percentage for e in summary.component_breakdown.values())
    assert total == pytest.approx(100.0)

    d = summary.to_dict()
    assert d["components"][0]["complexity"] == "Average"
    assert set(d["complexity_breakdown"]) == {"low", "average", "high"}


def test_empty_estimate_uses_config_defaults():
    cfg = EstimationConfig(productivity_factor=20, team_size=1, hourly_rate=10)
    summary = summarize_estimate(Estimate(id="e0", name="Empty"), cfg)

    assert summary.unadjusted_function_points == 0
    assert summary.value_adjustment_factor == 1.0
    assert summary.effort_hours == 0
    assert summary.productivity_factor == 20
    assert summary.productivity_rating == "LOW"
    assert all(e.percentage == 0 for e in summary.component_breakdown.values())
