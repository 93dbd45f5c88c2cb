"""Estimate summary: function points, adjustment, effort and cost.

    UFP    = sum of component function points
    VAF    = 0.65 + 0.01 * sum(GSC)        (14 characteristics, each 0-5)
    AFP    = UFP * VAF
    effort = AFP * productivity_factor     (hours per function point)
    days   = effort / (daily_hours * team_size)
    cost   = effort * hourly_rate

An estimate without general system characteristics is not adjusted (VAF 1.0).
"""

from __future__ import annotations

from typing import List, Optional

from ..config import EstimationConfig
from ..models import (
    BreakdownEntry,
    Complexity,
    ComponentType,
    Estimate,
    EstimateSummary,
    RatedComponent,
)
from .complexity import calculate_component_complexity

GSC_COUNT = 14


def value_adjustment_factor(characteristics: List[int]) -> float:
    if not characteristics:
        return 1.0
    scores = [max(0, min(5, int(c))) for c in characteristics[:GSC_COUNT]]
    return 0.65 + 0.01 * sum(scores)


def productivity_rating(productivity_factor: float, cfg: Optional[EstimationConfig] = None) -> str:
    """Rate hours-per-function-point: HIGH, AVERAGE or LOW productivity."""
    if cfg is None:
        cfg = EstimationConfig()
    if productivity_factor <= cfg.high_productivity_max:
        return "HIGH"
    if productivity_factor <= cfg.average_productivity_max:
        return "AVERAGE"
    return "LOW"


def rate_components(estimate: Estimate) -> List[RatedComponent]:
    rated: List[RatedComponent] = []
    for component in estimate.components:
        result = calculate_component_complexity(
            component.component_type,
            ret=component.record_element_types,
            det=component.data_element_types,
            ftr=component.file_types_referenced,
        )
        rated.append(RatedComponent(
            id=component.id,
            name=component.name,
            component_type=ComponentType(component.component_type),
            complexity=result.complexity,
            function_points=result.function_points,
        ))
    return rated


def _percentages(breakdown: dict, total_points: float):
    for entry in breakdown.values():
        entry.percentage = (entry.points / total_points) * 100 if total_points > 0 else 0.0


def summarize_estimate(
    estimate: Estimate,
    cfg: Optional[EstimationConfig] = None,
) -> EstimateSummary:
    """Rate every component and derive size, effort and cost."""
    if cfg is None:
        cfg = EstimationConfig()

    components = rate_components(estimate)
    summary = EstimateSummary(
        estimate_id=estimate.id,
        name=estimate.name,
        components=components,
        component_breakdown={t.value.lower(): BreakdownEntry() for t in ComponentType},
        complexity_breakdown={c.value.lower(): BreakdownEntry() for c in Complexity},
    )

    for rc in components:
        by_type = summary.component_breakdown[rc.component_type.value.lower()]
        by_type.count += 1
        by_type.points += rc.function_points
        by_complexity = summary.complexity_breakdown[rc.complexity.value.lower()]
        by_complexity.count += 1
        by_complexity.points += rc.function_points

    ufp = float(sum(rc.function_points for rc in components))
    _percentages(summary.component_breakdown, ufp)
    _percentages(summary.complexity_breakdown, ufp)

    productivity = estimate.productivity_factor or cfg.productivity_factor
    daily_hours = estimate.average_daily_working_hours or cfg.average_daily_working_hours
    team_size = estimate.team_size or cfg.team_size
    hourly_rate = estimate.hourly_rate if estimate.hourly_rate is not None else cfg.hourly_rate

    summary.unadjusted_function_points = ufp
    summary.value_adjustment_factor = value_adjustment_factor(
        estimate.general_system_characteristics
    )
    summary.adjusted_function_points = ufp * summary.value_adjustment_factor
    summary.productivity_factor = productivity
    summary.effort_hours = summary.adjusted_function_points * productivity
    capacity = daily_hours * team_size
    summary.duration_days = summary.effort_hours / capacity if capacity > 0 else 0.0
    summary.total_cost = summary.effort_hours * hourly_rate
    summary.productivity_rating = productivity_rating(productivity, cfg)

    return summary
