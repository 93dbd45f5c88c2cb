"""Metric calculation for a plan, metric and cycle.

Pipeline: extract aggregation calls from the metric formula, resolve each
acronym and fetch its values for the cycle, aggregate, then evaluate the
formula with the aggregated values bound.
"""

from __future__ import annotations

from typing import Optional, Tuple

from .aggregation.stats import compute_stats
from .config import MeasurePlanConfig
from .errors import NotFoundError
from .formula.aggregator import calculate_aggregations, fetch_measurement_values
from .formula.evaluator import evaluate_formula
from .formula.extractor import extract_aggregations
from .formula.validator import validate_formula
from .models import (
    CollectedMeasurement,
    CollectedValue,
    Cycle,
    CycleMeasurements,
    FormulaValidation,
    MeasurementPlan,
    Metric,
    MetricCalculationResult,
)
from .store import MeasurementStore


class MetricCalculationService:
    """Calculates metrics against a store. Holds no per-request state."""

    def __init__(self, store: MeasurementStore, config: Optional[MeasurePlanConfig] = None):
        self.store = store
        self.config = config or MeasurePlanConfig()

    def _resolve(
        self, plan_id: str, metric_id: str, cycle_id: str
    ) -> Tuple[MeasurementPlan, Metric, Cycle]:
        plan = self.store.find_plan(plan_id)
        if plan is None:
            raise NotFoundError("Measurement plan not found")

        metric = plan.find_metric(metric_id)
        if metric is None:
            raise NotFoundError("Metric not found")

        cycle = self.store.find_cycle(cycle_id)
        if cycle is None or cycle.plan_id != plan_id:
            raise NotFoundError("Cycle not found")

        return plan, metric, cycle

    def calculate_metric_for_cycle(
        self, plan_id: str, metric_id: str, cycle_id: str
    ) -> MetricCalculationResult:
        """Calculate *metric_id* over the data collected in *cycle_id*.

        Raises NotFoundError, MissingMeasurementDataError,
        UnknownAggregationFunctionError or FormulaEvaluationError. A
        ``calculated_value`` of None is a result, not an error.
        """
        _, metric, cycle = self._resolve(plan_id, metric_id, cycle_id)

        aggregations = extract_aggregations(metric.formula)
        values = fetch_measurement_values(
            cycle.id,
            metric,
            aggregations,
            self.store.find_measurement_data,
            order=self.config.formula.identity_order,
        )
        variables = calculate_aggregations(aggregations, values)
        calculated = evaluate_formula(metric.formula, variables)

        return MetricCalculationResult(
            metric_name=metric.name,
            metric_formula=metric.formula,
            calculated_value=calculated,
            variables=variables,
            cycle=cycle.ref(),
        )

    def get_measurements_with_acronyms(
        self, plan_id: str, cycle_id: str, metric_id: str
    ) -> CycleMeasurements:
        """Raw values collected for each measurement of a metric in a cycle."""
        _, metric, cycle = self._resolve(plan_id, metric_id, cycle_id)

        view = CycleMeasurements(
            metric_id=metric.id,
            metric_name=metric.name,
            metric_formula=metric.formula,
            cycle=cycle,
        )
        for definition in metric.measurements:
            rows = self.store.find_measurement_data(cycle.id, metric.id, definition.id)
            view.measurements.append(CollectedMeasurement(
                measurement_definition_id=definition.id,
                acronym=definition.acronym,
                entity_name=definition.entity,
                collected_values=[
                    CollectedValue(id=row.id, value=row.value, date=row.date, notes=row.notes)
                    for row in rows
                ],
                stats=compute_stats([row.value for row in rows]),
            ))
        return view

    def validate_formula(self, formula: str) -> FormulaValidation:
        return validate_formula(formula, self.config.formula.validated_functions)
