"""Fetch and aggregate measurement values for a formula's aggregation calls."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from ..aggregation.stats import median
from ..errors import MissingMeasurementDataError, UnknownAggregationFunctionError
from ..models import AggregationCall, MeasurementData, Metric
from .functions import AGGREGATION_FUNCTIONS, IDENTITY
from .resolver import resolve_acronym


# find(cycle_id, metric_id, measurement_definition_id) -> rows
DataAccess = Callable[[str, str, str], List[MeasurementData]]


def fetch_measurement_values(
    cycle_id: str,
    metric: Metric,
    aggregations: List[AggregationCall],
    find: DataAccess,
    order: str = "date",
) -> Dict[str, List[float]]:
    """Collect the values of every acronym referenced by *aggregations*.

    Unresolvable acronyms map to an empty list. With ``order="date"`` rows are
    sorted by date (stable) so the last value is the most recent one.
    """
    data: Dict[str, List[float]] = {}

    for agg in aggregations:
        if agg.acronym in data:
            continue
        definition = resolve_acronym(agg.acronym, metric.measurements)
        if definition is None:
            data[agg.acronym] = []
            continue

        rows = list(find(cycle_id, metric.id, definition.id))
        if order == "date":
            rows.sort(key=lambda row: row.date)
        data[agg.acronym] = [row.value for row in rows]

    return data


def calculate_aggregations(
    aggregations: List[AggregationCall],
    measurement_data: Dict[str, List[float]],
) -> Dict[str, float]:
    """Apply each aggregation call; keys are the calls' ``full_match`` text.

    Fails before computing anything when any acronym has no values, listing
    every missing acronym.
    """
    missing: List[str] = []
    for agg in aggregations:
        if not measurement_data.get(agg.acronym) and agg.acronym not in missing:
            missing.append(agg.acronym)

    if missing:
        raise MissingMeasurementDataError(missing)

    result: Dict[str, float] = {}
    for agg in aggregations:
        values = measurement_data.get(agg.acronym, [])
        result[agg.full_match] = apply_aggregation(agg.function, values, agg.acronym)

    return result


def apply_aggregation(
    function: str,
    values: List[float],
    acronym: Optional[str] = None,
) -> float:
    """Reduce *values* with the named aggregation function."""
    func = function.lower()

    if func != IDENTITY and func not in AGGREGATION_FUNCTIONS:
        raise UnknownAggregationFunctionError(function)

    if func == IDENTITY:
        if not values:
            raise MissingMeasurementDataError([acronym] if acronym else [])
        return values[-1]

    if not values:
        return 0

    if func == "sum":
        return sum(values)
    if func == "avg":
        return sum(values) / len(values)
    if func == "count":
        return float(len(values))
    if func == "min":
        return min(values)
    if func == "max":
        return max(values)
    return median(values)
