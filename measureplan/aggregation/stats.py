"""Statistics over a series of collected measurement values."""

from __future__ import annotations

import math
from typing import List, Sequence

from ..models import StatsSummary


def compute_stats(values: Sequence[float]) -> StatsSummary:
    """Summarize *values*; an empty series gives an all-zero summary."""
    if not values:
        return StatsSummary()

    ordered = sorted(values)
    mean = sum(ordered) / len(ordered)

    return StatsSummary(
        mean=round(mean, 2),
        median=round(median(ordered), 2),
        p90=round(_percentile(ordered, 90), 2),
        min_val=round(ordered[0], 2),
        max_val=round(ordered[-1], 2),
        std_dev=round(_sample_std_dev(ordered, mean), 2),
    )


def median(values: Sequence[float]) -> float:
    """Middle value; mean of the two middle values for even-length input."""
    if not values:
        return 0.0
    ordered = sorted(values)
    mid, odd = divmod(len(ordered), 2)
    if odd:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def _sample_std_dev(values: Sequence[float], mean: float) -> float:
    if len(values) < 2:
        return 0.0
    squared = sum((v - mean) ** 2 for v in values)
    return math.sqrt(squared / (len(values) - 1))


def _percentile(ordered: List[float], pct: float) -> float:
    """Linear interpolation between closest ranks of a sorted series."""
    if not ordered:
        return 0.0
    rank = (pct / 100.0) * (len(ordered) - 1)
    lower = math.floor(rank)
    upper = math.ceil(rank)
    if lower == upper:
        return ordered[int(rank)]
    weight = rank - lower
    return ordered[lower] * (1 - weight) + ordered[upper] * weight
