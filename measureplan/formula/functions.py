"""Function names and keywords of the metric formula language."""

from __future__ import annotations

# Aggregation functions understood by the extractor, aggregator and evaluator.
AGGREGATION_FUNCTIONS = ("sum", "avg", "count", "min", "max", "median")

# Functions the validator accepts. Derived from AGGREGATION_FUNCTIONS so the
# two lists cannot drift; median is left out pending a product decision.
VALIDATED_FUNCTIONS = tuple(f for f in AGGREGATION_FUNCTIONS if f != "median")

# Implicit function of a naked acronym: latest collected value.
IDENTITY = "identity"

# Division guard: nullIf(a, b) is NaN when a == b, otherwise a.
NULLIF = "nullif"

# Uppercase words that are never measurement acronyms.
RESERVED_KEYWORDS = frozenset({
    "SUM", "AVG", "COUNT", "MIN", "MAX", "MEDIAN",
    "NULLIF", "WHERE", "IF", "OR", "AND", "NOT", "NAN",
})
