"""Static checks for metric formulas before they are stored.

Validation is advisory: it returns a FormulaValidation with paired
error/suggestion messages and never raises.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from ..models import FormulaValidation
from .functions import AGGREGATION_FUNCTIONS, NULLIF, VALIDATED_FUNCTIONS


# identifier, operator, identifier, closing paren: sum(A * B)
_RE_NESTED_OPERATION = re.compile(r'\w+\s*[*/+\-]\s*\w+\s*\)')

_RE_NULLIF_CALL = re.compile(r'nullif\s*\(', re.IGNORECASE)

_RE_CONDITIONAL = re.compile(r'(WHERE|where|WHEN|when|\bIF\b|\bif\b)')

_NESTABLE = "sum|avg|count|min|max"
_RE_NESTED_AGGREGATION = re.compile(
    r'\b(' + _NESTABLE + r')\s*\(\s*(' + _NESTABLE + r')', re.IGNORECASE
)

_RE_CALL = re.compile(r'\b([A-Za-z_][A-Za-z0-9_]*)\s*\(')


def validate_formula(
    formula: str,
    allowed_functions: Optional[Sequence[str]] = None,
) -> FormulaValidation:
    """Lint *formula* for constructs the calculation engine does not support."""
    if allowed_functions is None:
        allowed_functions = VALIDATED_FUNCTIONS
    allowed = [f.lower() for f in allowed_functions]

    result = FormulaValidation()
    formula = formula or ""

    if _RE_NESTED_OPERATION.search(formula):
        result.add(
            "Nested operations inside aggregations are not supported (e.g., sum(A * B))",
            "Create a pre-calculated measurement for the product (e.g., A_TIMES_B)",
        )

    without_nullif = _RE_NULLIF_CALL.sub("", formula)
    if _RE_CONDITIONAL.search(without_nullif):
        result.add(
            "Conditional aggregations are not supported (e.g., avg(X WHERE X > 60))",
            "Create separate measurements for filtered values",
        )

    if _RE_NESTED_AGGREGATION.search(formula):
        result.add(
            "Nested aggregations are not supported (e.g., sum(avg(X)))",
            "Use appropriate measurement granularity instead",
        )

    unknown = []
    for m in _RE_CALL.finditer(without_nullif):
        name = m.group(1).lower()
        if name == NULLIF or name in allowed:
            continue
        unknown.append(name if name in AGGREGATION_FUNCTIONS else m.group(1))

    for name in unknown:
        result.add(
            f"Unknown aggregation function: {name}",
            f"Supported functions are: {', '.join(allowed)}",
        )

    return result
