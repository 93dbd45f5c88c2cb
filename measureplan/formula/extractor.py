"""Extraction of aggregation calls from a metric formula.

A formula looks like ``RESULT = sum(ESF_H) / nullIf(sum(PFD), 0)``. Only the
right-hand side is analyzed. Two kinds of references are produced:

- explicit aggregation calls ``func(ACRONYM)``;
- naked acronyms ``ACRONYM``, bound to the ``identity`` function (latest value).
"""

from __future__ import annotations

import re
from typing import List, Optional

from ..models import AggregationCall
from .functions import AGGREGATION_FUNCTIONS, IDENTITY, RESERVED_KEYWORDS


# Assignment "=" (not part of ==, !=, <=, >=)
_RE_ASSIGNMENT = re.compile(r'(?<![=!<>])=(?!=)')

_RE_AGGREGATION = re.compile(
    r'((?i:' + '|'.join(AGGREGATION_FUNCTIONS) + r'))\s*\(\s*([A-Z][A-Z0-9_]*)\s*\)'
)

_RE_ACRONYM = re.compile(r'\b([A-Z][A-Z0-9_]*)\b', re.ASCII)


def formula_rhs(formula: Optional[str]) -> str:
    """Return the expression part of ``NAME = <expression>``."""
    if not formula:
        return ""
    match = _RE_ASSIGNMENT.search(formula)
    if match is None:
        return formula.strip()
    return formula[match.end():].strip()


def extract_aggregations(formula: Optional[str]) -> List[AggregationCall]:
    """Parse aggregation calls out of *formula*.

    Explicit aggregation calls come first, then identity references, each in
    order of appearance. An identity reference is dropped when its acronym is
    already listed. Never raises.
    """
    if not isinstance(formula, str):
        return []

    rhs = formula_rhs(formula)

    aggregations: List[AggregationCall] = []
    spans = []
    for m in _RE_AGGREGATION.finditer(rhs):
        aggregations.append(AggregationCall(
            function=m.group(1).lower(),
            acronym=m.group(2),
            full_match=m.group(0),
        ))
        spans.append(m.span())

    seen = {agg.acronym for agg in aggregations}
    for m in _RE_ACRONYM.finditer(rhs):
        acronym = m.group(1)
        if any(start <= m.start() < end for start, end in spans):
            continue
        if acronym.upper() in RESERVED_KEYWORDS:
            continue
        if acronym in seen:
            continue
        seen.add(acronym)
        aggregations.append(AggregationCall(
            function=IDENTITY,
            acronym=acronym,
            full_match=acronym,
        ))

    return aggregations
