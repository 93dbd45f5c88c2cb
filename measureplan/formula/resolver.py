"""Resolve formula acronyms against a metric's measurement definitions."""

from __future__ import annotations

from typing import List, Optional

from ..models import MeasurementDefinition


def match_kind(acronym: str, definition: MeasurementDefinition) -> Optional[str]:
    """Return how *acronym* matches *definition*: exact, prefix, suffix or None.

    prefix: formula ``ESF_H`` names measurement ``ESF``.
    suffix: formula ``ESF`` names measurement ``ESF_H``.
    """
    defined = definition.acronym
    if defined == acronym:
        return "exact"
    if acronym.startswith(defined + "_"):
        return "prefix"
    if defined.startswith(acronym + "_"):
        return "suffix"
    return None


def resolve_acronym(
    acronym: str,
    measurements: List[MeasurementDefinition],
) -> Optional[MeasurementDefinition]:
    """First definition (in list order) that *acronym* matches, else None."""
    for definition in measurements:
        if match_kind(acronym, definition) is not None:
            return definition
    return None
