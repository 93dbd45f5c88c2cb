"""Error types raised by measurement-plan operations."""

from __future__ import annotations

from typing import List


class MeasurePlanError(Exception):
    """Base class for every error raised by measureplan."""


class NotFoundError(MeasurePlanError):
    """A plan, metric, cycle or other entity referenced by ID does not exist."""


class ValidationError(MeasurePlanError):
    """Input rejected by a write-time rule (date windows, cycle bounds)."""


class ConflictError(MeasurePlanError):
    """Write would break a uniqueness or dependency rule."""


class WorkspaceError(MeasurePlanError):
    """Workspace file is missing or malformed."""


class MissingMeasurementDataError(MeasurePlanError):
    """One or more formula acronyms have no collected values in the cycle."""

    def __init__(self, acronyms: List[str]):
        self.acronyms = list(acronyms)
        if not self.acronyms:
            super().__init__(
                "No measurement data found. Please add measurement data "
                "for this cycle before calculating metrics."
            )
            return
        if len(self.acronyms) == 1:
            hint = "this acronym"
        else:
            hint = "these acronyms"
        super().__init__(
            f"Missing measurement data for: {', '.join(self.acronyms)}. "
            f"Please add measurement data for {hint} in this cycle."
        )


class UnknownAggregationFunctionError(MeasurePlanError):
    """Aggregation call uses a function the aggregator does not implement."""

    def __init__(self, function: str):
        self.function = function
        super().__init__(f"Unknown aggregation function: {function}")


class FormulaEvaluationError(MeasurePlanError):
    """Formula could not be evaluated (syntax, unbound variable, unknown call)."""

    def __init__(self, message: str):
        super().__init__(f"Formula evaluation failed: {message}")
