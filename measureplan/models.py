"""Data models for measurement plans, cycles, formulas and estimates."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ---------------------------------------------------------------------------
# Measurement plan tree
# ---------------------------------------------------------------------------

@dataclass
class MeasurementDefinition:
    """A measurement collected for a metric, referenced in formulas by acronym."""
    id: str
    entity: str
    acronym: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Metric:
    id: str
    name: str
    formula: str = ""
    control_range: Optional[Tuple[float, float]] = None  # closed interval
    measurements: List[MeasurementDefinition] = field(default_factory=list)

    @property
    def is_monitored(self) -> bool:
        """Metrics without a formula or a control range are left out of status."""
        return bool(self.formula) and self.control_range is not None

    def in_control_range(self, value: float) -> bool:
        if self.control_range is None:
            return True
        low, high = self.control_range
        return low <= value <= high

    def find_measurement(self, definition_id: str) -> Optional[MeasurementDefinition]:
        for md in self.measurements:
            if md.id == definition_id:
                return md
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "formula": self.formula,
            "control_range": list(self.control_range) if self.control_range else None,
            "measurements": [md.to_dict() for md in self.measurements],
        }


@dataclass
class Question:
    id: str
    text: str
    metrics: List[Metric] = field(default_factory=list)

    def find_metric(self, metric_id: str) -> Optional[Metric]:
        for metric in self.metrics:
            if metric.id == metric_id:
                return metric
        return None


@dataclass
class Objective:
    id: str
    title: str
    questions: List[Question] = field(default_factory=list)

    def find_question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


@dataclass
class MeasurementPlan:
    """GQM plan: objectives -> questions -> metrics -> measurement definitions.

    Lookups are linear scans over the nested lists; plans are small.
    """
    id: str
    name: str
    objectives: List[Objective] = field(default_factory=list)

    def find_objective(self, objective_id: str) -> Optional[Objective]:
        for objective in self.objectives:
            if objective.id == objective_id:
                return objective
        return None

    def find_question(self, objective_id: str, question_id: str) -> Optional[Question]:
        objective = self.find_objective(objective_id)
        if objective is None:
            return None
        return objective.find_question(question_id)

    def locate_metric(
        self, metric_id: str
    ) -> Optional[Tuple[Objective, Question, Metric]]:
        for objective in self.objectives:
            for question in objective.questions:
                metric = question.find_metric(metric_id)
                if metric is not None:
                    return objective, question, metric
        return None

    def find_metric(self, metric_id: str) -> Optional[Metric]:
        found = self.locate_metric(metric_id)
        return found[2] if found else None

    def iter_metrics(self) -> Iterator[Metric]:
        for objective in self.objectives:
            for question in objective.questions:
                yield from question.metrics


# ---------------------------------------------------------------------------
# Cycles and collected data
# ---------------------------------------------------------------------------

@dataclass
class Cycle:
    """A named collection window ``[start_date, end_date)`` scoped to a plan."""
    id: str
    plan_id: str
    name: str
    start_date: datetime
    end_date: datetime

    def contains(self, when: datetime) -> bool:
        return self.start_date <= when < self.end_date

    def ref(self) -> "CycleRef":
        return CycleRef(id=self.id, name=self.name)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "plan_id": self.plan_id,
            "name": self.name,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
        }


@dataclass(frozen=True)
class CycleRef:
    id: str
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass
class MeasurementData:
    id: str
    plan_id: str
    cycle_id: str
    objective_id: str
    question_id: str
    metric_id: str
    measurement_definition_id: str
    value: float
    date: datetime
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["date"] = _iso(self.date)
        return d


# ---------------------------------------------------------------------------
# Formula engine
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AggregationCall:
    """One aggregation reference parsed out of a formula.

    ``full_match`` is the exact formula text of the reference and is the key
    its computed value is bound under.
    """
    function: str
    acronym: str
    full_match: str


@dataclass
class MetricCalculationResult:
    metric_name: str
    metric_formula: str
    calculated_value: Optional[float]
    variables: Dict[str, float] = field(default_factory=dict)
    cycle: Optional[CycleRef] = None

    def to_dict(self) -> dict:
        return {
            "metric_name": self.metric_name,
            "metric_formula": self.metric_formula,
            "calculated_value": self.calculated_value,
            "variables": dict(self.variables),
            "cycle": self.cycle.to_dict() if self.cycle else None,
        }


@dataclass
class FormulaValidation:
    valid: bool = True
    errors: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def add(self, error: str, suggestion: str) -> None:
        self.errors.append(error)
        self.suggestions.append(suggestion)
        self.valid = False

    def to_dict(self) -> dict:
        d: dict = {"valid": self.valid}
        if self.errors:
            d["errors"] = list(self.errors)
        if self.suggestions:
            d["suggestions"] = list(self.suggestions)
        return d


@dataclass
class FormulaCheck:
    """Validation result of one metric formula in a plan."""
    plan_id: str
    metric_id: str
    metric_name: str
    formula: str
    validation: FormulaValidation

    def to_dict(self) -> dict:
        return {
            "plan_id": self.plan_id,
            "metric_id": self.metric_id,
            "metric_name": self.metric_name,
            "formula": self.formula,
            **self.validation.to_dict(),
        }


@dataclass
class CalculationRecord:
    """One metric calculated for one cycle, or the reason it could not be."""
    plan_id: str
    metric_id: str
    metric_name: str
    cycle: CycleRef
    result: Optional[MetricCalculationResult] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None

    def to_dict(self) -> dict:
        return {
            "plan_id": self.plan_id,
            "metric_id": self.metric_id,
            "metric_name": self.metric_name,
            "cycle_id": self.cycle.id,
            "cycle_name": self.cycle.name,
            "formula": self.result.metric_formula if self.result else None,
            "calculated_value": self.result.calculated_value if self.result else None,
            "variables": dict(self.result.variables) if self.result else {},
            "error": self.error,
        }


# ---------------------------------------------------------------------------
# Collected-measurements view
# ---------------------------------------------------------------------------

@dataclass
class StatsSummary:
    mean: float = 0.0
    median: float = 0.0
    p90: float = 0.0
    min_val: float = 0.0
    max_val: float = 0.0
    std_dev: float = 0.0

    def to_dict(self) -> dict:
        d = asdict(self)
        return {k: round(v, 2) for k, v in d.items()}


@dataclass
class CollectedValue:
    id: str
    value: float
    date: datetime
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "value": self.value,
            "date": _iso(self.date),
            "notes": self.notes,
        }


@dataclass
class CollectedMeasurement:
    measurement_definition_id: str
    acronym: str
    entity_name: str
    collected_values: List[CollectedValue] = field(default_factory=list)
    stats: StatsSummary = field(default_factory=StatsSummary)

    def to_dict(self) -> dict:
        return {
            "measurement_definition_id": self.measurement_definition_id,
            "acronym": self.acronym,
            "entity_name": self.entity_name,
            "collected_values": [cv.to_dict() for cv in self.collected_values],
            "stats": self.stats.to_dict(),
        }


@dataclass
class CycleMeasurements:
    metric_id: str
    metric_name: str
    metric_formula: str
    cycle: Cycle
    measurements: List[CollectedMeasurement] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "metric_id": self.metric_id,
            "metric_name": self.metric_name,
            "metric_formula": self.metric_formula,
            "cycle": {
                "id": self.cycle.id,
                "name": self.cycle.name,
                "start_date": _iso(self.cycle.start_date),
                "end_date": _iso(self.cycle.end_date),
            },
            "measurements": [m.to_dict() for m in self.measurements],
        }


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

STATUS_OK = "OK"
STATUS_NEEDS_ATTENTION = "NEEDS_ATTENTION"


@dataclass
class MetricStatus:
    """Control-range status over every value collected for a metric."""
    metric_id: str
    metric_name: str
    status: str = STATUS_OK
    within_range: int = 0
    out_of_range: int = 0
    total_measurements: int = 0
    control_range: Optional[Tuple[float, float]] = None
    latest_value: Optional[float] = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["control_range"] = list(self.control_range) if self.control_range else None
        return d


@dataclass
class PlanStatus:
    plan_id: str
    overall_status: str = STATUS_OK
    metrics_ok: int = 0
    metrics_need_attention: int = 0
    total_metrics: int = 0
    metrics: List[MetricStatus] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "plan_id": self.plan_id,
            "overall_status": self.overall_status,
            "metrics_ok": self.metrics_ok,
            "metrics_need_attention": self.metrics_need_attention,
            "total_metrics": self.total_metrics,
            "metrics": [m.to_dict() for m in self.metrics],
        }


class MetricOutcome(str, Enum):
    VALUE = "value"
    NO_DATA = "no_data"
    ERROR = "error"


@dataclass
class MetricCycleStatus:
    """Outcome of calculating one metric for one cycle."""
    metric_id: str
    metric_name: str
    outcome: MetricOutcome
    value: Optional[float] = None
    status: Optional[str] = None  # OK / NEEDS_ATTENTION, only for VALUE
    message: Optional[str] = None
    control_range: Optional[Tuple[float, float]] = None

    def to_dict(self) -> dict:
        return {
            "metric_id": self.metric_id,
            "metric_name": self.metric_name,
            "outcome": self.outcome.value,
            "value": self.value,
            "status": self.status,
            "message": self.message,
            "control_range": list(self.control_range) if self.control_range else None,
        }


@dataclass
class PlanCycleStatus:
    plan_id: str
    cycle: CycleRef
    overall_status: str = STATUS_OK
    metrics_ok: int = 0
    metrics_need_attention: int = 0
    metrics_no_data: int = 0
    metrics_error: int = 0
    metrics: List[MetricCycleStatus] = field(default_factory=list)

    @property
    def total_metrics(self) -> int:
        return len(self.metrics)

    def to_dict(self) -> dict:
        return {
            "plan_id": self.plan_id,
            "cycle": self.cycle.to_dict(),
            "overall_status": self.overall_status,
            "metrics_ok": self.metrics_ok,
            "metrics_need_attention": self.metrics_need_attention,
            "metrics_no_data": self.metrics_no_data,
            "metrics_error": self.metrics_error,
            "total_metrics": self.total_metrics,
            "metrics": [m.to_dict() for m in self.metrics],
        }


# ---------------------------------------------------------------------------
# Function point analysis
# ---------------------------------------------------------------------------

class ComponentType(str, Enum):
    ALI = "ALI"  # internal logical file (ILF)
    AIE = "AIE"  # external interface file (EIF)
    EI = "EI"
    EO = "EO"
    EQ = "EQ"


class Complexity(str, Enum):
    LOW = "Low"
    AVERAGE = "Average"
    HIGH = "High"


@dataclass(frozen=True)
class ComplexityResult:
    complexity: Complexity
    function_points: int

    def to_dict(self) -> dict:
        return {
            "complexity": self.complexity.value,
            "function_points": self.function_points,
        }


@dataclass
class FpaComponent:
    id: str
    name: str
    component_type: ComponentType
    record_element_types: Optional[int] = None
    data_element_types: Optional[int] = None
    file_types_referenced: Optional[int] = None


@dataclass
class Estimate:
    id: str
    name: str
    components: List[FpaComponent] = field(default_factory=list)
    general_system_characteristics: List[int] = field(default_factory=list)
    productivity_factor: Optional[float] = None  # hours per function point
    average_daily_working_hours: Optional[float] = None
    team_size: Optional[int] = None
    hourly_rate: Optional[float] = None


@dataclass
class RatedComponent:
    id: str
    name: str
    component_type: ComponentType
    complexity: Complexity
    function_points: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.component_type.value,
            "complexity": self.complexity.value,
            "function_points": self.function_points,
        }


@dataclass
class BreakdownEntry:
    count: int = 0
    points: float = 0.0
    percentage: float = 0.0

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "points": round(self.points, 2),
            "percentage": round(self.percentage, 2),
        }


@dataclass
class EstimateSummary:
    estimate_id: str
    name: str
    components: List[RatedComponent] = field(default_factory=list)
    component_breakdown: Dict[str, BreakdownEntry] = field(default_factory=dict)
    complexity_breakdown: Dict[str, BreakdownEntry] = field(default_factory=dict)
    unadjusted_function_points: float = 0.0
    value_adjustment_factor: float = 1.0
    adjusted_function_points: float = 0.0
    productivity_factor: float = 0.0
    effort_hours: float = 0.0
    duration_days: float = 0.0
    total_cost: float = 0.0
    productivity_rating: str = ""

    def to_dict(self) -> dict:
        return {
            "estimate_id": self.estimate_id,
            "name": self.name,
            "components": [c.to_dict() for c in self.components],
            "component_breakdown": {
                k: v.to_dict() for k, v in self.component_breakdown.items()
            },
            "complexity_breakdown": {
                k: v.to_dict() for k, v in self.complexity_breakdown.items()
            },
            "unadjusted_function_points": round(self.unadjusted_function_points, 2),
            "value_adjustment_factor": round(self.value_adjustment_factor, 2),
            "adjusted_function_points": round(self.adjusted_function_points, 2),
            "productivity_factor": round(self.productivity_factor, 2),
            "effort_hours": round(self.effort_hours, 2),
            "duration_days": round(self.duration_days, 2),
            "total_cost": round(self.total_cost, 2),
            "productivity_rating": self.productivity_rating,
        }
