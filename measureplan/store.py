"""In-memory measurement store and YAML workspace loading."""

from __future__ import annotations

import os
from datetime import date, datetime
from typing import Dict, List, Optional

import yaml

from .errors import WorkspaceError
from .models import (
    ComponentType,
    Cycle,
    Estimate,
    FpaComponent,
    MeasurementData,
    MeasurementDefinition,
    MeasurementPlan,
    Metric,
    Objective,
    Question,
)


class MeasurementStore:
    """Plans, cycles, collected data and estimates kept in memory.

    ``find_measurement_data`` returns rows in insertion order.
    """

    def __init__(self):
        self.plans: Dict[str, MeasurementPlan] = {}
        self.cycles: Dict[str, Cycle] = {}
        self.measurement_data: Dict[str, MeasurementData] = {}
        self.estimates: Dict[str, Estimate] = {}
        self._next_id = 1

    def new_id(self, prefix: str) -> str:
        while True:
            candidate = f"{prefix}-{self._next_id}"
            self._next_id += 1
            if candidate not in self.cycles and candidate not in self.measurement_data:
                return candidate

    # -- plans ---------------------------------------------------------------

    def add_plan(self, plan: MeasurementPlan) -> MeasurementPlan:
        self.plans[plan.id] = plan
        return plan

    def find_plan(self, plan_id: str) -> Optional[MeasurementPlan]:
        return self.plans.get(plan_id)

    # -- cycles --------------------------------------------------------------

    def add_cycle(self, cycle: Cycle) -> Cycle:
        self.cycles[cycle.id] = cycle
        return cycle

    def find_cycle(self, cycle_id: str) -> Optional[Cycle]:
        return self.cycles.get(cycle_id)

    def find_cycles_by_plan(self, plan_id: str) -> List[Cycle]:
        cycles = [c for c in self.cycles.values() if c.plan_id == plan_id]
        return sorted(cycles, key=lambda c: c.start_date)

    def find_cycle_by_name(self, plan_id: str, name: str) -> Optional[Cycle]:
        for cycle in self.cycles.values():
            if cycle.plan_id == plan_id and cycle.name == name:
                return cycle
        return None

    def remove_cycle(self, cycle_id: str) -> None:
        self.cycles.pop(cycle_id, None)

    # -- measurement data ----------------------------------------------------

    def add_measurement_data(self, data: MeasurementData) -> MeasurementData:
        self.measurement_data[data.id] = data
        return data

    def find_measurement_data_by_id(self, data_id: str) -> Optional[MeasurementData]:
        return self.measurement_data.get(data_id)

    def find_measurement_data(
        self, cycle_id: str, metric_id: str, measurement_definition_id: str
    ) -> List[MeasurementData]:
        return [
            d for d in self.measurement_data.values()
            if d.cycle_id == cycle_id
            and d.metric_id == metric_id
            and d.measurement_definition_id == measurement_definition_id
        ]

    def find_data_by_metric(self, metric_id: str) -> List[MeasurementData]:
        return [d for d in self.measurement_data.values() if d.metric_id == metric_id]

    def find_data_by_cycle(self, cycle_id: str) -> List[MeasurementData]:
        return [d for d in self.measurement_data.values() if d.cycle_id == cycle_id]

    def count_by_cycle(self, cycle_id: str) -> int:
        return len(self.find_data_by_cycle(cycle_id))

    def remove_measurement_data(self, data_id: str) -> None:
        self.measurement_data.pop(data_id, None)

    # -- estimates -----------------------------------------------------------

    def add_estimate(self, estimate: Estimate) -> Estimate:
        self.estimates[estimate.id] = estimate
        return estimate

    def find_estimate(self, estimate_id: str) -> Optional[Estimate]:
        return self.estimates.get(estimate_id)


# ---------------------------------------------------------------------------
# Workspace files
# ---------------------------------------------------------------------------

def parse_datetime(value) -> datetime:
    """Accept datetimes, dates and ISO-8601 strings (YAML yields all three)."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise WorkspaceError(f"Invalid date: {value!r}") from exc
    raise WorkspaceError(f"Invalid date: {value!r}")


def _require(entry: dict, key: str, kind: str):
    if not isinstance(entry, dict) or key not in entry:
        raise WorkspaceError(f"{kind} entry is missing '{key}': {entry!r}")
    return entry[key]


def _load_metric(data: dict) -> Metric:
    control_range = data.get("control_range")
    if control_range is not None:
        if not isinstance(control_range, (list, tuple)) or len(control_range) != 2:
            raise WorkspaceError(f"control_range must be [min, max]: {control_range!r}")
        control_range = (float(control_range[0]), float(control_range[1]))
    return Metric(
        id=str(_require(data, "id", "metric")),
        name=str(data.get("name", "")),
        formula=str(data.get("formula") or ""),
        control_range=control_range,
        measurements=[
            MeasurementDefinition(
                id=str(_require(md, "id", "measurement")),
                entity=str(md.get("entity", "")),
                acronym=str(_require(md, "acronym", "measurement")),
            )
            for md in data.get("measurements") or []
        ],
    )


def _load_plan(data: dict) -> MeasurementPlan:
    objectives = []
    for obj in data.get("objectives") or []:
        questions = []
        for q in obj.get("questions") or []:
            questions.append(Question(
                id=str(_require(q, "id", "question")),
                text=str(q.get("text", "")),
                metrics=[_load_metric(m) for m in q.get("metrics") or []],
            ))
        objectives.append(Objective(
            id=str(_require(obj, "id", "objective")),
            title=str(obj.get("title", "")),
            questions=questions,
        ))
    return MeasurementPlan(
        id=str(_require(data, "id", "plan")),
        name=str(data.get("name", "")),
        objectives=objectives,
    )


def _load_estimate(data: dict) -> Estimate:
    components = []
    for index, c in enumerate(data.get("components") or []):
        raw_type = str(_require(c, "type", "component")).upper()
        try:
            component_type = ComponentType(raw_type)
        except ValueError as exc:
            raise WorkspaceError(f"Unknown component type: {raw_type}") from exc
        components.append(FpaComponent(
            id=str(c.get("id", f"component-{index + 1}")),
            name=str(c.get("name", "")),
            component_type=component_type,
            record_element_types=c.get("record_element_types"),
            data_element_types=c.get("data_element_types"),
            file_types_referenced=c.get("file_types_referenced"),
        ))
    return Estimate(
        id=str(_require(data, "id", "estimate")),
        name=str(data.get("name", "")),
        components=components,
        general_system_characteristics=list(data.get("general_system_characteristics") or []),
        productivity_factor=data.get("productivity_factor"),
        average_daily_working_hours=data.get("average_daily_working_hours"),
        team_size=data.get("team_size"),
        hourly_rate=data.get("hourly_rate"),
    )


def load_workspace(path: str) -> MeasurementStore:
    """Load a YAML workspace file into a new store."""
    if not os.path.isfile(path):
        raise WorkspaceError(f"Workspace file not found: {path}")

    with open(path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise WorkspaceError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise WorkspaceError(f"Workspace must be a mapping: {path}")

    store = MeasurementStore()
    try:
        for entry in data.get("plans") or []:
            store.add_plan(_load_plan(entry))

        for entry in data.get("cycles") or []:
            store.add_cycle(Cycle(
                id=str(_require(entry, "id", "cycle")),
                plan_id=str(_require(entry, "plan_id", "cycle")),
                name=str(entry.get("name", "")),
                start_date=parse_datetime(_require(entry, "start_date", "cycle")),
                end_date=parse_datetime(_require(entry, "end_date", "cycle")),
            ))

        for entry in data.get("measurement_data") or []:
            store.add_measurement_data(MeasurementData(
                id=str(_require(entry, "id", "measurement_data")),
                plan_id=str(_require(entry, "plan_id", "measurement_data")),
                cycle_id=str(_require(entry, "cycle_id", "measurement_data")),
                objective_id=str(entry.get("objective_id", "")),
                question_id=str(entry.get("question_id", "")),
                metric_id=str(_require(entry, "metric_id", "measurement_data")),
                measurement_definition_id=str(
                    _require(entry, "measurement_definition_id", "measurement_data")
                ),
                value=float(_require(entry, "value", "measurement_data")),
                date=parse_datetime(_require(entry, "date", "measurement_data")),
                notes=entry.get("notes"),
            ))

        for entry in data.get("estimates") or []:
            store.add_estimate(_load_estimate(entry))
    except (TypeError, ValueError, AttributeError) as exc:
        raise WorkspaceError(f"Malformed workspace {path}: {exc}") from exc

    return store


def _dump_plan(plan: MeasurementPlan) -> dict:
    return {
        "id": plan.id,
        "name": plan.name,
        "objectives": [
            {
                "id": obj.id,
                "title": obj.title,
                "questions": [
                    {
                        "id": q.id,
                        "text": q.text,
                        "metrics": [m.to_dict() for m in q.metrics],
                    }
                    for q in obj.questions
                ],
            }
            for obj in plan.objectives
        ],
    }


def _dump_estimate(estimate: Estimate) -> dict:
    d = {
        "id": estimate.id,
        "name": estimate.name,
        "components": [
            {
                "id": c.id,
                "name": c.name,
                "type": c.component_type.value,
                "record_element_types": c.record_element_types,
                "data_element_types": c.data_element_types,
                "file_types_referenced": c.file_types_referenced,
            }
            for c in estimate.components
        ],
        "general_system_characteristics": list(estimate.general_system_characteristics),
    }
    for key in ("productivity_factor", "average_daily_working_hours", "team_size", "hourly_rate"):
        value = getattr(estimate, key)
        if value is not None:
            d[key] = value
    return d


def save_workspace(store: MeasurementStore, path: str) -> str:
    """Write *store* back as a YAML workspace file."""
    data = {
        "plans": [_dump_plan(p) for p in store.plans.values()],
        "cycles": [c.to_dict() for c in store.cycles.values()],
        "measurement_data": [d.to_dict() for d in store.measurement_data.values()],
        "estimates": [_dump_estimate(e) for e in store.estimates.values()],
    }
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, sort_keys=False, allow_unicode=True)
    return path
