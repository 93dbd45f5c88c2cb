import os
from datetime import date, datetime

import pytest
import yaml

from measureplan.errors import WorkspaceError
from measureplan.models import ComponentType, Estimate, FpaComponent
from measureplan.store import load_workspace, parse_datetime, save_workspace


WORKSPACE = """
plans:
  - id: p1
    name: Delivery
    objectives:
      - id: o1
        title: Predictable delivery
        questions:
          - id: q1
            text: How fast do we ship?
            metrics:
              - id: m1
                name: Lead time
                formula: LT = avg(LEAD_TIME)
                control_range: [0, 10]
                measurements:
                  - {id: md1, entity: Ticket, acronym: LEAD}
cycles:
  - {id: c1, plan_id: p1, name: Sprint 1, start_date: 2024-01-01, end_date: "2024-01-15T00:00:00"}
measurement_data:
  - id: d1
    plan_id: p1
    cycle_id: c1
    objective_id: o1
    question_id: q1
    metric_id: m1
    measurement_definition_id: md1
    value: 4
    date: 2024-01-03
    notes: first
estimates:
  - id: e1
    name: Portal
    components:
      - {name: Users, type: ali, record_element_types: 2, data_element_types: 30}
      - {name: Login, type: EI}
    general_system_characteristics: [3, 3, 3]
    productivity_factor: 12
"""


@pytest.fixture
def workspace_path(tmp_path) -> str:
    path = tmp_path / "workspace.yaml"
    path.write_text(WORKSPACE, encoding="utf-8")
    return str(path)


def test_load_workspace(workspace_path):
    store = load_workspace(workspace_path)

    plan = store.find_plan("p1")
    metric = plan.find_metric("m1")
    assert metric.control_range == (0.0, 10.0)
    assert metric.measurements[0].acronym == "LEAD"

    cycle = store.find_cycle("c1")
    assert cycle.start_date == datetime(2024, 1, 1)
    assert cycle.end_date == datetime(2024, 1, 15)

    data = store.find_measurement_data("c1", "m1", "md1")
    assert [d.value for d in data] == [4.0]
    assert data[0].notes == "first"

    estimate = store.find_estimate("e1")
    assert estimate.components[0].component_type is ComponentType.ALI
    assert estimate.components[1].id == "component-2"
    assert estimate.productivity_factor == 12


def test_loaded_workspace_calculates(workspace_path):
    from measureplan.calculation import MetricCalculationService

    service = MetricCalculationService(load_workspace(workspace_path))
    result = service.calculate_metric_for_cycle("p1", "m1", "c1")
    assert result.calculated_value == 4.0
    assert result.variables == {"avg(LEAD_TIME)": 4.0}


def test_save_and_reload(workspace_path, tmp_path):
    store = load_workspace(workspace_path)
    store.add_estimate(Estimate(
        id="e2", name="Reports",
        components=[FpaComponent("x", "Export", ComponentType.EO, file_types_referenced=2)],
        hourly_rate=0,
    ))
    out = save_workspace(store, str(tmp_path / "out" / "workspace.yaml"))

    with open(out, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    assert raw["estimates"][1]["components"][0]["type"] == "EO"
    assert raw["estimates"][1]["hourly_rate"] == 0

    reloaded = load_workspace(out)
    assert reloaded.find_cycle("c1").end_date == datetime(2024, 1, 15)
    assert reloaded.find_plan("p1").find_metric("m1").formula == "LT = avg(LEAD_TIME)"
    assert len(reloaded.measurement_data) == 1


def test_missing_workspace(tmp_path):
    with pytest.raises(WorkspaceError, match="not found"):
        load_workspace(os.path.join(str(tmp_path), "missing.yaml"))


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "plans: [{name: no id}]\n",
        "cycles: [{id: c1, plan_id: p1, start_date: someday, end_date: 2024-01-01}]\n",
        "estimates: [{id: e1, components: [{type: XX}]}]\n",
        "plans: [{id: p1, objectives: [{id: o1, questions: [{id: q1, metrics: [{id: m1, control_range: [1]}]}]}]}]\n",
        "plans: [unclosed\n",
    ],
)
def test_malformed_workspace(tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(WorkspaceError):
        load_workspace(str(path))


def test_parse_datetime():
    assert parse_datetime("2024-02-03") == datetime(2024, 2, 3)
    assert parse_datetime(date(2024, 2, 3)) == datetime(2024, 2, 3)
    assert parse_datetime(datetime(2024, 2, 3, 10)) == datetime(2024, 2, 3, 10)
    with pytest.raises(WorkspaceError):
        parse_datetime(20240203)
