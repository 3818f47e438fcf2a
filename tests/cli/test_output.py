"""Tests for CLI output formatting."""

import json

import pytest
from rich.console import Console

from stuffing_planner.cli import output
from stuffing_planner.cli.output import (
    format_plan_detail,
    format_plan_table,
    format_readiness,
)
from stuffing_planner.models.plan import ContainerStatus, PlanStatus, PositionStatus
from stuffing_planner.services.readiness import evaluate_readiness
from tests.helpers.factories import (
    make_container,
    make_packing_list,
    make_plan,
    ready_container,
)


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Render tables without wrapping so cell text can be matched."""
    monkeypatch.setattr(output, "console", Console(width=200, color_system=None))


def _plan():
    return make_plan(
        "p-1",
        code="SP-001",
        loading_batch="B1",
        containers=[ready_container("c-1")],
        packing_lists=[
            make_packing_list("a", container_id="c-1"),
            make_packing_list("b", shipper="ACME"),
        ],
    )


class TestFormatPlanTable:
    """Tests for plan list rendering."""

    def test_renders_plans_as_text(self):
        output = format_plan_table([_plan()], as_json=False)
        assert "SP-001" in output
        assert "CREATED" in output
        assert "EO-p-1" in output

    def test_renders_plans_as_json(self):
        output = format_plan_table([_plan()], as_json=True)
        parsed = json.loads(output)
        assert parsed[0]["id"] == "p-1"
        assert parsed[0]["status"] == "CREATED"
        assert parsed[0]["containers"][0]["status"] == "SPECIFIED"

    def test_empty_list(self):
        assert format_plan_table([], as_json=False) == "No stuffing plans found."
        assert json.loads(format_plan_table([], as_json=True)) == []


class TestFormatPlanDetail:
    """Tests for single plan rendering."""

    def test_shows_containers_and_unassigned(self):
        output = format_plan_detail(_plan())
        assert "Plan SP-001" in output
        assert "MSCU6639870 (22G1)" in output
        assert "Unassigned Packing Lists" in output
        assert "pl-b" in output

    def test_json(self):
        parsed = json.loads(format_plan_detail(_plan(), as_json=True))
        assert parsed["loading_batch"] == "B1"
        assert len(parsed["packing_lists"]) == 2

    def test_plan_without_rows(self):
        output = format_plan_detail(make_plan(status=PlanStatus.DONE))
        assert "DONE" in output
        assert "Containers" not in output


class TestFormatReadiness:
    """Tests for readiness rendering."""

    def test_ready(self):
        container = ready_container()
        report = evaluate_readiness(container, PositionStatus.success("IN_CFS"))
        output = format_readiness(container, report)
        assert "Ready to confirm." in output
        assert "success (IN_CFS)" in output

    def test_missing_requirements_listed(self):
        container = ready_container(equipment_booked=False)
        report = evaluate_readiness(container, PositionStatus.success("IN_YARD"))
        output = format_readiness(container, report)
        assert "Missing requirements:" in output
        assert "Container position status must be IN_CFS" in output
        assert "Equipment booked" in output

    def test_not_applicable(self):
        container = make_container(status=ContainerStatus.STUFFED)
        report = evaluate_readiness(container, None)
        output = format_readiness(container, report)
        assert "does not apply in STUFFED status" in output

    def test_json(self):
        container = ready_container()
        report = evaluate_readiness(container, PositionStatus.error())
        parsed = json.loads(format_readiness(container, report, as_json=True))
        assert parsed["can_confirm"] is False
        assert parsed["missing"] == ["Cannot verify container position status"]
        assert parsed["position_status"]["state"] == "error"
