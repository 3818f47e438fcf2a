"""Tests for plan models parsed from Plan Store JSON."""

import pytest

from stuffing_planner.models.plan import (
    ContainerStatus,
    Plan,
    PlanContainer,
    PlanPage,
    PlanStatus,
    PositionLookupState,
    PositionStatus,
)
from tests.helpers.factories import make_container, make_packing_list, make_plan


class TestContainerStatus:
    """Tests for the container status order."""

    def test_total_order(self):
        ordered = sorted([
            ContainerStatus.STUFFED,
            ContainerStatus.CREATED,
            ContainerStatus.IN_PROGRESS,
            ContainerStatus.CONFIRMED,
            ContainerStatus.SPECIFIED,
        ])
        assert ordered == list(ContainerStatus)

    def test_comparisons(self):
        assert ContainerStatus.SPECIFIED < ContainerStatus.CONFIRMED
        assert ContainerStatus.IN_PROGRESS >= ContainerStatus.IN_PROGRESS
        assert ContainerStatus.STUFFED > ContainerStatus.CREATED
        assert ContainerStatus.CREATED.rank == 0

    def test_comparison_with_other_types_fails(self):
        with pytest.raises(TypeError):
            ContainerStatus.CREATED < 1


class TestFromApi:
    """Tests for from_api constructors."""

    def test_container_defaults_and_extra_fields(self):
        container = PlanContainer.from_api(
            {"id": "c-1", "somethingNew": True, "assignedPackingListCount": None},
            plan_id="p-1",
        )
        assert container.plan_id == "p-1"
        assert container.status == ContainerStatus.CREATED
        assert container.assigned_packing_list_count == 0
        assert container.equipment_booked is False

    def test_container_plan_id_from_body_wins(self):
        container = PlanContainer.from_api({"id": "c-1", "planId": "p-9"}, plan_id="p-1")
        assert container.plan_id == "p-9"

    def test_plan_with_null_collections(self):
        plan = Plan.from_api({"id": "p-1", "status": "DONE", "containers": None})
        assert plan.status == PlanStatus.DONE
        assert plan.containers == []
        assert plan.packing_lists == []
        assert plan.export_order_id == ""

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            Plan.from_api({"id": "p-1", "status": "ARCHIVED"})

    def test_page_from_bare_list(self):
        page = PlanPage.from_api([{"id": "p-1"}, {"id": "p-2"}])
        assert page.total == 2
        assert [p.id for p in page.results] == ["p-1", "p-2"]

    def test_page_total_defaults_to_result_count(self):
        page = PlanPage.from_api({"results": [{"id": "p-1"}]})
        assert page.total == 1


class TestPlanHelpers:
    """Tests for labels and lookups."""

    def test_labels(self):
        assert make_plan("p-1", code="SP-1").label == "SP-1"
        assert Plan(id="p-1", export_order_id="EO-1", status=PlanStatus.CREATED).label == "p-1"
        container = make_container(container_number=None, container_type_code=None)
        assert container.label == "No number (Unknown type)"
        assert container.short_label is None

    def test_is_active(self):
        assert make_plan(status=PlanStatus.CREATED).is_active
        assert make_plan(status=PlanStatus.IN_PROGRESS).is_active
        assert not make_plan(status=PlanStatus.DONE).is_active

    def test_packing_lists_in(self):
        plan = make_plan(
            containers=[make_container("c-1")],
            packing_lists=[
                make_packing_list("a", container_id="c-1"),
                make_packing_list("b"),
            ],
        )
        assert [pl.id for pl in plan.packing_lists_in("c-1")] == ["a"]
        assert [pl.id for pl in plan.packing_lists_in(None)] == ["b"]
        assert plan.get_container("c-1") is plan.containers[0]
        assert plan.get_container(None) is None
        assert plan.get_container("c-9") is None


def test_position_status_constructors():
    assert PositionStatus.idle().state == PositionLookupState.IDLE
    assert PositionStatus.loading().state == PositionLookupState.LOADING
    assert PositionStatus.success("IN_CFS") == PositionStatus(PositionLookupState.SUCCESS, "IN_CFS")
    assert PositionStatus.error().value is None
