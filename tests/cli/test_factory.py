"""Tests for the service factories."""

from stuffing_planner.cli.config import PlannerConfig
from stuffing_planner.cli.factory import build_plan_board, build_workspace, get_plan_store
from stuffing_planner.services.notifications import NotificationEmitter
from stuffing_planner.services.plan_board import PlanBoard
from stuffing_planner.services.plan_store import PlanStoreClient
from tests.helpers.fake_plan_store import FakePlanStore


async def _yes(message: str) -> bool:
    return True


class TestGetPlanStore:
    """Tests for Plan Store client construction."""

    def test_defaults(self):
        client = get_plan_store()
        assert isinstance(client, PlanStoreClient)
        assert client._base_url == "http://127.0.0.1:8080/api/v1"
        assert client._api_key == ""

    def test_uses_config(self):
        cfg = PlannerConfig.model_validate({
            "plan_store": {
                "base_url": "https://store.example/api/v1",
                "api_key": "k-1",
                "timeout_seconds": 5,
            },
        })
        client = get_plan_store(cfg)
        assert client._base_url == "https://store.example/api/v1"
        assert client._api_key == "k-1"
        assert client._timeout == 5


class TestBuildWorkspace:
    """Tests for workspace assembly."""

    def test_applies_config(self):
        cfg = PlannerConfig.model_validate({
            "duplicate_check": {"page_size": 50, "max_pages": 2},
            "validation": {"strict_iso6346": True},
        })
        store = FakePlanStore([])
        workspace = build_workspace(store, NotificationEmitter(), _yes, cfg)
        assert workspace._strict_iso6346 is True
        assert workspace.detector._page_size == 50
        assert workspace.detector._max_pages == 2

    def test_plan_board(self):
        board = build_plan_board(FakePlanStore([]), NotificationEmitter(), _yes)
        assert isinstance(board, PlanBoard)
