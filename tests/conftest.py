"""Root-level pytest fixtures for all tests.

Provides shared fixtures for workspace testing:
- Notification emitter wired to a recording observer
- Scripted confirmation prompts
- A PlanWorkspace factory over the in-memory FakePlanStore
"""

import pytest

from stuffing_planner.services.duplicate_detector import DuplicateContainerDetector
from stuffing_planner.services.notifications import NotificationEmitter, RecordingObserver
from stuffing_planner.services.plan_board import PlanBoard
from stuffing_planner.services.position_status import PositionStatusAdapter
from stuffing_planner.services.workspace import PlanWorkspace
from tests.helpers.fake_plan_store import FakePlanStore


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that talk to a live Plan Store"
    )


class ScriptedConfirm:
    """Confirmer that answers from a fixed reply and records every prompt."""

    def __init__(self, reply: bool = True):
        self.reply = reply
        self.prompts: list[str] = []

    async def __call__(self, message: str) -> bool:
        self.prompts.append(message)
        return self.reply


@pytest.fixture
def recorder() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def notifier(recorder) -> NotificationEmitter:
    emitter = NotificationEmitter()
    emitter.add_observer(recorder)
    return emitter


@pytest.fixture
def confirm() -> ScriptedConfirm:
    return ScriptedConfirm(reply=True)


@pytest.fixture
def make_workspace(notifier, confirm):
    """Factory: make_workspace(store, strict_iso6346=False) -> PlanWorkspace."""

    def _make(store: FakePlanStore, strict_iso6346: bool = False) -> PlanWorkspace:
        return PlanWorkspace(
            store,
            detector=DuplicateContainerDetector(store),
            positions=PositionStatusAdapter(store),
            notifier=notifier,
            confirm=confirm,
            strict_iso6346=strict_iso6346,
        )

    return _make


@pytest.fixture
def make_board(notifier, confirm):
    """Factory: make_board(store) -> PlanBoard."""

    def _make(store: FakePlanStore) -> PlanBoard:
        return PlanBoard(store, notifier=notifier, confirm=confirm)

    return _make
