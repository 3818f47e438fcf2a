"""Factories wiring the Plan Store client and workspace services from config.

CLI commands never construct concrete services directly; they go through
these functions so configuration is applied in one place.
"""

from stuffing_planner.cli.config import PlannerConfig
from stuffing_planner.services.duplicate_detector import DuplicateContainerDetector
from stuffing_planner.services.notifications import Confirmer, NotificationEmitter
from stuffing_planner.services.plan_board import PlanBoard
from stuffing_planner.services.plan_store import PlanStoreClient
from stuffing_planner.services.position_status import PositionStatusAdapter
from stuffing_planner.services.workspace import PlanWorkspace


def get_plan_store(config: PlannerConfig | None = None) -> PlanStoreClient:
    """Create the HTTP Plan Store client.

    Args:
        config: Loaded config; defaults apply when None.

    Returns:
        An unopened PlanStoreClient (use with ``async with``).
    """
    cfg = config or PlannerConfig()
    return PlanStoreClient(
        base_url=cfg.plan_store.base_url,
        api_key=cfg.plan_store.api_key,
        timeout=cfg.plan_store.timeout_seconds,
    )


def build_workspace(
    store,
    notifier: NotificationEmitter,
    confirm: Confirmer,
    config: PlannerConfig | None = None,
) -> PlanWorkspace:
    """Assemble a PlanWorkspace with detector and position adapter over store."""
    cfg = config or PlannerConfig()
    detector = DuplicateContainerDetector(
        store,
        page_size=cfg.duplicate_check.page_size,
        max_pages=cfg.duplicate_check.max_pages,
    )
    return PlanWorkspace(
        store,
        detector=detector,
        positions=PositionStatusAdapter(store),
        notifier=notifier,
        confirm=confirm,
        strict_iso6346=cfg.validation.strict_iso6346,
    )


def build_plan_board(store, notifier: NotificationEmitter, confirm: Confirmer) -> PlanBoard:
    return PlanBoard(store, notifier=notifier, confirm=confirm)
