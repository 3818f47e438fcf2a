"""Plan list, selection and plan-level commands.

The board lists the most recent plans, shows the active ones (CREATED or
IN_PROGRESS) and keeps one of them selected for the workspace.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from stuffing_planner.errors.domain import (
    DomainError,
    PlanNotDeletableError,
    PreconditionError,
    ValidationError,
)
from stuffing_planner.models.plan import Plan, PlanStatus
from stuffing_planner.services.errors import PlanStoreError
from stuffing_planner.services.notifications import Confirmer, NotificationEmitter

logger = logging.getLogger(__name__)

T = TypeVar("T")

PLAN_LIST_PAGE_SIZE = 100

PLAN_CREATED = "Stuffing plan created."
PLAN_UPDATED = "Stuffing plan updated."
PLAN_DELETED = "Stuffing plan deleted."
PLAN_STATUS_UPDATED = "Plan status updated."
DELETE_PLAN_PROMPT = "Delete stuffing plan? This action cannot be undone."

# Format: current_status -> allowed next statuses
PLAN_TRANSITIONS: dict[PlanStatus, list[PlanStatus]] = {
    PlanStatus.CREATED: [PlanStatus.IN_PROGRESS],
    PlanStatus.IN_PROGRESS: [PlanStatus.DONE],
    PlanStatus.DONE: [],
}


def can_delete_plan(plan: Plan) -> bool:
    """A plan may be deleted only while CREATED and empty."""
    return plan.status == PlanStatus.CREATED and not plan.containers


def can_transition_plan(current: PlanStatus, target: PlanStatus) -> bool:
    return target in PLAN_TRANSITIONS.get(current, [])


class PlanBoard:
    """Recent plans and the selected active plan."""

    def __init__(self, store, notifier: NotificationEmitter, confirm: Confirmer):
        self._store = store
        self.notifier = notifier
        self._confirm = confirm
        self._plans: list[Plan] = []
        self._selected_plan_id: str | None = None

    @property
    def plans(self) -> list[Plan]:
        return list(self._plans)

    @property
    def active_plans(self) -> list[Plan]:
        return [plan for plan in self._plans if plan.is_active]

    @property
    def selected_plan_id(self) -> str | None:
        """Explicit selection, else the first active plan."""
        if self._selected_plan_id:
            return self._selected_plan_id
        active = self.active_plans
        return active[0].id if active else None

    def get_plan(self, plan_id: str) -> Plan | None:
        for plan in self._plans:
            if plan.id == plan_id:
                return plan
        return None

    def select(self, plan_id: str | None) -> None:
        self._selected_plan_id = plan_id

    async def _guarded(self, action: str, op: Callable[[], Awaitable[T]]) -> T | None:
        try:
            return await op()
        except (DomainError, PlanStoreError) as e:
            logger.info("%s refused: %s", action, e)
            await self.notifier.error(str(e))
            return None

    async def refresh(self) -> list[Plan] | None:
        """Reload the first page of plans, newest first."""
        async def op() -> list[Plan]:
            page = await self._store.list_plans(
                page=1,
                items_per_page=PLAN_LIST_PAGE_SIZE,
                order_by="createdAt",
                order_dir="desc",
            )
            self._plans = page.results
            logger.debug("Loaded %d of %d plans", len(page.results), page.total)
            return self._plans

        return await self._guarded("list plans", op)

    async def create_plan(self, export_order_id: str, loading_batch: str | None = None) -> Plan | None:
        async def op() -> Plan:
            if not export_order_id.strip():
                raise ValidationError("Export order is required.")
            plan = await self._store.create_plan(export_order_id.strip(), loading_batch)
            logger.info("Created plan %s for export order %s", plan.id, plan.export_order_id)
            await self.notifier.success(PLAN_CREATED)
            return plan

        plan = await self._guarded("create plan", op)
        if plan is not None:
            self._selected_plan_id = plan.id
            await self.refresh()
        return plan

    async def update_plan(self, plan_id: str, loading_batch: str | None) -> Plan | None:
        async def op() -> Plan:
            plan = await self._store.update_plan(plan_id, loading_batch)
            await self.notifier.success(PLAN_UPDATED)
            return plan

        plan = await self._guarded("update plan", op)
        if plan is not None:
            await self.refresh()
        return plan

    async def change_status(self, plan_id: str, status: PlanStatus) -> Plan | None:
        """Advance a plan along CREATED -> IN_PROGRESS -> DONE."""
        async def op() -> Plan:
            plan = self.get_plan(plan_id) or await self._store.get_plan(plan_id)
            if not can_transition_plan(plan.status, status):
                raise PreconditionError(
                    f"Cannot change plan from {plan.status.value} to {status.value}."
                )
            updated = await self._store.change_plan_status(plan.id, status.value)
            logger.info("Plan %s status %s -> %s", plan.id, plan.status.value, status.value)
            await self.notifier.success(PLAN_STATUS_UPDATED)
            return updated

        updated = await self._guarded("change plan status", op)
        if updated is not None:
            await self.refresh()
        return updated

    async def delete_plan(self, plan_id: str) -> bool:
        """Delete an empty CREATED plan after confirmation.

        When the deleted plan was selected, the next active plan is
        selected instead.
        """
        async def op() -> bool:
            plan = self.get_plan(plan_id) or await self._store.get_plan(plan_id)
            if not can_delete_plan(plan):
                raise PlanNotDeletableError()
            if not await self._confirm(DELETE_PLAN_PROMPT):
                return False
            await self._store.delete_plan(plan.id)
            logger.info("Deleted plan %s", plan.id)
            await self.notifier.success(PLAN_DELETED)
            return True

        was_selected = self.selected_plan_id == plan_id
        deleted = bool(await self._guarded("delete plan", op))
        if deleted:
            if was_selected:
                next_plan = next((p for p in self.active_plans if p.id != plan_id), None)
                self._selected_plan_id = next_plan.id if next_plan else None
            self._plans = [p for p in self._plans if p.id != plan_id]
            await self.refresh()
        return deleted
