"""Packing-list selection and assignment commands for one plan.

The coordinator holds a selection scoped to exactly one view: the
unassigned group (UNASSIGNED_KEY) or a single container. Switching views
clears the selection.

assign() and unassign() are thin commands. Every guard is checked against
the locally held plan before anything is sent; the change itself is one
atomic call to the Plan Store, and the plan it returns replaces the local
one. Counts and derived statuses are never recomputed here.
"""

import logging

from stuffing_planner.errors.domain import (
    AssignmentClosedError,
    EmptySelectionError,
    MissingTargetError,
    NotFoundError,
    PreconditionError,
)
from stuffing_planner.models.plan import Plan, PlanContainer, PlanPackingList
from stuffing_planner.services.readiness import accepts_assignments, is_locked

logger = logging.getLogger(__name__)

UNASSIGNED_KEY = "__unassigned__"

SELECT_UNASSIGNED_GROUP = "Select the unassigned packing list group to assign."
SELECT_CONTAINER_TO_UNASSIGN = "Select a container to unassign packing lists."


class AssignmentCoordinator:
    """Selection state plus assign/unassign commands for the bound plan."""

    def __init__(self, store, plan: Plan | None = None):
        self._store = store
        self._plan: Plan | None = None
        self._view_key = UNASSIGNED_KEY
        self._selected: set[str] = set()
        if plan is not None:
            self.bind_plan(plan)

    @property
    def plan(self) -> Plan | None:
        return self._plan

    @property
    def view_key(self) -> str:
        return self._view_key

    def bind_plan(self, plan: Plan) -> None:
        """Adopt a fresh plan snapshot.

        Switching to another plan resets the view. Within the same plan, a
        view whose container vanished falls back to the unassigned group, and
        selected ids that left the view are dropped.
        """
        if self._plan is None or self._plan.id != plan.id:
            self._view_key = UNASSIGNED_KEY
            self._selected.clear()
        self._plan = plan
        if self._view_key != UNASSIGNED_KEY and plan.get_container(self._view_key) is None:
            logger.info("Container %s left plan %s; showing unassigned group", self._view_key, plan.id)
            self._view_key = UNASSIGNED_KEY
            self._selected.clear()
            return
        self._selected &= self._selectable_ids()

    def set_view(self, view_key: str | None) -> None:
        """Switch the active view; the selection is cleared on every switch."""
        key = view_key or UNASSIGNED_KEY
        if key != self._view_key:
            self._selected.clear()
        self._view_key = key

    @property
    def active_container(self) -> PlanContainer | None:
        if self._plan is None or self._view_key == UNASSIGNED_KEY:
            return None
        return self._plan.get_container(self._view_key)

    @property
    def visible_packing_lists(self) -> list[PlanPackingList]:
        if self._plan is None:
            return []
        container_id = None if self._view_key == UNASSIGNED_KEY else self._view_key
        return self._plan.packing_lists_in(container_id)

    def _selectable_ids(self) -> set[str]:
        return {pl.packing_list_id for pl in self.visible_packing_lists if pl.packing_list_id}

    @property
    def selected_ids(self) -> list[str]:
        """Selected packing list ids in display order."""
        return [
            pl.packing_list_id
            for pl in self.visible_packing_lists
            if pl.packing_list_id in self._selected
        ]

    @property
    def is_selection_locked(self) -> bool:
        """True while the active view's container is IN_PROGRESS or later."""
        container = self.active_container
        return container is not None and is_locked(container)

    @property
    def all_selected(self) -> bool:
        selectable = self._selectable_ids()
        return bool(selectable) and selectable <= self._selected

    def toggle(self, packing_list_id: str) -> bool:
        """Flip one packing list in or out of the selection.

        Returns:
            False when toggling is disabled (locked view) or the id is not
            selectable in the active view; True otherwise.
        """
        if self.is_selection_locked:
            return False
        if packing_list_id not in self._selectable_ids():
            return False
        if packing_list_id in self._selected:
            self._selected.discard(packing_list_id)
        else:
            self._selected.add(packing_list_id)
        return True

    def select_all(self, checked: bool) -> bool:
        """Select or clear every selectable row in the active view."""
        if self.is_selection_locked:
            return False
        self._selected = self._selectable_ids() if checked else set()
        return True

    def _require_plan(self) -> Plan:
        if self._plan is None:
            raise NotFoundError("Plan")
        return self._plan

    def _resolve(self, plan: Plan, packing_list_ids: list[str] | None, action: str) -> list[PlanPackingList]:
        ids = self.selected_ids if packing_list_ids is None else list(dict.fromkeys(packing_list_ids))
        if not ids:
            raise EmptySelectionError(action)
        by_id = {pl.packing_list_id: pl for pl in plan.packing_lists if pl.packing_list_id}
        rows = []
        for packing_list_id in ids:
            row = by_id.get(packing_list_id)
            if row is None:
                raise NotFoundError("Packing list", packing_list_id)
            rows.append(row)
        return rows

    async def assign(
        self, target_container_id: str | None, packing_list_ids: list[str] | None = None
    ) -> Plan:
        """Move packing lists from the unassigned group into a container.

        Args:
            target_container_id: Container receiving the packing lists.
            packing_list_ids: Explicit ids; defaults to the current selection.

        Returns:
            The plan as returned by the Plan Store (or unchanged when every
            packing list is already on the target).

        Raises:
            PreconditionError: Not in the unassigned view, the target is
                missing or confirmed, or a row is already in another container.
            ValidationError: Nothing selected or no target chosen.
            PlanStoreError: The store rejected the change.
        """
        plan = self._require_plan()
        if self._view_key != UNASSIGNED_KEY:
            raise PreconditionError(SELECT_UNASSIGNED_GROUP)
        rows = self._resolve(plan, packing_list_ids, "assign")
        if not target_container_id:
            raise MissingTargetError()
        target = plan.get_container(target_container_id)
        if target is None:
            raise NotFoundError("Target container", target_container_id)
        if not accepts_assignments(target):
            raise AssignmentClosedError("receive assignments")

        changes = []
        for row in rows:
            if row.plan_container_id == target.id:
                continue
            if row.plan_container_id:
                raise PreconditionError(SELECT_UNASSIGNED_GROUP)
            changes.append(row)

        if not changes:
            logger.debug("Nothing to assign to container %s", target.id)
            self._selected.clear()
            return plan

        assignments = [
            {"packingListId": row.packing_list_id, "planContainerId": target.id}
            for row in changes
        ]
        logger.info(
            "Assigning %d packing lists to container %s in plan %s",
            len(assignments), target.id, plan.id,
        )
        updated = await self._store.assign_packing_lists(plan.id, assignments)
        self._selected.clear()
        self.bind_plan(updated)
        return updated

    async def unassign(self, packing_list_ids: list[str] | None = None) -> Plan:
        """Return packing lists from the active container to the unassigned group.

        Rows that are already unassigned are skipped; when nothing is left
        to change no request is sent.

        Raises:
            PreconditionError: No container view, the container is gone or
                confirmed, or a row sits in a different container.
            ValidationError: Nothing selected.
            PlanStoreError: The store rejected the change.
        """
        plan = self._require_plan()
        if self._view_key == UNASSIGNED_KEY:
            raise PreconditionError(SELECT_CONTAINER_TO_UNASSIGN)
        rows = self._resolve(plan, packing_list_ids, "unassign")
        container = plan.get_container(self._view_key)
        if container is None:
            raise NotFoundError("Container", self._view_key)
        if not accepts_assignments(container):
            raise AssignmentClosedError("unassign packing lists")

        changes = []
        for row in rows:
            if not row.plan_container_id:
                continue
            if row.plan_container_id != container.id:
                raise PreconditionError(
                    f"Packing list {row.packing_list_number or row.packing_list_id} "
                    "is not assigned to the selected container."
                )
            changes.append(row)

        if not changes:
            logger.debug("Nothing to unassign from container %s", container.id)
            self._selected.clear()
            return plan

        assignments = [
            {"packingListId": row.packing_list_id, "planContainerId": None}
            for row in changes
        ]
        logger.info(
            "Unassigning %d packing lists from container %s in plan %s",
            len(assignments), container.id, plan.id,
        )
        updated = await self._store.assign_packing_lists(plan.id, assignments)
        self._selected.clear()
        self.bind_plan(updated)
        return updated
