"""Plan workspace orchestrator.

Composes the assignment coordinator, readiness engine, duplicate detector
and position adapter over one plan. Holds the active view, the assign
target and the container modal, and turns every outcome into a
notification:

    workspace = PlanWorkspace(store, detector, positions, notifier, confirm)
    await workspace.load(plan_id)
    await workspace.select_view(container_id)
    await workspace.confirm_container(container_id)

Public operations never raise domain or Plan Store errors. They report the
failure through the notifier and return None (or False), leaving the
workspace state unchanged.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal, TypeVar

from pydantic import ValidationError as FormValidationError

from stuffing_planner.errors.domain import (
    ContainerNotDeletableError,
    ContainerNumberLockedError,
    DomainError,
    LockedContainerError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from stuffing_planner.models.forms import ContainerForm
from stuffing_planner.models.plan import ContainerStatus, Plan, PlanContainer
from stuffing_planner.services.assignment import UNASSIGNED_KEY, AssignmentCoordinator
from stuffing_planner.services.duplicate_detector import DuplicateContainerDetector
from stuffing_planner.services.errors import PlanStoreError
from stuffing_planner.services.notifications import Confirmer, NotificationEmitter
from stuffing_planner.services.position_status import PositionStatusAdapter
from stuffing_planner.services.readiness import (
    ReadinessReport,
    accepts_assignments,
    can_delete_container,
    derive_assignment_status,
    evaluate_readiness,
    is_container_number_locked,
    is_locked,
    is_observed_change_allowed,
    requires_confirmation,
    validate_transition,
)
from stuffing_planner.utils.container_number import (
    is_valid_iso6346,
    normalize_container_number,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONTAINER_ADDED = "Container added."
CONTAINER_UPDATED = "Container updated."
CONTAINER_DELETED = "Container deleted."
CONTAINER_STATUS_UPDATED = "Container status updated."
ASSIGNMENTS_UPDATED = "Packing list assignments updated."
DELETE_CONTAINER_PROMPT = "Delete container? This action cannot be undone."


def _container_phrase(container: PlanContainer) -> str:
    label = container.short_label
    return f"container {label}" if label else "this container"


def unconfirm_prompt(container: PlanContainer) -> str:
    return f"Unconfirm {_container_phrase(container)}?"


def start_stuffing_prompt(container: PlanContainer) -> str:
    return f"Start stuffing for {_container_phrase(container)}? This will be unchangeable."


STATUS_PROMPTS: dict[ContainerStatus, Callable[[PlanContainer], str]] = {
    ContainerStatus.SPECIFIED: unconfirm_prompt,
    ContainerStatus.IN_PROGRESS: start_stuffing_prompt,
}


def sort_containers(containers: list[PlanContainer]) -> list[PlanContainer]:
    """Order by status rank, then container number (unnumbered first)."""
    return sorted(containers, key=lambda c: (c.status.rank, c.container_number or ""))


def form_error_message(error: FormValidationError) -> str:
    """Flatten pydantic errors into one user-facing line."""
    parts = []
    for err in error.errors():
        field = ".".join(str(part) for part in err.get("loc", ()))
        parts.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return "; ".join(parts)


@dataclass
class ContainerModalState:
    """Create/edit container modal."""

    open: bool = False
    mode: Literal["create", "edit"] = "create"
    container_id: str | None = None


class PlanWorkspace:
    """Interactive workspace over a single plan."""

    def __init__(
        self,
        store,
        detector: DuplicateContainerDetector,
        positions: PositionStatusAdapter,
        notifier: NotificationEmitter,
        confirm: Confirmer,
        strict_iso6346: bool = False,
    ):
        self._store = store
        self.detector = detector
        self.positions = positions
        self.notifier = notifier
        self._confirm = confirm
        self._strict_iso6346 = strict_iso6346
        self.assignment = AssignmentCoordinator(store)
        self.modal = ContainerModalState()
        self._plan: Plan | None = None
        self._assign_target_id: str | None = None

    # -- State ------------------------------------------------------------------

    @property
    def plan(self) -> Plan | None:
        return self._plan

    @property
    def view_key(self) -> str:
        return self.assignment.view_key

    @property
    def assign_target_id(self) -> str | None:
        return self._assign_target_id

    @property
    def sorted_containers(self) -> list[PlanContainer]:
        if self._plan is None:
            return []
        return sort_containers(self._plan.containers)

    @property
    def active_container(self) -> PlanContainer | None:
        return self.assignment.active_container

    def default_assign_target(self) -> str | None:
        """First container, in display order, that still accepts assignments."""
        for container in self.sorted_containers:
            if accepts_assignments(container):
                return container.id
        return None

    def apply_plan(self, plan: Plan) -> None:
        """Adopt a plan snapshot from the Plan Store as the new truth.

        Dangling references to containers that vanished are reset: the
        view falls back to the unassigned group, the assign target to the
        default, and an edit modal is closed.

        Statuses are never recomputed; a CREATED/SPECIFIED status that
        disagrees with the assigned count is only logged.
        """
        for container in plan.containers:
            expected = derive_assignment_status(container.status, container.assigned_packing_list_count)
            if expected != container.status:
                logger.warning(
                    "Container %s is %s with %d packing lists assigned",
                    container.id, container.status.value, container.assigned_packing_list_count,
                )

        previous = self._plan
        if previous is not None and previous.id == plan.id:
            for container in plan.containers:
                old = previous.get_container(container.id)
                if old and not is_observed_change_allowed(old.status, container.status):
                    logger.warning(
                        "Container %s moved backwards from %s to %s",
                        container.id, old.status.value, container.status.value,
                    )
        elif previous is not None:
            self._assign_target_id = None
            self.close_modal()

        self._plan = plan
        self.assignment.bind_plan(plan)

        if self._assign_target_id and plan.get_container(self._assign_target_id) is None:
            self._assign_target_id = None
        if self._assign_target_id is None:
            self._assign_target_id = self.default_assign_target()

        if (
            self.modal.open
            and self.modal.mode == "edit"
            and plan.get_container(self.modal.container_id) is None
        ):
            logger.info("Closing edit modal for removed container %s", self.modal.container_id)
            self.close_modal()

    def _require_plan(self) -> Plan:
        if self._plan is None:
            raise NotFoundError("Plan")
        return self._plan

    def _require_container(self, container_id: str | None) -> PlanContainer:
        container = self._require_plan().get_container(container_id)
        if container is None:
            raise NotFoundError("Container", container_id)
        return container

    def _editable_container(self, container_id: str | None) -> PlanContainer:
        container = self._require_container(container_id)
        if is_locked(container):
            raise LockedContainerError(container.id)
        return container

    async def _guarded(self, action: str, op: Callable[[], Awaitable[T]]) -> T | None:
        try:
            return await op()
        except (DomainError, PlanStoreError) as e:
            logger.info("%s refused: %s", action, e)
            await self.notifier.error(str(e))
            return None

    def _focus_active_view(self) -> asyncio.Task | None:
        return self.positions.focus(self.view_key, self.active_container)

    # -- Loading ----------------------------------------------------------------

    async def _refresh_duplicates(self) -> None:
        try:
            await self.detector.refresh()
        except PlanStoreError as e:
            logger.warning("Duplicate check snapshot unavailable: %s", e)

    async def load(self, plan_id: str) -> Plan | None:
        """Fetch a plan, the duplicate snapshot, and the active position."""
        async def op() -> Plan:
            plan = await self._store.get_plan(plan_id)
            self.apply_plan(plan)
            await self._refresh_duplicates()
            self._focus_active_view()
            return plan

        return await self._guarded("load", op)

    async def refresh(self) -> Plan | None:
        """Re-read the current plan from the Plan Store."""
        async def op() -> Plan:
            plan = await self._store.get_plan(self._require_plan().id)
            self.apply_plan(plan)
            self._focus_active_view()
            return plan

        return await self._guarded("refresh", op)

    # -- View & target ----------------------------------------------------------

    async def select_view(self, view_key: str | None) -> bool:
        """Show the unassigned group (None or UNASSIGNED_KEY) or one container."""
        key = view_key or UNASSIGNED_KEY

        async def op() -> bool:
            self._require_plan()
            if key != UNASSIGNED_KEY:
                self._require_container(key)
            self.assignment.set_view(key)
            if key == UNASSIGNED_KEY and self._assign_target_id is None:
                self._assign_target_id = self.default_assign_target()
            self._focus_active_view()
            return True

        return bool(await self._guarded("select view", op))

    async def set_assign_target(self, container_id: str | None) -> bool:
        async def op() -> bool:
            if container_id is not None:
                container = self._require_container(container_id)
                if not accepts_assignments(container):
                    raise PreconditionError(
                        "Only containers before CONFIRMED can receive assignments."
                    )
            self._assign_target_id = container_id
            return True

        return bool(await self._guarded("set assign target", op))

    # -- Container modal --------------------------------------------------------

    def open_create_modal(self) -> ContainerModalState:
        self.modal = ContainerModalState(open=True, mode="create")
        return self.modal

    async def open_edit_modal(self, container_id: str) -> ContainerForm | None:
        """Open the edit modal prefilled from the container."""
        async def op() -> ContainerForm:
            container = self._editable_container(container_id)
            self.modal = ContainerModalState(open=True, mode="edit", container_id=container.id)
            return ContainerForm.from_container(container)

        return await self._guarded("edit container", op)

    def close_modal(self) -> None:
        self.modal = ContainerModalState()

    def _check_container_number(self, form: ContainerForm, existing: PlanContainer | None) -> None:
        number = normalize_container_number(form.container_number)
        if existing is not None and is_container_number_locked(existing):
            if number != normalize_container_number(existing.container_number):
                raise ContainerNumberLockedError()
            return
        if not number:
            return
        if self._strict_iso6346 and not is_valid_iso6346(number):
            raise ValidationError(f"Container number {number} fails the ISO 6346 check digit.")
        self.detector.ensure_unique(number, existing.id if existing else None)

    async def save_container(
        self, form: ContainerForm | dict[str, Any], container_id: str | None = None
    ) -> PlanContainer | None:
        """Create or update a container from form input.

        Edits the container given by container_id, or the one in an open
        edit modal; otherwise creates a new container.
        """
        if container_id is None and self.modal.open and self.modal.mode == "edit":
            container_id = self.modal.container_id

        async def op() -> PlanContainer:
            plan = self._require_plan()
            try:
                raw = form.model_dump() if isinstance(form, ContainerForm) else form
                values = ContainerForm.model_validate(raw)
            except FormValidationError as e:
                raise ValidationError(form_error_message(e)) from e

            existing = self._editable_container(container_id) if container_id else None
            if values.container_number and not self.detector.is_ready:
                await self._refresh_duplicates()
            self._check_container_number(values, existing)

            payload = values.to_payload()
            if existing is None:
                saved = await self._store.create_container(plan.id, payload)
                message = CONTAINER_ADDED
            else:
                saved = await self._store.update_container(plan.id, existing.id, payload)
                message = CONTAINER_UPDATED
            logger.info("Saved container %s in plan %s", saved.id, plan.id)
            self.close_modal()
            await self.notifier.success(message)
            return saved

        saved = await self._guarded("save container", op)
        if saved is not None:
            await self.refresh()
            await self._refresh_duplicates()
        return saved

    async def delete_container(self, container_id: str) -> bool:
        """Delete an empty CREATED/SPECIFIED container after confirmation."""
        async def op() -> bool:
            plan = self._require_plan()
            container = self._editable_container(container_id)
            if not can_delete_container(container):
                raise ContainerNotDeletableError()
            if not await self._confirm(DELETE_CONTAINER_PROMPT):
                return False
            await self._store.delete_container(plan.id, container.id)
            logger.info("Deleted container %s from plan %s", container.id, plan.id)
            await self.notifier.success(CONTAINER_DELETED)
            return True

        deleted = bool(await self._guarded("delete container", op))
        if deleted:
            await self.refresh()
            await self._refresh_duplicates()
        return deleted

    # -- Status transitions -----------------------------------------------------

    async def _change_status(self, container_id: str, target: ContainerStatus) -> PlanContainer | None:
        async def op() -> PlanContainer | None:
            plan = self._require_plan()
            container = self._editable_container(container_id)
            validate_transition(container, target, self.positions.status_for(container))
            if requires_confirmation(container.status, target):
                if not await self._confirm(STATUS_PROMPTS[target](container)):
                    return None
            updated = await self._store.change_container_status(
                plan.id, container.id, target.value
            )
            logger.info(
                "Container %s status %s -> %s", container.id, container.status.value, target.value
            )
            await self.notifier.success(CONTAINER_STATUS_UPDATED)
            return updated

        updated = await self._guarded(f"change status to {target.value}", op)
        if updated is not None:
            await self.refresh()
        return updated

    async def confirm_container(self, container_id: str) -> PlanContainer | None:
        """SPECIFIED -> CONFIRMED when every readiness requirement is met."""
        return await self._change_status(container_id, ContainerStatus.CONFIRMED)

    async def unconfirm_container(self, container_id: str) -> PlanContainer | None:
        """CONFIRMED -> SPECIFIED after explicit confirmation."""
        return await self._change_status(container_id, ContainerStatus.SPECIFIED)

    async def start_stuffing(self, container_id: str) -> PlanContainer | None:
        """CONFIRMED -> IN_PROGRESS after explicit confirmation. Irreversible."""
        return await self._change_status(container_id, ContainerStatus.IN_PROGRESS)

    async def toggle_confirm(self, container_id: str, checked: bool) -> PlanContainer | None:
        """Confirm toggle: checked confirms, unchecked unconfirms."""
        if checked:
            return await self.confirm_container(container_id)
        return await self.unconfirm_container(container_id)

    # -- Assignments ------------------------------------------------------------

    async def assign_selected(
        self,
        target_container_id: str | None = None,
        packing_list_ids: list[str] | None = None,
    ) -> Plan | None:
        """Assign unassigned packing lists to the target container.

        Uses the current selection unless packing_list_ids is given, and the
        current assign target unless target_container_id is given.
        """
        async def op() -> Plan:
            self._require_plan()
            target = target_container_id or self._assign_target_id
            before = self.assignment.plan
            plan = await self.assignment.assign(target, packing_list_ids)
            if plan is not before:
                await self.notifier.success(ASSIGNMENTS_UPDATED)
            return plan

        plan = await self._guarded("assign", op)
        if plan is not None:
            self.apply_plan(plan)
        return plan

    async def unassign_selected(self, packing_list_ids: list[str] | None = None) -> Plan | None:
        """Return packing lists of the active container to the unassigned group."""
        async def op() -> Plan:
            self._require_plan()
            before = self.assignment.plan
            plan = await self.assignment.unassign(packing_list_ids)
            if plan is not before:
                await self.notifier.success(ASSIGNMENTS_UPDATED)
            return plan

        plan = await self._guarded("unassign", op)
        if plan is not None:
            self.apply_plan(plan)
        return plan

    # -- Readiness --------------------------------------------------------------

    def readiness_for(self, container_id: str | None = None) -> ReadinessReport | None:
        """Readiness of a container, defaulting to the active view's container."""
        if self._plan is None:
            return None
        container = (
            self._plan.get_container(container_id) if container_id else self.active_container
        )
        if container is None:
            return None
        return evaluate_readiness(container, self.positions.status_for(container))
