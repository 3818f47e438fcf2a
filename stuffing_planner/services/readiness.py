"""Container readiness rules and status state machine.

This module is the single place that decides whether a container may be
confirmed, unconfirmed, started, edited, deleted, or may gain or lose
packing lists. Everything here is pure: no I/O, no mutation.

Readiness requirements are evaluated in a fixed order and every unmet one
is collected, so the user sees all missing prerequisites at once. The same
list gates the confirm toggle: a SPECIFIED container with no missing
requirements can be confirmed.

User-invoked transitions:

    SPECIFIED  -> CONFIRMED    confirm (requires can_confirm)
    CONFIRMED  -> SPECIFIED    unconfirm (destructive confirmation)
    CONFIRMED  -> IN_PROGRESS  start stuffing (destructive, irreversible)

CREATED <-> SPECIFIED follows the assigned packing list count and
IN_PROGRESS -> STUFFED is driven by stuffing execution; neither is
requested through this module.
"""

from dataclasses import dataclass, field

from stuffing_planner.errors.domain import (
    ConfirmRequirementsError,
    IllegalTransitionError,
)
from stuffing_planner.models.plan import (
    ContainerStatus,
    PlanContainer,
    PositionLookupState,
    PositionStatus,
)

REQUIRED_POSITION_STATUS = "IN_CFS"

MISSING_PACKING_LIST = "Assign at least 1 packing list"
MISSING_POSITION_UNVERIFIED = "Cannot verify container position status"
MISSING_POSITION_NOT_IN_CFS = f"Container position status must be {REQUIRED_POSITION_STATUS}"
MISSING_EQUIPMENT = "Equipment booked"
MISSING_APPOINTMENT = "Appointment scheduled"
MISSING_ESTIMATED_STUFFING = "Estimated stuffing time"
MISSING_ESTIMATED_MOVE = "Estimated move time"


# Format: current_status -> statuses a user action may move it to
CONTAINER_TRANSITIONS: dict[ContainerStatus, list[ContainerStatus]] = {
    ContainerStatus.CREATED: [],
    ContainerStatus.SPECIFIED: [ContainerStatus.CONFIRMED],
    ContainerStatus.CONFIRMED: [
        ContainerStatus.SPECIFIED,    # Unconfirm
        ContainerStatus.IN_PROGRESS,  # Start stuffing
    ],
    ContainerStatus.IN_PROGRESS: [],
    ContainerStatus.STUFFED: [],
}

# Transitions that need an explicit yes from the user before the request.
DESTRUCTIVE_TRANSITIONS = frozenset({
    (ContainerStatus.CONFIRMED, ContainerStatus.SPECIFIED),
    (ContainerStatus.CONFIRMED, ContainerStatus.IN_PROGRESS),
})


@dataclass
class ReadinessReport:
    """Readiness of one container for the confirm toggle."""

    container_id: str
    status: ContainerStatus
    position_status: PositionStatus
    missing: list[str] = field(default_factory=list)
    can_confirm: bool = False


def missing_requirements(
    container: PlanContainer, position_status: PositionStatus | None
) -> list[str]:
    """List unmet confirm prerequisites in display order.

    An unknown position (no number, idle, loading, error) counts as not
    ready, the same as a wrong position.

    Args:
        container: Container as last read from the Plan Store.
        position_status: Result of the position lookup, None when not looked up.

    Returns:
        Human-readable requirement labels; empty when ready.
    """
    position = position_status or PositionStatus.idle()
    missing: list[str] = []

    if (container.assigned_packing_list_count or 0) < 1:
        missing.append(MISSING_PACKING_LIST)

    if not container.container_number:
        missing.append(MISSING_POSITION_UNVERIFIED)
    elif position.state != PositionLookupState.SUCCESS:
        missing.append(MISSING_POSITION_UNVERIFIED)
    elif position.value != REQUIRED_POSITION_STATUS:
        missing.append(MISSING_POSITION_NOT_IN_CFS)

    if not container.equipment_booked:
        missing.append(MISSING_EQUIPMENT)
    if not container.appointment_booked:
        missing.append(MISSING_APPOINTMENT)
    if not container.estimated_stuffing_at:
        missing.append(MISSING_ESTIMATED_STUFFING)
    if not container.estimated_move_at:
        missing.append(MISSING_ESTIMATED_MOVE)
    return missing


def can_confirm(container: PlanContainer, position_status: PositionStatus | None) -> bool:
    """True iff the container is SPECIFIED and every requirement is met."""
    return (
        container.status == ContainerStatus.SPECIFIED
        and not missing_requirements(container, position_status)
    )


def evaluate_readiness(
    container: PlanContainer, position_status: PositionStatus | None
) -> ReadinessReport:
    """Build the readiness report shown beside the confirm toggle.

    Requirements are only listed for SPECIFIED containers; other statuses
    are either not ready for confirmation yet or already past it.
    """
    position = position_status or PositionStatus.idle()
    missing = (
        missing_requirements(container, position)
        if container.status == ContainerStatus.SPECIFIED
        else []
    )
    return ReadinessReport(
        container_id=container.id,
        status=container.status,
        position_status=position,
        missing=missing,
        can_confirm=container.status == ContainerStatus.SPECIFIED and not missing,
    )


# -- Transition table helpers -------------------------------------------------

def can_transition(current: ContainerStatus, target: ContainerStatus) -> bool:
    """Check if a user-invoked transition is in the table."""
    return target in CONTAINER_TRANSITIONS.get(current, [])


def allowed_transitions(current: ContainerStatus) -> list[ContainerStatus]:
    """Statuses reachable from current through a user action."""
    return list(CONTAINER_TRANSITIONS.get(current, []))


def requires_confirmation(current: ContainerStatus, target: ContainerStatus) -> bool:
    return (current, target) in DESTRUCTIVE_TRANSITIONS


def validate_transition(
    container: PlanContainer,
    target: ContainerStatus,
    position_status: PositionStatus | None = None,
) -> None:
    """Validate a user-invoked status change before it is requested.

    Raises:
        IllegalTransitionError: target is not reachable from the current status.
        ConfirmRequirementsError: target is CONFIRMED but requirements are unmet.
    """
    current = container.status
    if not can_transition(current, target):
        allowed = allowed_transitions(current)
        if not allowed:
            raise IllegalTransitionError(
                current.value,
                target.value,
                detail=f"Container in {current.value} status cannot change status from here.",
            )
        raise IllegalTransitionError(current.value, target.value)

    if target == ContainerStatus.CONFIRMED:
        missing = missing_requirements(container, position_status)
        if missing:
            raise ConfirmRequirementsError(missing)


def derive_assignment_status(
    status: ContainerStatus, assigned_count: int
) -> ContainerStatus:
    """Status implied by the assigned packing list count.

    CREATED becomes SPECIFIED when the first packing list arrives and
    SPECIFIED falls back to CREATED when the last one leaves. Every other
    status is unaffected by assignments.

    The Plan Store applies this rule; callers use it to check a snapshot,
    never to overwrite the status it reports.
    """
    if status == ContainerStatus.CREATED and assigned_count > 0:
        return ContainerStatus.SPECIFIED
    if status == ContainerStatus.SPECIFIED and assigned_count == 0:
        return ContainerStatus.CREATED
    return status


def is_observed_change_allowed(old: ContainerStatus, new: ContainerStatus) -> bool:
    """Check a status change seen between two reads of the same container.

    Forward moves are always legal (the store may apply several steps
    between reads). The only backward moves are unconfirm
    (CONFIRMED -> SPECIFIED) and losing the last packing list
    (SPECIFIED -> CREATED).
    """
    if new >= old:
        return True
    return (old, new) in {
        (ContainerStatus.CONFIRMED, ContainerStatus.SPECIFIED),
        (ContainerStatus.SPECIFIED, ContainerStatus.CREATED),
    }


# -- Status check helpers -------------------------------------------------------

def is_locked(container: PlanContainer) -> bool:
    """Locked containers (IN_PROGRESS or later) are read-only."""
    return container.status >= ContainerStatus.IN_PROGRESS


def accepts_assignments(container: PlanContainer) -> bool:
    """Packing lists may move in or out only before CONFIRMED."""
    return container.status < ContainerStatus.CONFIRMED


def can_delete_container(container: PlanContainer) -> bool:
    """Only empty CREATED or SPECIFIED containers can be deleted."""
    return container.assigned_packing_list_count == 0 and container.status in (
        ContainerStatus.CREATED,
        ContainerStatus.SPECIFIED,
    )


def is_container_number_locked(container: PlanContainer) -> bool:
    """The container number is frozen from CONFIRMED onwards."""
    return container.status >= ContainerStatus.CONFIRMED
