"""Typed domain exceptions for the stuffing planner.

Validation and precondition failures are detected from locally held
state before any Plan Store request is sent. Callers (the workspace
orchestrator, the CLI) catch DomainError and surface str(error) to the
user; no mutation has happened when one of these is raised.

Usage:
    # In the engine
    raise LockedContainerError()

    # In the orchestrator
    try:
        coordinator.assign(target_id)
    except DomainError as e:
        await notifier.error(str(e))
"""

from stuffing_planner.errors.registry import get_error


class DomainError(Exception):
    """Base exception for all domain errors."""

    default_code: str | None = None

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


def _message(code: str, **context: object) -> str:
    """Render a registry message template with context."""
    error_def = get_error(code)
    if error_def is None:
        return f"Unknown error: {code}"
    try:
        return error_def.message_template.format(**context)
    except KeyError:
        return error_def.message_template


class ValidationError(DomainError):
    """Input failed validation. Nothing was sent to the Plan Store."""

    default_code = "E-2003"


class DuplicateContainerNumberError(ValidationError):
    """Container number is already open in another active plan."""

    def __init__(self, container_number: str, plan_labels: list[str]) -> None:
        super().__init__(
            _message("E-2001", plans=", ".join(plan_labels)),
            code="E-2001",
        )
        self.container_number = container_number
        self.plan_labels = plan_labels


class DuplicateCheckUnavailableError(ValidationError):
    """The ownership snapshot has not been loaded yet."""

    def __init__(self) -> None:
        super().__init__(_message("E-2002"), code="E-2002")


class EmptySelectionError(ValidationError):
    """No packing lists are selected for an assign/unassign."""

    def __init__(self, action: str) -> None:
        super().__init__(_message("E-2004", action=action), code="E-2004")
        self.action = action


class MissingTargetError(ValidationError):
    """Assign requested without a target container."""

    def __init__(self) -> None:
        super().__init__(_message("E-2005"), code="E-2005")


class PreconditionError(DomainError):
    """The current state of a plan or container forbids the action."""

    default_code = "E-1007"


class LockedContainerError(PreconditionError):
    """Container is at IN_PROGRESS or later and is read-only."""

    def __init__(self, container_id: str | None = None) -> None:
        super().__init__(_message("E-1001"), code="E-1001")
        self.container_id = container_id


class AssignmentClosedError(PreconditionError):
    """Container is at CONFIRMED or later and cannot gain or lose packing lists.

    action completes the sentence, e.g. "receive assignments".
    """

    def __init__(self, action: str) -> None:
        super().__init__(_message("E-1002", action=action), code="E-1002")
        self.action = action


class ContainerNotDeletableError(PreconditionError):
    """Container still holds packing lists or is past SPECIFIED."""

    def __init__(self) -> None:
        super().__init__(_message("E-1003"), code="E-1003")


class IllegalTransitionError(PreconditionError):
    """Requested status change is not in the transition table."""

    def __init__(self, current: str, target: str, detail: str | None = None) -> None:
        super().__init__(
            detail or _message("E-1004", current=current, target=target),
            code="E-1004",
        )
        self.current = current
        self.target = target


class ConfirmRequirementsError(PreconditionError):
    """Container is SPECIFIED but readiness requirements are not all met."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(_message("E-1005", missing="; ".join(missing)), code="E-1005")
        self.missing = missing


class PlanNotDeletableError(PreconditionError):
    """Plan is not CREATED or still holds containers."""

    def __init__(self) -> None:
        super().__init__(_message("E-1006"), code="E-1006")


class ContainerNumberLockedError(PreconditionError):
    """Container number is immutable from CONFIRMED onwards."""

    def __init__(self) -> None:
        super().__init__(_message("E-1008"), code="E-1008")


class NotFoundError(PreconditionError):
    """Referenced plan or container is not in the local snapshot."""

    def __init__(self, resource_type: str, identifier: str | None = None) -> None:
        super().__init__(_message("E-1009", resource=resource_type), code="E-1009")
        self.resource_type = resource_type
        self.identifier = identifier


class ConfigurationError(DomainError):
    """Config file is missing or fails validation."""

    default_code = "E-4001"

    def __init__(self, details: str) -> None:
        super().__init__(_message("E-4001", details=details), code="E-4001")
        self.details = details
