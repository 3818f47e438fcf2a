"""Error code registry with E-XXXX format codes.

This module defines the error code system for the stuffing planner,
organizing errors into categories:
- E-1xxx: Precondition errors (container/plan state forbids the action)
- E-2xxx: Validation errors (caught before any request is sent)
- E-3xxx: Plan Store errors (remote or transport failures)
- E-4xxx: System/internal errors

Each error includes a code, title, message template, and remediation steps.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error codes."""

    PRECONDITION = "precondition"  # E-1xxx
    VALIDATION = "validation"  # E-2xxx
    PLAN_STORE = "plan_store"  # E-3xxx
    SYSTEM = "system"  # E-4xxx


@dataclass
class ErrorCode:
    """Definition of an error code with metadata.

    Attributes:
        code: Error code in E-XXXX format.
        category: Error category for grouping.
        title: Short title for display.
        message_template: Message with {placeholders} for context.
        remediation: Action user should take to resolve.
        is_retryable: Whether the operation can be retried without user action.
    """

    code: str
    category: ErrorCategory
    title: str
    message_template: str
    remediation: str
    is_retryable: bool = False


ERROR_REGISTRY: dict[str, ErrorCode] = {
    # Precondition errors (E-1xxx)
    "E-1001": ErrorCode(
        code="E-1001",
        category=ErrorCategory.PRECONDITION,
        title="Container Locked",
        message_template="Container cannot be modified once stuffing has started.",
        remediation="Locked containers are read-only. Work with another container.",
    ),
    "E-1002": ErrorCode(
        code="E-1002",
        category=ErrorCategory.PRECONDITION,
        title="Container Not Accepting Assignments",
        message_template="Only containers before CONFIRMED can {action}.",
        remediation="Unconfirm the container first, or pick a container that is not confirmed.",
    ),
    "E-1003": ErrorCode(
        code="E-1003",
        category=ErrorCategory.PRECONDITION,
        title="Container Not Deletable",
        message_template="Only empty containers in CREATED or SPECIFIED status can be deleted.",
        remediation="Unassign every packing list from the container and retry.",
    ),
    "E-1004": ErrorCode(
        code="E-1004",
        category=ErrorCategory.PRECONDITION,
        title="Illegal Status Transition",
        message_template="Cannot change container from {current} to {target}.",
        remediation="Refresh the plan; the container status may have changed.",
    ),
    "E-1005": ErrorCode(
        code="E-1005",
        category=ErrorCategory.PRECONDITION,
        title="Confirm Requirements Unmet",
        message_template="Container cannot be confirmed: {missing}.",
        remediation="Complete every listed requirement, then confirm again.",
    ),
    "E-1006": ErrorCode(
        code="E-1006",
        category=ErrorCategory.PRECONDITION,
        title="Plan Not Deletable",
        message_template="Only empty CREATED plans can be deleted.",
        remediation="Remove all containers from the plan before deleting it.",
    ),
    "E-1007": ErrorCode(
        code="E-1007",
        category=ErrorCategory.PRECONDITION,
        title="Wrong Packing List Group",
        message_template="{message}",
        remediation="Switch to the packing list group the action applies to.",
    ),
    "E-1008": ErrorCode(
        code="E-1008",
        category=ErrorCategory.PRECONDITION,
        title="Container Number Locked",
        message_template="Container number cannot be changed once the container is confirmed.",
        remediation="Unconfirm the container to edit its number.",
    ),
    "E-1009": ErrorCode(
        code="E-1009",
        category=ErrorCategory.PRECONDITION,
        title="Resource Not Found",
        message_template="{resource} not found.",
        remediation="Refresh the plan; it may have been changed in another session.",
    ),
    # Validation errors (E-2xxx)
    "E-2001": ErrorCode(
        code="E-2001",
        category=ErrorCategory.VALIDATION,
        title="Duplicate Container Number",
        message_template="Container number already exists in stuffing plan: {plans}",
        remediation="Use another container number or close the other plan first.",
    ),
    "E-2002": ErrorCode(
        code="E-2002",
        category=ErrorCategory.VALIDATION,
        title="Duplicate Check Unavailable",
        message_template="Unable to validate container number. Please try again.",
        remediation="Wait for the plan list to load and retry.",
        is_retryable=True,
    ),
    "E-2003": ErrorCode(
        code="E-2003",
        category=ErrorCategory.VALIDATION,
        title="Invalid Container Details",
        message_template="{details}",
        remediation="Correct the highlighted fields and save again.",
    ),
    "E-2004": ErrorCode(
        code="E-2004",
        category=ErrorCategory.VALIDATION,
        title="Empty Selection",
        message_template="Please select packing lists to {action}.",
        remediation="Select at least one packing list.",
    ),
    "E-2005": ErrorCode(
        code="E-2005",
        category=ErrorCategory.VALIDATION,
        title="Missing Target Container",
        message_template="Please select a target container.",
        remediation="Choose a container before CONFIRMED as the assignment target.",
    ),
    # Plan Store errors (E-3xxx)
    "E-3001": ErrorCode(
        code="E-3001",
        category=ErrorCategory.PLAN_STORE,
        title="Plan Store Unavailable",
        message_template="{message}",
        remediation="Check network connectivity and the plan_store.base_url setting, then retry.",
        is_retryable=True,
    ),
    "E-3002": ErrorCode(
        code="E-3002",
        category=ErrorCategory.PLAN_STORE,
        title="Plan Store Rejected Request",
        message_template="{message}",
        remediation="Refresh the plan and review the server message before retrying.",
    ),
    # System errors (E-4xxx)
    "E-4001": ErrorCode(
        code="E-4001",
        category=ErrorCategory.SYSTEM,
        title="Configuration Error",
        message_template="Invalid configuration: {details}",
        remediation="Fix the config file and run 'stuffing-planner config validate'.",
    ),
}


def get_error(code: str) -> ErrorCode | None:
    """Get error definition by code.

    Args:
        code: Error code in E-XXXX format.

    Returns:
        ErrorCode if found, None otherwise.
    """
    return ERROR_REGISTRY.get(code)


def get_errors_by_category(category: ErrorCategory) -> list[ErrorCode]:
    """Get all errors in a category."""
    return [e for e in ERROR_REGISTRY.values() if e.category == category]
