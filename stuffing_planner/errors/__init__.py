"""Error handling framework for the stuffing planner.

This package provides:
- Error code registry with E-XXXX format codes
- Typed domain exceptions raised before any Plan Store request
- Error formatting for CLI display

Error categories:
- E-1xxx: Precondition errors
- E-2xxx: Validation errors
- E-3xxx: Plan Store errors
- E-4xxx: System/internal errors
"""

from stuffing_planner.errors.domain import (
    AssignmentClosedError,
    ConfigurationError,
    ConfirmRequirementsError,
    ContainerNotDeletableError,
    ContainerNumberLockedError,
    DomainError,
    DuplicateCheckUnavailableError,
    DuplicateContainerNumberError,
    EmptySelectionError,
    IllegalTransitionError,
    LockedContainerError,
    MissingTargetError,
    NotFoundError,
    PlanNotDeletableError,
    PreconditionError,
    ValidationError,
)
from stuffing_planner.errors.formatter import error_code_of, format_error
from stuffing_planner.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    ErrorCode,
    get_error,
    get_errors_by_category,
)

__all__ = [
    # Registry
    "ErrorCode",
    "ErrorCategory",
    "ERROR_REGISTRY",
    "get_error",
    "get_errors_by_category",
    # Domain
    "DomainError",
    "ValidationError",
    "PreconditionError",
    "DuplicateContainerNumberError",
    "DuplicateCheckUnavailableError",
    "EmptySelectionError",
    "MissingTargetError",
    "LockedContainerError",
    "AssignmentClosedError",
    "ContainerNotDeletableError",
    "IllegalTransitionError",
    "ConfirmRequirementsError",
    "PlanNotDeletableError",
    "ContainerNumberLockedError",
    "NotFoundError",
    "ConfigurationError",
    # Formatter
    "format_error",
    "error_code_of",
]
