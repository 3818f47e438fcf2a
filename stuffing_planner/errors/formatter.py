"""Error formatting for user display.

Turns domain and Plan Store errors into the one- or two-line text shown
by the CLI, with the registry remediation appended when known.
"""

from stuffing_planner.errors.domain import DomainError
from stuffing_planner.errors.registry import get_error
from stuffing_planner.services.errors import PlanStoreError


def error_code_of(error: Exception) -> str | None:
    """Return the E-XXXX code carried by an error, if any."""
    if isinstance(error, (DomainError, PlanStoreError)):
        return error.code
    return None


def format_error(error: Exception, include_remediation: bool = True) -> str:
    """Format an error for display to the user.

    Args:
        error: A DomainError, PlanStoreError, or any other exception.
        include_remediation: Whether to append the remediation line.

    Returns:
        Multi-line formatted string suitable for user display.
    """
    code = error_code_of(error)
    message = str(error) or type(error).__name__
    if code is None:
        return message

    lines = [f"{code}: {message}"]
    error_def = get_error(code)
    if include_remediation and error_def is not None:
        lines.append(f"  Remediation: {error_def.remediation}")
    return "\n".join(lines)
