"""Shared service-layer error types.

Centralised here to avoid circular imports between the Plan Store client
and the services that call it.
"""

from dataclasses import dataclass


@dataclass
class PlanStoreError(Exception):
    """Non-2xx response or transport failure from the Plan Store.

    Attributes:
        code: Error code (E-3001 transport, E-3002 rejected request)
        message: Server-provided message, or the per-operation fallback
        status_code: HTTP status code, None for transport failures
        details: Raw error body when it was JSON
    """

    code: str
    message: str
    status_code: int | None = None
    details: dict | None = None

    def __str__(self) -> str:
        """Return the user-facing message."""
        return self.message

    @property
    def is_retryable(self) -> bool:
        """Transport failures and 5xx responses may succeed on retry."""
        return self.status_code is None or self.status_code >= 500
