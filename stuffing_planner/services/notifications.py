"""Observer pattern for user-visible notifications.

Provides the NotificationObserver protocol and NotificationEmitter class
for reporting the outcome of workspace actions (the transient success and
error messages a dashboard shows as toasts), plus the Confirmer callable
type used to ask the user before destructive actions.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

Confirmer = Callable[[str], Awaitable[bool]]
"""Async yes/no prompt. Receives the question, returns True to proceed."""


class NotificationObserver(Protocol):
    """Observer protocol for workspace notifications."""

    async def on_success(self, message: str) -> None:
        """Called when an action completed."""
        ...

    async def on_error(self, message: str) -> None:
        """Called when an action was refused or failed."""
        ...


@dataclass
class Notification:
    """One recorded notification."""

    level: Literal["success", "error"]
    message: str


class RecordingObserver:
    """Keeps every notification in memory, newest last."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    async def on_success(self, message: str) -> None:
        self.notifications.append(Notification("success", message))

    async def on_error(self, message: str) -> None:
        self.notifications.append(Notification("error", message))

    @property
    def errors(self) -> list[str]:
        return [n.message for n in self.notifications if n.level == "error"]

    @property
    def successes(self) -> list[str]:
        return [n.message for n in self.notifications if n.level == "success"]

    def clear(self) -> None:
        self.notifications.clear()


class NotificationEmitter:
    """Emits notifications to registered observers.

    Exceptions from individual observers are caught and logged to prevent
    one broken observer from stopping delivery to others.
    """

    def __init__(self) -> None:
        """Initialize emitter with empty observer list."""
        self._observers: list[NotificationObserver] = []

    def add_observer(self, observer: NotificationObserver) -> None:
        """Register an observer to receive notifications."""
        self._observers.append(observer)

    def remove_observer(self, observer: NotificationObserver) -> None:
        """Unregister an observer."""
        self._observers.remove(observer)

    async def success(self, message: str) -> None:
        """Emit a success notification to all observers."""
        logger.info("notify success: %s", message)
        for observer in self._observers:
            try:
                await observer.on_success(message)
            except Exception as e:
                logger.error(
                    "Observer %s failed on_success: %s",
                    type(observer).__name__,
                    e,
                )

    async def error(self, message: str) -> None:
        """Emit an error notification to all observers."""
        logger.info("notify error: %s", message)
        for observer in self._observers:
            try:
                await observer.on_error(message)
            except Exception as e:
                logger.error(
                    "Observer %s failed on_error: %s",
                    type(observer).__name__,
                    e,
                )


async def always_confirm(message: str) -> bool:
    """Confirmer that approves every prompt (headless --yes mode)."""
    logger.debug("auto-confirmed: %s", message)
    return True
