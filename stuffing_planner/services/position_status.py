"""Async container yard-position lookup used to gate confirmation.

The position only matters for a SPECIFIED container with a number, so
lookups are skipped for every other container. Results are cached per
normalized container number and refetched every time a view gains focus.

A focused lookup runs as an asyncio.Task keyed by (view key, number).
Focusing a different key cancels the previous task, and a result whose
key is no longer the active one is dropped instead of written to the
cache.
"""

import asyncio
import logging

from stuffing_planner.models.plan import ContainerStatus, PlanContainer, PositionStatus
from stuffing_planner.services.errors import PlanStoreError
from stuffing_planner.utils.container_number import normalize_container_number

logger = logging.getLogger(__name__)

LookupKey = tuple[str, str]


def needs_lookup(container: PlanContainer | None) -> bool:
    """Only a numbered SPECIFIED container has a decision-relevant position."""
    return (
        container is not None
        and bool(normalize_container_number(container.container_number))
        and container.status == ContainerStatus.SPECIFIED
    )


def read_position(record: dict) -> str | None:
    """Extract ``currentCycle.containerStatus`` from a container lookup record."""
    cycle = record.get("currentCycle") or {}
    if not isinstance(cycle, dict):
        return None
    value = cycle.get("containerStatus")
    return str(value) if value else None


class PositionStatusAdapter:
    """Caches and refreshes container positions from the Plan Store."""

    def __init__(self, store):
        self._store = store
        self._cache: dict[str, PositionStatus] = {}
        self._active_key: LookupKey | None = None
        self._task: asyncio.Task | None = None

    @property
    def active_key(self) -> LookupKey | None:
        return self._active_key

    def get_position_status(self, container_number: str | None) -> PositionStatus:
        """Cached status for a number; idle when never looked up."""
        key = normalize_container_number(container_number)
        if not key:
            return PositionStatus.idle()
        return self._cache.get(key, PositionStatus.idle())

    def status_for(self, container: PlanContainer | None) -> PositionStatus:
        """Position to feed the readiness engine for this container."""
        if not needs_lookup(container):
            return PositionStatus.idle()
        return self.get_position_status(container.container_number)

    async def _fetch(self, number: str) -> PositionStatus:
        try:
            record = await self._store.get_container_cycle(number)
        except PlanStoreError as e:
            logger.warning("Position lookup for %s failed: %s", number, e)
            return PositionStatus.error()
        except Exception:
            logger.exception("Position lookup for %s raised", number)
            return PositionStatus.error()
        return PositionStatus.success(read_position(record))

    async def lookup(self, container_number: str) -> PositionStatus:
        """Refetch the position of one number and store it in the cache."""
        number = normalize_container_number(container_number)
        if not number:
            return PositionStatus.idle()
        self._cache[number] = PositionStatus.loading()
        status = await self._fetch(number)
        self._cache[number] = status
        return status

    async def _run(self, key: LookupKey) -> PositionStatus:
        number = key[1]
        self._cache[number] = PositionStatus.loading()
        status = await self._fetch(number)
        if key != self._active_key:
            logger.info("Discarding stale position result for %s (view %s)", number, key[0])
            return status
        self._cache[number] = status
        return status

    def focus(self, view_key: str, container: PlanContainer | None) -> asyncio.Task | None:
        """Start the lookup for the container shown in a newly focused view.

        Must be called from a running event loop.

        Args:
            view_key: Identity of the requesting view.
            container: Container shown in the view, None for views without one.

        Returns:
            The lookup task, or None when the container needs no lookup.
        """
        if not needs_lookup(container):
            self.blur()
            return None

        key = (view_key, normalize_container_number(container.container_number))
        if self._task is not None and not self._task.done():
            if key == self._active_key:
                return self._task
            logger.debug("Cancelling position lookup for %s", self._active_key)
            self._task.cancel()

        self._active_key = key
        self._task = asyncio.create_task(self._run(key))
        return self._task

    def blur(self) -> None:
        """Drop the active key and cancel any in-flight lookup."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._active_key = None
        self._task = None

    async def settle(self) -> None:
        """Wait for the in-flight lookup, if any, without raising."""
        task = self._task
        if task is None:
            return
        await asyncio.wait([task])
