"""Cross-plan container number duplicate detection.

Builds a ContainerOwnershipIndex (normalized number -> owners) from a
snapshot of every plan that is not DONE, and checks a container number
against it before the number is saved.

The check is advisory. It runs against a snapshot, so two sessions can
still race; the Plan Store is expected to enforce uniqueness itself.
"""

import logging

from stuffing_planner.errors.domain import (
    DuplicateCheckUnavailableError,
    DuplicateContainerNumberError,
)
from stuffing_planner.models.plan import ContainerOwner, Plan, PlanStatus
from stuffing_planner.utils.container_number import normalize_container_number

logger = logging.getLogger(__name__)

DUPLICATE_CHECK_PAGE_SIZE = 1000


class ContainerOwnershipIndex:
    """Normalized container number -> containers holding it in open plans."""

    def __init__(self) -> None:
        self._owners: dict[str, list[ContainerOwner]] = {}

    @classmethod
    def from_plans(cls, plans: list[Plan]) -> "ContainerOwnershipIndex":
        """Index every numbered container of every plan that is not DONE."""
        index = cls()
        for plan in plans:
            if plan.status == PlanStatus.DONE:
                continue
            for container in plan.containers:
                key = normalize_container_number(container.container_number)
                if not key:
                    continue
                index._owners.setdefault(key, []).append(
                    ContainerOwner(
                        plan_id=plan.id,
                        plan_label=plan.label,
                        container_id=container.id,
                    )
                )
        return index

    def __len__(self) -> int:
        return len(self._owners)

    def find_owners(
        self, container_number: str | None, excluding_container_id: str | None = None
    ) -> list[ContainerOwner]:
        """Return one owner per plan holding the number, first-seen order.

        Args:
            container_number: Raw number as typed; normalized before lookup.
            excluding_container_id: The container being edited, which never
                conflicts with itself.
        """
        key = normalize_container_number(container_number)
        if not key:
            return []
        seen: set[str] = set()
        owners = []
        for owner in self._owners.get(key, []):
            if owner.container_id == excluding_container_id:
                continue
            if owner.plan_id in seen:
                continue
            seen.add(owner.plan_id)
            owners.append(owner)
        return owners


class DuplicateContainerDetector:
    """Snapshot-backed duplicate check over the Plan Store.

    Call refresh() when the workspace mounts or regains focus; the snapshot
    is stale-tolerant and is not refreshed per keystroke.
    """

    def __init__(self, store, page_size: int = DUPLICATE_CHECK_PAGE_SIZE, max_pages: int = 20):
        self._store = store
        self._page_size = page_size
        self._max_pages = max_pages
        self._index: ContainerOwnershipIndex | None = None

    @property
    def is_ready(self) -> bool:
        return self._index is not None

    async def refresh(self) -> ContainerOwnershipIndex:
        """Fetch every plan page and rebuild the index.

        Raises:
            PlanStoreError: If a page cannot be fetched. The previous
                snapshot, if any, is kept.
        """
        plans: list[Plan] = []
        page = 1
        while page <= self._max_pages:
            result = await self._store.list_plans(
                status="all",
                page=page,
                items_per_page=self._page_size,
                order_by="createdAt",
                order_dir="desc",
            )
            plans.extend(result.results)
            if not result.results or len(plans) >= result.total:
                break
            page += 1
        else:
            logger.warning(
                "Duplicate check snapshot truncated at %d pages (%d plans)",
                self._max_pages, len(plans),
            )

        self._index = ContainerOwnershipIndex.from_plans(plans)
        logger.debug(
            "Duplicate check snapshot: %d plans, %d container numbers",
            len(plans), len(self._index),
        )
        return self._index

    def find_owners(
        self, container_number: str | None, excluding_container_id: str | None = None
    ) -> list[ContainerOwner]:
        if self._index is None:
            return []
        return self._index.find_owners(container_number, excluding_container_id)

    def ensure_unique(
        self, container_number: str | None, excluding_container_id: str | None = None
    ) -> None:
        """Reject a number that is already open in another container.

        A blank number always passes.

        Raises:
            DuplicateCheckUnavailableError: The snapshot was never loaded.
            DuplicateContainerNumberError: Owners remain after exclusion.
        """
        if not normalize_container_number(container_number):
            return
        if self._index is None:
            raise DuplicateCheckUnavailableError()
        owners = self.find_owners(container_number, excluding_container_id)
        if owners:
            labels = list(dict.fromkeys(owner.plan_label for owner in owners))
            raise DuplicateContainerNumberError(
                normalize_container_number(container_number), labels
            )
