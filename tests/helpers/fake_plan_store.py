"""In-memory Plan Store with the same async API as PlanStoreClient.

Server-side rules are reproduced where the workspace depends on them:
assigned packing list counts are recomputed after every assignment, and
CREATED <-> SPECIFIED follows the count. Every call is recorded so tests
can assert that a refused action sent nothing.
"""

import asyncio
import copy
import itertools

from stuffing_planner.models.plan import (
    ContainerStatus,
    Plan,
    PlanContainer,
    PlanPage,
    PlanStatus,
)
from stuffing_planner.services.errors import PlanStoreError
from stuffing_planner.services.readiness import derive_assignment_status

MUTATING_CALLS = {
    "create_plan",
    "update_plan",
    "delete_plan",
    "change_plan_status",
    "create_container",
    "update_container",
    "delete_container",
    "change_container_status",
    "assign_packing_lists",
}


class FakePlanStore:
    """Dict-backed Plan Store double."""

    def __init__(self, plans: list[Plan] | None = None):
        self.plans: dict[str, Plan] = {p.id: copy.deepcopy(p) for p in plans or []}
        self.positions: dict[str, str] = {}
        self.position_gates: dict[str, asyncio.Event] = {}
        self.failures: dict[str, PlanStoreError] = {}
        self.calls: list[tuple[str, tuple]] = []
        self._ids = itertools.count(1)
        for plan in self.plans.values():
            self._recompute(plan)

    # -- Test controls ----------------------------------------------------------

    def fail(self, method: str, message: str = "Boom", status_code: int | None = 500) -> None:
        """Make the next call to method raise PlanStoreError."""
        self.failures[method] = PlanStoreError(
            code="E-3002", message=message, status_code=status_code
        )

    @property
    def mutations(self) -> list[str]:
        return [name for name, _ in self.calls if name in MUTATING_CALLS]

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, args))
        error = self.failures.pop(name, None)
        if error is not None:
            raise error

    def _plan(self, plan_id: str) -> Plan:
        plan = self.plans.get(plan_id)
        if plan is None:
            raise PlanStoreError(code="E-3002", message="Export plan not found", status_code=404)
        return plan

    def _container(self, plan: Plan, container_id: str) -> PlanContainer:
        container = plan.get_container(container_id)
        if container is None:
            raise PlanStoreError(code="E-3002", message="Plan container not found", status_code=404)
        return container

    @staticmethod
    def _recompute(plan: Plan) -> None:
        for container in plan.containers:
            count = sum(1 for pl in plan.packing_lists if pl.plan_container_id == container.id)
            container.assigned_packing_list_count = count
            container.status = derive_assignment_status(container.status, count)

    # -- Plans ------------------------------------------------------------------

    async def list_plans(
        self,
        status=None,
        page=1,
        items_per_page=100,
        order_by="createdAt",
        order_dir="desc",
        export_order_id=None,
    ) -> PlanPage:
        self._record("list_plans", status, page, items_per_page)
        plans = list(self.plans.values())
        if status and status != "all":
            plans = [p for p in plans if p.status.value == status]
        if export_order_id:
            plans = [p for p in plans if p.export_order_id == export_order_id]
        plans.sort(key=lambda p: p.created_at, reverse=order_dir == "desc")
        start = (page - 1) * items_per_page
        return PlanPage(
            results=copy.deepcopy(plans[start:start + items_per_page]),
            total=len(plans),
        )

    async def get_plan(self, plan_id: str) -> Plan:
        self._record("get_plan", plan_id)
        return copy.deepcopy(self._plan(plan_id))

    async def create_plan(self, export_order_id: str, loading_batch: str | None = None) -> Plan:
        self._record("create_plan", export_order_id, loading_batch)
        plan_id = f"p-new-{next(self._ids)}"
        plan = Plan(
            id=plan_id,
            export_order_id=export_order_id,
            status=PlanStatus.CREATED,
            code=f"SP-{plan_id.upper()}",
            loading_batch=loading_batch,
            created_at="2099-01-01T00:00:00Z",
        )
        self.plans[plan_id] = plan
        return copy.deepcopy(plan)

    async def update_plan(self, plan_id: str, loading_batch: str | None) -> Plan:
        self._record("update_plan", plan_id, loading_batch)
        plan = self._plan(plan_id)
        plan.loading_batch = loading_batch
        return copy.deepcopy(plan)

    async def delete_plan(self, plan_id: str) -> None:
        self._record("delete_plan", plan_id)
        self._plan(plan_id)
        del self.plans[plan_id]

    async def change_plan_status(self, plan_id: str, status: str) -> Plan:
        self._record("change_plan_status", plan_id, status)
        plan = self._plan(plan_id)
        plan.status = PlanStatus(status)
        return copy.deepcopy(plan)

    # -- Containers -------------------------------------------------------------

    async def create_container(self, plan_id: str, payload: dict) -> PlanContainer:
        self._record("create_container", plan_id, payload)
        plan = self._plan(plan_id)
        container = PlanContainer.from_api(
            {"id": f"c-new-{next(self._ids)}", "status": "CREATED", **payload},
            plan_id=plan_id,
        )
        plan.containers.append(container)
        return copy.deepcopy(container)

    async def update_container(self, plan_id: str, container_id: str, payload: dict) -> PlanContainer:
        self._record("update_container", plan_id, container_id, payload)
        plan = self._plan(plan_id)
        container = self._container(plan, container_id)
        merged = PlanContainer.from_api(
            {
                "id": container.id,
                "status": container.status.value,
                "assignedPackingListCount": container.assigned_packing_list_count,
                **payload,
            },
            plan_id=plan_id,
        )
        plan.containers[plan.containers.index(container)] = merged
        return copy.deepcopy(merged)

    async def delete_container(self, plan_id: str, container_id: str) -> None:
        self._record("delete_container", plan_id, container_id)
        plan = self._plan(plan_id)
        container = self._container(plan, container_id)
        plan.containers.remove(container)

    async def change_container_status(
        self, plan_id: str, container_id: str, status: str
    ) -> PlanContainer:
        self._record("change_container_status", plan_id, container_id, status)
        plan = self._plan(plan_id)
        container = self._container(plan, container_id)
        container.status = ContainerStatus(status)
        return copy.deepcopy(container)

    # -- Packing lists ----------------------------------------------------------

    async def assign_packing_lists(self, plan_id: str, assignments: list[dict]) -> Plan:
        self._record("assign_packing_lists", plan_id, assignments)
        plan = self._plan(plan_id)
        by_id = {pl.packing_list_id: pl for pl in plan.packing_lists}
        for item in assignments:
            row = by_id.get(item["packingListId"])
            if row is None:
                raise PlanStoreError(code="E-3002", message="Packing list not found", status_code=404)
            row.plan_container_id = item["planContainerId"]
        self._recompute(plan)
        return copy.deepcopy(plan)

    # -- Container lookup -------------------------------------------------------

    async def get_container_cycle(self, container_number: str) -> dict:
        self._record("get_container_cycle", container_number)
        gate = self.position_gates.get(container_number)
        if gate is not None:
            await gate.wait()
        if container_number not in self.positions:
            raise PlanStoreError(
                code="E-3002",
                message=f"Failed to fetch container {container_number}",
                status_code=404,
            )
        return {
            "containerNumber": container_number,
            "currentCycle": {"containerStatus": self.positions[container_number]},
        }
