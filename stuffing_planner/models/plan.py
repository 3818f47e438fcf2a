"""Plan, container and packing-list models as read from the Plan Store.

Each model has a from_api() constructor that accepts the store's camelCase
JSON, tolerates extra fields, and fills defaults for missing optional ones.
Derived fields such as assigned_packing_list_count are server truth and
are never recomputed locally.
"""

from dataclasses import dataclass, field
from enum import Enum


class PlanStatus(str, Enum):
    """Lifecycle of a stuffing plan."""

    CREATED = "CREATED"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class ContainerStatus(str, Enum):
    """Lifecycle of a plan container, totally ordered by declaration."""

    CREATED = "CREATED"
    SPECIFIED = "SPECIFIED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    STUFFED = "STUFFED"

    @property
    def rank(self) -> int:
        """Position in the total order, CREATED == 0."""
        return _CONTAINER_STATUS_ORDER.index(self)

    def __lt__(self, other):
        if isinstance(other, ContainerStatus):
            return self.rank < other.rank
        return NotImplemented

    def __le__(self, other):
        if isinstance(other, ContainerStatus):
            return self.rank <= other.rank
        return NotImplemented

    def __gt__(self, other):
        if isinstance(other, ContainerStatus):
            return self.rank > other.rank
        return NotImplemented

    def __ge__(self, other):
        if isinstance(other, ContainerStatus):
            return self.rank >= other.rank
        return NotImplemented


_CONTAINER_STATUS_ORDER = list(ContainerStatus)


class PositionLookupState(str, Enum):
    """State of an async container position lookup."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class PositionStatus:
    """Last known yard position of a container number."""

    state: PositionLookupState = PositionLookupState.IDLE
    value: str | None = None

    @classmethod
    def idle(cls) -> "PositionStatus":
        return cls(PositionLookupState.IDLE)

    @classmethod
    def loading(cls) -> "PositionStatus":
        return cls(PositionLookupState.LOADING)

    @classmethod
    def success(cls, value: str | None) -> "PositionStatus":
        return cls(PositionLookupState.SUCCESS, value)

    @classmethod
    def error(cls) -> "PositionStatus":
        return cls(PositionLookupState.ERROR)


@dataclass
class PlanContainer:
    """A physical container allocated to a plan."""

    id: str
    plan_id: str
    status: ContainerStatus
    container_number: str | None = None
    container_type_code: str | None = None
    equipment_booked: bool = False
    appointment_booked: bool = False
    estimated_stuffing_at: str | None = None
    estimated_move_at: str | None = None
    assigned_packing_list_count: int = 0
    notes: str | None = None
    seal_number: str | None = None
    confirmed_at: str | None = None
    stuffed_at: str | None = None

    @property
    def label(self) -> str:
        """Display label: number (type), with placeholders for missing parts."""
        number = self.container_number or "No number"
        type_code = self.container_type_code or "Unknown type"
        return f"{number} ({type_code})"

    @property
    def short_label(self) -> str | None:
        """Number if set, else type code; used in confirmation prompts."""
        return self.container_number or self.container_type_code

    @classmethod
    def from_api(cls, data: dict, plan_id: str | None = None) -> "PlanContainer":
        """Construct from API JSON, tolerating extra fields."""
        return cls(
            id=data["id"],
            plan_id=data.get("planId") or plan_id or "",
            status=ContainerStatus(data.get("status", "CREATED")),
            container_number=data.get("containerNumber"),
            container_type_code=data.get("containerTypeCode"),
            equipment_booked=bool(data.get("equipmentBooked", False)),
            appointment_booked=bool(data.get("appointmentBooked", False)),
            estimated_stuffing_at=data.get("estimatedStuffingAt"),
            estimated_move_at=data.get("estimatedMoveAt"),
            assigned_packing_list_count=int(data.get("assignedPackingListCount") or 0),
            notes=data.get("notes"),
            seal_number=data.get("sealNumber"),
            confirmed_at=data.get("confirmedAt"),
            stuffed_at=data.get("stuffedAt"),
        )


@dataclass
class PlanPackingList:
    """A packing list row inside a plan and the container it is assigned to.

    Display fields are owned by the source packing list and are never
    mutated here; only plan_container_id changes, through the assign call.
    """

    id: str
    packing_list_id: str | None = None
    plan_container_id: str | None = None
    packing_list_number: str | None = None
    customs_declaration_number: str | None = None
    shipper: str | None = None
    consignee: str | None = None

    @property
    def is_assigned(self) -> bool:
        return bool(self.plan_container_id)

    @classmethod
    def from_api(cls, data: dict) -> "PlanPackingList":
        """Construct from API JSON, tolerating extra fields."""
        return cls(
            id=data["id"],
            packing_list_id=data.get("packingListId"),
            plan_container_id=data.get("planContainerId"),
            packing_list_number=data.get("packingListNumber"),
            customs_declaration_number=data.get("customsDeclarationNumber"),
            shipper=data.get("shipper"),
            consignee=data.get("consignee"),
        )


@dataclass
class Plan:
    """A stuffing operation grouping containers and packing lists for one export order."""

    id: str
    export_order_id: str
    status: PlanStatus
    code: str | None = None
    loading_batch: str | None = None
    containers: list[PlanContainer] = field(default_factory=list)
    packing_lists: list[PlanPackingList] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    @property
    def label(self) -> str:
        """Plan code, falling back to the id."""
        return self.code or self.id

    @property
    def is_active(self) -> bool:
        return self.status in (PlanStatus.CREATED, PlanStatus.IN_PROGRESS)

    def get_container(self, container_id: str | None) -> PlanContainer | None:
        if not container_id:
            return None
        for container in self.containers:
            if container.id == container_id:
                return container
        return None

    def packing_lists_in(self, container_id: str | None) -> list[PlanPackingList]:
        """Packing lists assigned to container_id; None selects the unassigned ones."""
        if container_id is None:
            return [pl for pl in self.packing_lists if not pl.plan_container_id]
        return [pl for pl in self.packing_lists if pl.plan_container_id == container_id]

    @classmethod
    def from_api(cls, data: dict) -> "Plan":
        """Construct from API JSON, tolerating extra fields."""
        plan_id = data["id"]
        return cls(
            id=plan_id,
            export_order_id=data.get("exportOrderId", ""),
            status=PlanStatus(data.get("status", "CREATED")),
            code=data.get("code"),
            loading_batch=data.get("loadingBatch"),
            containers=[
                PlanContainer.from_api(c, plan_id=plan_id)
                for c in data.get("containers") or []
            ],
            packing_lists=[
                PlanPackingList.from_api(p) for p in data.get("packingLists") or []
            ],
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
        )


@dataclass
class PlanPage:
    """One page of the plan list endpoint."""

    results: list[Plan]
    total: int

    @classmethod
    def from_api(cls, data: dict | list) -> "PlanPage":
        """Construct from API JSON; a bare list is treated as a single full page."""
        if isinstance(data, list):
            plans = [Plan.from_api(p) for p in data]
            return cls(results=plans, total=len(plans))
        plans = [Plan.from_api(p) for p in data.get("results") or []]
        return cls(results=plans, total=int(data.get("total", len(plans))))


@dataclass(frozen=True)
class ContainerOwner:
    """One container number occurrence inside a non-DONE plan."""

    plan_id: str
    plan_label: str
    container_id: str
