"""Data models for plans, containers, packing lists and form input."""

from stuffing_planner.models.forms import ContainerForm
from stuffing_planner.models.plan import (
    ContainerOwner,
    ContainerStatus,
    Plan,
    PlanContainer,
    PlanPackingList,
    PlanPage,
    PlanStatus,
    PositionLookupState,
    PositionStatus,
)

__all__ = [
    "ContainerForm",
    "ContainerOwner",
    "ContainerStatus",
    "Plan",
    "PlanContainer",
    "PlanPackingList",
    "PlanPage",
    "PlanStatus",
    "PositionLookupState",
    "PositionStatus",
]
