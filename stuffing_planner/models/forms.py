"""Pydantic models for container create/edit input.

ContainerForm validates what the user typed before anything is sent to
the Plan Store; to_payload() produces the store's camelCase body.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stuffing_planner.models.plan import PlanContainer

CONTAINER_NUMBER_MAX_LENGTH = 20


class ContainerForm(BaseModel):
    """Container details collected by the create/edit form.

    Attributes:
        container_number: Physical container number, optional until known
        container_type_code: ISO size/type code such as 22G1 (required)
        estimated_stuffing_at: ISO-8601 timestamp of the planned stuffing
        estimated_move_at: ISO-8601 timestamp of the planned move
        equipment_booked: Stuffing equipment has been booked
        appointment_booked: Truck appointment has been scheduled
        notes: Free text
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    container_number: Optional[str] = Field(
        default=None,
        max_length=CONTAINER_NUMBER_MAX_LENGTH,
        description="Container number, blank means not yet assigned",
    )
    container_type_code: str = Field(
        ...,
        min_length=1,
        description="Container type code",
    )
    estimated_stuffing_at: Optional[str] = None
    estimated_move_at: Optional[str] = None
    equipment_booked: bool = False
    appointment_booked: bool = False
    notes: Optional[str] = None

    @field_validator(
        "container_number", "estimated_stuffing_at", "estimated_move_at", "notes",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value):
        """Treat empty strings from the form as unset."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_container(cls, container: PlanContainer) -> "ContainerForm":
        """Prefill the edit form from an existing container.

        The prefill is not validated: a stored container may lack fields the
        form requires, and those are reported when the form is saved.
        """
        return cls.model_construct(
            container_number=container.container_number,
            container_type_code=container.container_type_code or "",
            estimated_stuffing_at=container.estimated_stuffing_at,
            estimated_move_at=container.estimated_move_at,
            equipment_booked=container.equipment_booked,
            appointment_booked=container.appointment_booked,
            notes=container.notes,
        )

    def to_payload(self) -> dict:
        """Wire payload for POST/PATCH .../containers."""
        return {
            "containerNumber": self.container_number,
            "containerTypeCode": self.container_type_code,
            "estimatedStuffingAt": self.estimated_stuffing_at,
            "estimatedMoveAt": self.estimated_move_at,
            "equipmentBooked": self.equipment_booked,
            "appointmentBooked": self.appointment_booked,
            "notes": self.notes,
        }
