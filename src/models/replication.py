"""
Replication event models.

A ReplicationEvent is produced once at the origin node and delivered
independently to every peer. Events carry no id or sequence number, so
receivers cannot deduplicate or detect gaps.
"""

from typing import Annotated, ClassVar, Literal, Union

from pydantic import BaseModel, Field

from core.constants import ENDPOINT_REPLICATE_BOOKING, ENDPOINT_REPLICATE_SLOT


class BookingCreated(BaseModel):
    """A booking was committed at the origin node."""

    endpoint: ClassVar[str] = ENDPOINT_REPLICATE_BOOKING

    event_type: Literal["booking_created"] = Field("booking_created", alias="eventType")
    doctor_id: int = Field(alias="doctorId")
    patient_name: str = Field(alias="patientName", min_length=1)
    slot_time: str = Field(alias="slotTime", min_length=1)
    confirmation_id: str = Field(alias="confirmationId")
    booking_timestamp: int = Field(alias="bookingTimestamp")
    origin_server_id: int = Field(alias="serverId")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class SlotMarkedUnavailable(BaseModel):
    """A slot was taken at the origin node."""

    endpoint: ClassVar[str] = ENDPOINT_REPLICATE_SLOT

    event_type: Literal["slot_marked_unavailable"] = Field(
        "slot_marked_unavailable", alias="eventType"
    )
    doctor_id: int = Field(alias="doctorId")
    slot_time: str = Field(alias="slotTime", min_length=1)

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


ReplicationEvent = Annotated[
    Union[BookingCreated, SlotMarkedUnavailable],
    Field(discriminator="event_type"),
]


def to_wire_payload(event: Union[BookingCreated, SlotMarkedUnavailable]) -> dict:
    """Serialize an event to the JSON body its replicate endpoint expects."""
    return event.model_dump(by_alias=True, exclude={"event_type"})
