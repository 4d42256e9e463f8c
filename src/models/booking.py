"""
Booking-related Pydantic models.

Doctors own time slots; a Booking takes one slot for a patient.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class Doctor(BaseModel):
    """A doctor patients can book."""

    id: int = Field(ge=1)
    name: str = Field(min_length=1)
    specialization: str
    experience: str
    hospital: str


class Slot(BaseModel):
    """A bookable time slot of one doctor."""

    doctor_id: int = Field(ge=1)
    slot_time: str = Field(description="Wall-clock time of day, e.g. 09:30")
    is_available: bool = True


class BookingCreate(BaseModel):
    """Client request to book a slot."""

    doctor_id: int = Field(alias="doctorId", ge=1)
    patient_name: str = Field(alias="patientName", min_length=1)
    slot_time: str = Field(alias="slotTime", min_length=1)

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
        json_schema_extra = {
            "example": {
                "doctorId": 1,
                "patientName": "Asha Verma",
                "slotTime": "09:30",
            }
        }


class Booking(BaseModel):
    """A stored booking row."""

    id: int
    doctor_id: int = Field(alias="doctorId")
    doctor_name: Optional[str] = Field(None, alias="doctorName")
    patient_name: str = Field(alias="patientName")
    slot_time: str = Field(alias="slot")
    confirmation_id: str = Field(alias="confirmationId")
    booking_timestamp: int = Field(alias="timestamp")
    server_id: int = Field(alias="serverId")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class BookingConfirmation(BaseModel):
    """Reply to a successful booking."""

    success: bool = True
    consistency: str
    confirmation_id: str = Field(alias="confirmationId")
    timestamp: int
    server: str

    class Config:
        """Pydantic configuration."""

        populate_by_name = True


class ConcurrentWorkRequest(BaseModel):
    """Batch of simulated requests processed concurrently."""

    requests: List[Any] = Field(default_factory=list)


class ProcessedRequest(BaseModel):
    """Result of one simulated request."""

    request_id: int = Field(alias="requestId")
    processed_by: int = Field(alias="processedBy")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
