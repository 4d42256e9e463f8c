"""
Booking service for business logic.

A booking is committed to the local store first and only then replicated
to the other nodes.
"""

import logging
from typing import List
from uuid import uuid4

from cluster.node import ClusterNode
from core.constants import (
    CONFIRMATION_ID_LENGTH,
    CONFIRMATION_ID_PREFIX,
    CONSISTENCY_MODEL,
    SERVER_LABEL_FORMAT,
)
from models.booking import Booking, BookingConfirmation, BookingCreate, Doctor
from models.replication import BookingCreated, SlotMarkedUnavailable
from repository.booking_repository import BookingRepository

logger = logging.getLogger(__name__)


class SlotUnavailableError(Exception):
    """Raised when a requested slot is missing or already booked."""

    def __init__(self, doctor_id: int, slot_time: str):
        self.doctor_id = doctor_id
        self.slot_time = slot_time
        super().__init__(f"Slot {slot_time} of doctor {doctor_id} is not available")


def generate_confirmation_id() -> str:
    """Confirmation ids look like ``CONF1A2B3C4D5``."""
    return CONFIRMATION_ID_PREFIX + uuid4().hex[:CONFIRMATION_ID_LENGTH].upper()


class BookingService:
    """
    Service for doctor, slot and booking operations.

    Writes go through the node's replication dispatcher after the local commit.
    """

    def __init__(self, booking_repo: BookingRepository, node: ClusterNode):
        """
        Initialize booking service.

        Args:
            booking_repo: Booking repository instance
            node: Local cluster node, used for its id, clock and replication
        """
        self.booking_repo = booking_repo
        self.node = node

    @property
    def server_label(self) -> str:
        return SERVER_LABEL_FORMAT.format(server_id=self.node.node_id)

    async def list_doctors(self) -> List[Doctor]:
        return await self.booking_repo.list_doctors()

    async def list_available_slot_times(self, doctor_id: int) -> List[str]:
        """
        Slot times still open for one doctor.

        Raises:
            NotFoundError: If the doctor does not exist
        """
        await self.booking_repo.get_doctor(doctor_id)
        slots = await self.booking_repo.list_available_slots(doctor_id)
        return [slot.slot_time for slot in slots]

    async def list_bookings(self) -> List[Booking]:
        return await self.booking_repo.list_bookings()

    async def create_booking(self, booking_data: BookingCreate) -> BookingConfirmation:
        """
        Book a slot locally and replicate the result.

        Args:
            booking_data: Doctor, patient and slot of the booking

        Returns:
            Confirmation with the new confirmation id

        Raises:
            SlotUnavailableError: If the slot is taken or does not exist
        """
        taken = await self.booking_repo.book_slot(booking_data.doctor_id, booking_data.slot_time)
        if not taken:
            raise SlotUnavailableError(booking_data.doctor_id, booking_data.slot_time)

        booking = await self.booking_repo.create_booking(
            doctor_id=booking_data.doctor_id,
            patient_name=booking_data.patient_name,
            slot_time=booking_data.slot_time,
            confirmation_id=generate_confirmation_id(),
            booking_timestamp=self.node.local_time(),
            server_id=self.node.node_id,
        )
        logger.info(
            f"Booking {booking.confirmation_id} created for doctor {booking.doctor_id} "
            f"at {booking.slot_time}"
        )

        # Replication failures never undo the local commit
        await self.node.replication.replicate(
            BookingCreated(
                doctor_id=booking.doctor_id,
                patient_name=booking.patient_name,
                slot_time=booking.slot_time,
                confirmation_id=booking.confirmation_id,
                booking_timestamp=booking.booking_timestamp,
                origin_server_id=booking.server_id,
            )
        )
        await self.node.replication.replicate(
            SlotMarkedUnavailable(doctor_id=booking.doctor_id, slot_time=booking.slot_time)
        )

        return BookingConfirmation(
            consistency=CONSISTENCY_MODEL,
            confirmation_id=booking.confirmation_id,
            timestamp=booking.booking_timestamp,
            server=self.server_label,
        )
