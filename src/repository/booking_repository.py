"""
Repository for doctors, slots and bookings.

Handles data access for the booking side of a node following the repository
pattern. Bookings are plain inserts: storing the same replicated booking twice
yields two rows.
"""

import asyncio
from typing import Dict, List, Tuple

from models.booking import Booking, Doctor, Slot
from .base import BaseRepository, NotFoundError
from .sqlite_database import SqliteDatabase


class BookingRepository(BaseRepository):
    """Abstract interface for the booking store."""

    async def list_doctors(self) -> List[Doctor]:
        raise NotImplementedError

    async def get_doctor(self, doctor_id: int) -> Doctor:
        """
        Get a doctor by id.

        Raises:
            NotFoundError: If the doctor does not exist
        """
        raise NotImplementedError

    async def add_doctor(self, doctor: Doctor) -> Doctor:
        """Insert or replace a doctor."""
        raise NotImplementedError

    async def add_slot(self, slot: Slot) -> Slot:
        raise NotImplementedError

    async def list_available_slots(self, doctor_id: int) -> List[Slot]:
        raise NotImplementedError

    async def book_slot(self, doctor_id: int, slot_time: str) -> bool:
        """
        Mark an available slot as taken.

        Returns:
            True if a slot changed from available to taken, False otherwise
        """
        raise NotImplementedError

    async def create_booking(
        self,
        doctor_id: int,
        patient_name: str,
        slot_time: str,
        confirmation_id: str,
        booking_timestamp: int,
        server_id: int,
    ) -> Booking:
        """Insert a booking row and return it."""
        raise NotImplementedError

    async def list_bookings(self) -> List[Booking]:
        """List bookings newest first, with doctor names resolved."""
        raise NotImplementedError

    async def clear(self) -> None:
        """Remove every doctor, slot and booking."""
        raise NotImplementedError


class InMemoryBookingRepository(BookingRepository):
    """
    In-memory implementation of the booking repository.

    Thread-safe implementation using asyncio.Lock.
    """

    def __init__(self):
        self._doctors: Dict[int, Doctor] = {}
        self._slots: List[Slot] = []
        self._bookings: List[Booking] = []
        self._next_booking_id = 1
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        return None

    async def list_doctors(self) -> List[Doctor]:
        async with self._lock:
            return [doctor for _, doctor in sorted(self._doctors.items())]

    async def get_doctor(self, doctor_id: int) -> Doctor:
        async with self._lock:
            if doctor_id not in self._doctors:
                raise NotFoundError("Doctor", doctor_id)
            return self._doctors[doctor_id]

    async def add_doctor(self, doctor: Doctor) -> Doctor:
        async with self._lock:
            self._doctors[doctor.id] = doctor
            return doctor

    async def add_slot(self, slot: Slot) -> Slot:
        async with self._lock:
            self._slots.append(slot.model_copy())
            return slot

    async def list_available_slots(self, doctor_id: int) -> List[Slot]:
        async with self._lock:
            return [
                slot.model_copy()
                for slot in self._slots
                if slot.doctor_id == doctor_id and slot.is_available
            ]

    async def book_slot(self, doctor_id: int, slot_time: str) -> bool:
        async with self._lock:
            changed = False
            for slot in self._slots:
                if (
                    slot.doctor_id == doctor_id
                    and slot.slot_time == slot_time
                    and slot.is_available
                ):
                    slot.is_available = False
                    changed = True
            return changed

    async def create_booking(
        self,
        doctor_id: int,
        patient_name: str,
        slot_time: str,
        confirmation_id: str,
        booking_timestamp: int,
        server_id: int,
    ) -> Booking:
        async with self._lock:
            booking = Booking(
                id=self._next_booking_id,
                doctor_id=doctor_id,
                patient_name=patient_name,
                slot_time=slot_time,
                confirmation_id=confirmation_id,
                booking_timestamp=booking_timestamp,
                server_id=server_id,
            )
            self._next_booking_id += 1
            self._bookings.append(booking)
            return booking

    async def list_bookings(self) -> List[Booking]:
        async with self._lock:
            bookings = []
            for booking in self._bookings:
                doctor = self._doctors.get(booking.doctor_id)
                bookings.append(
                    booking.model_copy(
                        update={"doctor_name": doctor.name if doctor else None}
                    )
                )
            bookings.sort(key=lambda b: b.booking_timestamp, reverse=True)
            return bookings

    async def clear(self) -> None:
        async with self._lock:
            self._doctors.clear()
            self._slots.clear()
            self._bookings.clear()
            self._next_booking_id = 1


class SqliteBookingRepository(BookingRepository):
    """SQLite implementation backed by the doctors, slots and bookings tables."""

    def __init__(self, database: SqliteDatabase):
        self.database = database

    async def initialize(self) -> None:
        await self.database.create_schema()

    @staticmethod
    def _to_doctor(row) -> Doctor:
        return Doctor(
            id=row["id"],
            name=row["name"],
            specialization=row["specialization"],
            experience=row["experience"],
            hospital=row["hospital"],
        )

    @staticmethod
    def _to_booking(row) -> Booking:
        return Booking(
            id=row["id"],
            doctor_id=row["doctor_id"],
            doctor_name=row["doctor_name"],
            patient_name=row["patient_name"],
            slot_time=row["slot_time"],
            confirmation_id=row["confirmation_id"],
            booking_timestamp=row["booking_timestamp"],
            server_id=row["server_id"],
        )

    async def list_doctors(self) -> List[Doctor]:
        rows = await self.database.fetch_all("SELECT * FROM doctors ORDER BY id")
        return [self._to_doctor(row) for row in rows]

    async def get_doctor(self, doctor_id: int) -> Doctor:
        rows = await self.database.fetch_all(
            "SELECT * FROM doctors WHERE id = ?", (doctor_id,)
        )
        if not rows:
            raise NotFoundError("Doctor", doctor_id)
        return self._to_doctor(rows[0])

    async def add_doctor(self, doctor: Doctor) -> Doctor:
        await self.database.execute(
            "INSERT OR REPLACE INTO doctors (id, name, specialization, experience, hospital) "
            "VALUES (?, ?, ?, ?, ?)",
            (doctor.id, doctor.name, doctor.specialization, doctor.experience, doctor.hospital),
        )
        return doctor

    async def add_slot(self, slot: Slot) -> Slot:
        await self.database.insert(
            "INSERT INTO slots (doctor_id, slot_time, is_available) VALUES (?, ?, ?)",
            (slot.doctor_id, slot.slot_time, int(slot.is_available)),
        )
        return slot

    async def list_available_slots(self, doctor_id: int) -> List[Slot]:
        rows = await self.database.fetch_all(
            "SELECT doctor_id, slot_time, is_available FROM slots "
            "WHERE doctor_id = ? AND is_available = 1 ORDER BY id",
            (doctor_id,),
        )
        return [
            Slot(doctor_id=row["doctor_id"], slot_time=row["slot_time"], is_available=True)
            for row in rows
        ]

    async def book_slot(self, doctor_id: int, slot_time: str) -> bool:
        changed = await self.database.execute(
            "UPDATE slots SET is_available = 0 "
            "WHERE doctor_id = ? AND slot_time = ? AND is_available = 1",
            (doctor_id, slot_time),
        )
        return changed > 0

    async def create_booking(
        self,
        doctor_id: int,
        patient_name: str,
        slot_time: str,
        confirmation_id: str,
        booking_timestamp: int,
        server_id: int,
    ) -> Booking:
        booking_id = await self.database.insert(
            "INSERT INTO bookings "
            "(doctor_id, patient_name, slot_time, confirmation_id, booking_timestamp, server_id) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (doctor_id, patient_name, slot_time, confirmation_id, booking_timestamp, server_id),
        )
        return Booking(
            id=booking_id,
            doctor_id=doctor_id,
            patient_name=patient_name,
            slot_time=slot_time,
            confirmation_id=confirmation_id,
            booking_timestamp=booking_timestamp,
            server_id=server_id,
        )

    async def list_bookings(self) -> List[Booking]:
        rows = await self.database.fetch_all(
            "SELECT b.*, d.name AS doctor_name FROM bookings b "
            "LEFT JOIN doctors d ON b.doctor_id = d.id "
            "ORDER BY b.booking_timestamp DESC"
        )
        return [self._to_booking(row) for row in rows]

    async def clear(self) -> None:
        statements: List[Tuple[str, tuple]] = [
            ("DELETE FROM bookings", ()),
            ("DELETE FROM slots", ()),
            ("DELETE FROM doctors", ()),
        ]
        await self.database.execute_many(statements)
