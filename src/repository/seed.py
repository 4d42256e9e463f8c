"""
Seed data for the booking store and server registry.
"""

import logging
from typing import Dict, Iterable, List

from models.booking import Doctor, Slot
from models.node import Node, ServerRecord
from .booking_repository import BookingRepository
from .server_repository import ServerRepository

logger = logging.getLogger(__name__)

DEFAULT_DOCTORS: List[Doctor] = [
    Doctor(id=1, name="Dr. Aisha Khan", specialization="Cardiologist",
           experience="12 years", hospital="Apollo Hospital"),
    Doctor(id=2, name="Dr. Rohan Patel", specialization="Dermatologist",
           experience="10 years", hospital="Fortis Hospital"),
    Doctor(id=3, name="Dr. Neha Sharma", specialization="Pediatrician",
           experience="8 years", hospital="Manipal Hospital"),
    Doctor(id=4, name="Dr. Nikhil Rao", specialization="Neurologist",
           experience="15 years", hospital="Max Hospital"),
]

DEFAULT_SLOT_TIMES: Dict[int, List[str]] = {
    1: ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30", "12:00", "14:00", "14:30", "15:00"],
    2: ["10:00", "10:30", "11:00", "11:30", "12:00", "14:00", "14:30", "15:00", "15:30", "16:00"],
    3: ["09:00", "09:30", "10:00", "10:30", "11:00", "13:00", "13:30", "14:00", "14:30", "15:00"],
    4: ["08:00", "08:30", "09:00", "10:00", "11:00", "12:00", "14:00", "15:00", "16:00", "17:00"],
}


async def register_cluster_nodes(
    server_repo: ServerRepository, nodes: Iterable[Node], timestamp: int
) -> None:
    """Make sure every configured node has a server row."""
    for node in nodes:
        await server_repo.register_server(ServerRecord.for_node(node, timestamp))


async def seed_bookings(booking_repo: BookingRepository) -> int:
    """
    Insert the default doctors and their slots.

    Returns:
        Number of slots inserted
    """
    slot_count = 0
    for doctor in DEFAULT_DOCTORS:
        await booking_repo.add_doctor(doctor)
        for slot_time in DEFAULT_SLOT_TIMES.get(doctor.id, []):
            await booking_repo.add_slot(Slot(doctor_id=doctor.id, slot_time=slot_time))
            slot_count += 1
        logger.info(f"Seeded {doctor.name} with {len(DEFAULT_SLOT_TIMES.get(doctor.id, []))} slots")
    return slot_count


async def seed_bookings_if_empty(booking_repo: BookingRepository) -> bool:
    """Seed doctors and slots only when the store has no doctors yet."""
    if await booking_repo.list_doctors():
        return False
    await seed_bookings(booking_repo)
    return True


async def reset_and_seed(
    booking_repo: BookingRepository,
    server_repo: ServerRepository,
    nodes: Iterable[Node],
    timestamp: int,
) -> int:
    """Wipe both stores and reseed them from scratch."""
    await booking_repo.clear()
    await server_repo.clear()
    slot_count = await seed_bookings(booking_repo)
    await register_cluster_nodes(server_repo, nodes, timestamp)
    return slot_count
