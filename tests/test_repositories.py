"""
Unit tests for repository implementations.

Every test runs against both the in-memory and the SQLite backend.
"""

import pytest
import pytest_asyncio

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.config import default_cluster_nodes
from models.booking import Doctor, Slot
from models.node import NodeStatus, ServerRecord
from repository import (
    InMemoryBookingRepository,
    InMemoryServerRepository,
    NotFoundError,
    RepositoryException,
    SqliteBookingRepository,
    SqliteDatabase,
    SqliteServerRepository,
)
from repository.seed import (
    DEFAULT_DOCTORS,
    register_cluster_nodes,
    reset_and_seed,
    seed_bookings_if_empty,
)


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def repositories(request, tmp_path):
    """Server and booking repositories sharing one backend."""
    if request.param == "memory":
        server_repo, booking_repo = InMemoryServerRepository(), InMemoryBookingRepository()
    else:
        database = SqliteDatabase(tmp_path / "cluster" / "hospital.db")
        server_repo, booking_repo = SqliteServerRepository(database), SqliteBookingRepository(database)
    await server_repo.initialize()
    await booking_repo.initialize()
    return server_repo, booking_repo


class TestServerRepository:
    """Test server row storage."""

    @pytest.mark.asyncio
    async def test_register_is_insert_or_ignore(self, repositories):
        server_repo, _ = repositories
        nodes = default_cluster_nodes()
        await register_cluster_nodes(server_repo, nodes, timestamp=100)
        await server_repo.update_heartbeat(1, 500)

        await register_cluster_nodes(server_repo, nodes, timestamp=200)

        records = await server_repo.list_servers()
        assert [record.id for record in records] == [1, 2, 3]
        assert records[0].last_heartbeat == 500
        assert records[1].last_heartbeat == 100
        assert records[2].name == "Server-Bangalore"

    @pytest.mark.asyncio
    async def test_set_leader_clears_previous_flag(self, repositories):
        server_repo, _ = repositories
        await register_cluster_nodes(server_repo, default_cluster_nodes(), timestamp=0)

        await server_repo.set_leader(2)
        await server_repo.set_leader(3)

        leaders = [record.id for record in await server_repo.list_servers() if record.is_leader]
        assert leaders == [3]

    @pytest.mark.asyncio
    async def test_update_status(self, repositories):
        server_repo, _ = repositories
        await register_cluster_nodes(server_repo, default_cluster_nodes(), timestamp=0)

        changed = await server_repo.update_status(2, 5, True, NodeStatus.INACTIVE, 1234)

        record = await server_repo.get_server(2)
        assert changed == 1
        assert record.connections == 5
        assert record.is_leader
        assert record.status == NodeStatus.INACTIVE
        assert record.last_heartbeat == 1234

    @pytest.mark.asyncio
    async def test_unknown_server(self, repositories):
        server_repo, _ = repositories

        with pytest.raises(NotFoundError) as exc_info:
            await server_repo.get_server(42)

        assert exc_info.value.entity_type == "Server"
        assert exc_info.value.entity_id == 42
        assert await server_repo.update_heartbeat(42, 1) == 0

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self):
        server_repo = InMemoryServerRepository()
        await server_repo.register_server(ServerRecord(id=1, name="Server-Mumbai", port=5001))

        record = await server_repo.get_server(1)
        record.connections = 99

        assert (await server_repo.get_server(1)).connections == 0


class TestBookingRepository:
    """Test doctors, slots and bookings."""

    @pytest.mark.asyncio
    async def test_seed_only_when_empty(self, repositories):
        _, booking_repo = repositories

        assert await seed_bookings_if_empty(booking_repo) is True
        assert await seed_bookings_if_empty(booking_repo) is False

        doctors = await booking_repo.list_doctors()
        assert [doctor.id for doctor in doctors] == [doctor.id for doctor in DEFAULT_DOCTORS]
        assert len(await booking_repo.list_available_slots(1)) == 10

    @pytest.mark.asyncio
    async def test_book_slot_only_once(self, repositories):
        _, booking_repo = repositories
        await booking_repo.add_doctor(DEFAULT_DOCTORS[0])
        await booking_repo.add_slot(Slot(doctor_id=1, slot_time="09:00"))

        assert await booking_repo.book_slot(1, "09:00") is True
        assert await booking_repo.book_slot(1, "09:00") is False
        assert await booking_repo.book_slot(1, "23:00") is False
        assert await booking_repo.list_available_slots(1) == []

    @pytest.mark.asyncio
    async def test_unknown_doctor(self, repositories):
        _, booking_repo = repositories

        with pytest.raises(NotFoundError):
            await booking_repo.get_doctor(99)

    @pytest.mark.asyncio
    async def test_bookings_newest_first_with_doctor_name(self, repositories):
        _, booking_repo = repositories
        await booking_repo.add_doctor(
            Doctor(id=1, name="Dr. Aisha Khan", specialization="Cardiologist",
                   experience="12 years", hospital="Apollo Hospital")
        )
        await booking_repo.create_booking(1, "First", "09:00", "CONFAAAAAAAAA", 1000, 1)
        await booking_repo.create_booking(1, "Second", "09:30", "CONFBBBBBBBBB", 2000, 2)

        bookings = await booking_repo.list_bookings()

        assert [b.patient_name for b in bookings] == ["Second", "First"]
        assert bookings[0].doctor_name == "Dr. Aisha Khan"
        assert bookings[0].server_id == 2

    @pytest.mark.asyncio
    async def test_same_confirmation_id_stored_twice(self, repositories):
        _, booking_repo = repositories

        await booking_repo.create_booking(1, "Asha", "09:00", "CONFDUPLICATE", 1000, 1)
        await booking_repo.create_booking(1, "Asha", "09:00", "CONFDUPLICATE", 1000, 1)

        assert len(await booking_repo.list_bookings()) == 2

    @pytest.mark.asyncio
    async def test_reset_and_seed(self, repositories):
        server_repo, booking_repo = repositories
        await booking_repo.create_booking(1, "Asha", "09:00", "CONFOLD000000", 1000, 1)

        slot_count = await reset_and_seed(booking_repo, server_repo, default_cluster_nodes(), 0)

        assert slot_count == 40
        assert await booking_repo.list_bookings() == []
        records = await server_repo.list_servers()
        assert len(records) == 3
        assert not any(record.is_leader for record in records)


class TestSqliteDatabase:
    """Test the SQLite wrapper."""

    @pytest.mark.asyncio
    async def test_driver_errors_become_repository_exceptions(self, tmp_path):
        database = SqliteDatabase(tmp_path / "hospital.db")
        await database.create_schema()

        with pytest.raises(RepositoryException):
            await database.execute("INSERT INTO missing_table VALUES (1)")

    @pytest.mark.asyncio
    async def test_nodes_sharing_a_file_see_each_other(self, tmp_path):
        path = tmp_path / "shared.db"
        first = SqliteServerRepository(SqliteDatabase(path))
        second = SqliteServerRepository(SqliteDatabase(path))
        await first.initialize()
        await second.initialize()

        await register_cluster_nodes(first, default_cluster_nodes(), timestamp=0)
        await second.set_leader(2)

        assert (await first.get_server(2)).is_leader
