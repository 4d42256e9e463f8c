"""
Repository for per-node server records.

Holds the ``servers`` rows read by the status reporter and written by the
election engine and the heartbeat monitor.
"""

import asyncio
from typing import Dict, List

from models.node import NodeStatus, ServerRecord
from .base import BaseRepository, NotFoundError
from .sqlite_database import SqliteDatabase


class ServerRepository(BaseRepository):
    """Abstract interface for server record storage."""

    async def list_servers(self) -> List[ServerRecord]:
        """Return every server row ordered by id."""
        raise NotImplementedError

    async def get_server(self, server_id: int) -> ServerRecord:
        """
        Get one server row.

        Raises:
            NotFoundError: If the server is not registered
        """
        raise NotImplementedError

    async def register_server(self, record: ServerRecord) -> None:
        """Insert a server row unless one with the same id exists."""
        raise NotImplementedError

    async def update_status(
        self,
        server_id: int,
        connections: int,
        is_leader: bool,
        status: NodeStatus,
        timestamp: int,
    ) -> int:
        """Overwrite connections, leader flag, heartbeat and status of one row."""
        raise NotImplementedError

    async def update_heartbeat(self, server_id: int, timestamp: int) -> int:
        """Record a heartbeat for one row."""
        raise NotImplementedError

    async def set_leader(self, server_id: int) -> int:
        """Clear every leader flag, then flag ``server_id``."""
        raise NotImplementedError

    async def clear(self) -> None:
        """Remove every row."""
        raise NotImplementedError


class InMemoryServerRepository(ServerRepository):
    """
    In-memory implementation of the server repository.

    Thread-safe implementation using asyncio.Lock.
    """

    def __init__(self):
        self._servers: Dict[int, ServerRecord] = {}
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        return None

    async def list_servers(self) -> List[ServerRecord]:
        async with self._lock:
            return [
                record.model_copy()
                for _, record in sorted(self._servers.items())
            ]

    async def get_server(self, server_id: int) -> ServerRecord:
        async with self._lock:
            if server_id not in self._servers:
                raise NotFoundError("Server", server_id)
            return self._servers[server_id].model_copy()

    async def register_server(self, record: ServerRecord) -> None:
        async with self._lock:
            self._servers.setdefault(record.id, record.model_copy())

    async def update_status(
        self,
        server_id: int,
        connections: int,
        is_leader: bool,
        status: NodeStatus,
        timestamp: int,
    ) -> int:
        async with self._lock:
            record = self._servers.get(server_id)
            if record is None:
                return 0
            record.connections = connections
            record.is_leader = is_leader
            record.status = status
            record.last_heartbeat = timestamp
            return 1

    async def update_heartbeat(self, server_id: int, timestamp: int) -> int:
        async with self._lock:
            record = self._servers.get(server_id)
            if record is None:
                return 0
            record.last_heartbeat = timestamp
            return 1

    async def set_leader(self, server_id: int) -> int:
        async with self._lock:
            for record in self._servers.values():
                record.is_leader = False
            record = self._servers.get(server_id)
            if record is None:
                return 0
            record.is_leader = True
            return 1

    async def clear(self) -> None:
        async with self._lock:
            self._servers.clear()


class SqliteServerRepository(ServerRepository):
    """SQLite implementation backed by the ``servers`` table."""

    def __init__(self, database: SqliteDatabase):
        self.database = database

    async def initialize(self) -> None:
        await self.database.create_schema()

    @staticmethod
    def _to_record(row) -> ServerRecord:
        return ServerRecord(
            id=row["id"],
            name=row["name"],
            port=row["port"],
            connections=row["connections"] or 0,
            is_leader=bool(row["is_leader"]),
            last_heartbeat=row["last_heartbeat"] or 0,
            status=row["status"] or NodeStatus.ACTIVE.value,
        )

    async def list_servers(self) -> List[ServerRecord]:
        rows = await self.database.fetch_all("SELECT * FROM servers ORDER BY id")
        return [self._to_record(row) for row in rows]

    async def get_server(self, server_id: int) -> ServerRecord:
        rows = await self.database.fetch_all(
            "SELECT * FROM servers WHERE id = ?", (server_id,)
        )
        if not rows:
            raise NotFoundError("Server", server_id)
        return self._to_record(rows[0])

    async def register_server(self, record: ServerRecord) -> None:
        await self.database.execute(
            "INSERT OR IGNORE INTO servers "
            "(id, name, port, connections, is_leader, last_heartbeat, status) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                record.id,
                record.name,
                record.port,
                record.connections,
                int(record.is_leader),
                record.last_heartbeat,
                record.status.value,
            ),
        )

    async def update_status(
        self,
        server_id: int,
        connections: int,
        is_leader: bool,
        status: NodeStatus,
        timestamp: int,
    ) -> int:
        return await self.database.execute(
            "UPDATE servers SET connections = ?, is_leader = ?, last_heartbeat = ?, "
            "status = ? WHERE id = ?",
            (connections, int(is_leader), timestamp, NodeStatus(status).value, server_id),
        )

    async def update_heartbeat(self, server_id: int, timestamp: int) -> int:
        return await self.database.execute(
            "UPDATE servers SET last_heartbeat = ? WHERE id = ?",
            (timestamp, server_id),
        )

    async def set_leader(self, server_id: int) -> int:
        return await self.database.execute_many(
            [
                ("UPDATE servers SET is_leader = 0", ()),
                ("UPDATE servers SET is_leader = 1 WHERE id = ?", (server_id,)),
            ]
        )

    async def clear(self) -> None:
        await self.database.execute("DELETE FROM servers")
