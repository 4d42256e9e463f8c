"""
Thin asyncio wrapper around a SQLite database file.

Every node process of a local cluster points at the same file, which is what
lets the status endpoint show peers' heartbeats and leader flags.
"""

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Any, Callable, List, Sequence, Tuple, TypeVar

from .base import RepositoryException

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS doctors (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        specialization TEXT NOT NULL,
        experience TEXT NOT NULL,
        hospital TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS slots (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        doctor_id INTEGER NOT NULL,
        slot_time TEXT NOT NULL,
        is_available BOOLEAN DEFAULT 1,
        FOREIGN KEY (doctor_id) REFERENCES doctors (id)
    )
    """,
    # confirmation_id is not unique: replicated duplicates are stored as-is
    """
    CREATE TABLE IF NOT EXISTS bookings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        doctor_id INTEGER NOT NULL,
        patient_name TEXT NOT NULL,
        slot_time TEXT NOT NULL,
        confirmation_id TEXT NOT NULL,
        booking_timestamp INTEGER NOT NULL,
        server_id INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS servers (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        port INTEGER NOT NULL,
        connections INTEGER DEFAULT 0,
        is_leader BOOLEAN DEFAULT 0,
        last_heartbeat INTEGER DEFAULT 0,
        status TEXT DEFAULT 'active'
    )
    """,
)


class SqliteDatabase:
    """
    Runs short SQLite statements off the event loop.

    A fresh connection is opened per call, so instances can be shared by
    several repositories and by concurrent tasks. Driver errors surface as
    ``RepositoryException``.
    """

    def __init__(self, path: str, timeout_seconds: float = 5.0):
        self.path = str(path)
        self.timeout_seconds = timeout_seconds
        self._schema_ready = False

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self.path, timeout=self.timeout_seconds)
        connection.row_factory = sqlite3.Row
        return connection

    async def _run(self, function: Callable[[sqlite3.Connection], T]) -> T:
        def work() -> T:
            connection = self._connect()
            try:
                with connection:
                    return function(connection)
            finally:
                connection.close()

        try:
            return await asyncio.to_thread(work)
        except sqlite3.Error as e:
            logger.error(f"SQLite error on {self.path}: {e}")
            raise RepositoryException(f"Store operation failed: {e}") from e

    async def create_schema(self) -> None:
        """Create all tables if missing."""
        if self._schema_ready:
            return
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        def create(connection: sqlite3.Connection) -> None:
            for statement in SCHEMA:
                connection.execute(statement)

        await self._run(create)
        self._schema_ready = True
        logger.debug(f"SQLite schema ready at {self.path}")

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run one write statement; returns the number of changed rows."""
        return await self.execute_many([(sql, params)])

    async def execute_many(self, statements: Sequence[Tuple[str, Sequence[Any]]]) -> int:
        """Run several write statements in one transaction."""
        return await self._run(
            lambda connection: sum(
                connection.execute(sql, params).rowcount for sql, params in statements
            )
        )

    async def insert(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run one INSERT; returns the new row id."""
        return await self._run(lambda connection: connection.execute(sql, params).lastrowid)

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        """Run a query and return every row."""
        return await self._run(lambda connection: connection.execute(sql, params).fetchall())
