#!/usr/bin/env python3
"""
Reset and seed the shared SQLite store.

Usage:
    python seed.py [--database PATH]

Wipes doctors, slots, bookings and server rows, then inserts the default
doctors with their slots and one server row per configured node. No server
is flagged as leader; the first election decides that.
"""

import argparse
import asyncio
import logging

from core.clock import system_clock_ms
from core.config import ClusterSettings
from core.logging_config import configure_logging
from repository.booking_repository import SqliteBookingRepository
from repository.seed import reset_and_seed
from repository.server_repository import SqliteServerRepository
from repository.sqlite_database import SqliteDatabase

logger = logging.getLogger(__name__)


def parse_arguments() -> argparse.Namespace:
    settings = ClusterSettings.from_environment()
    parser = argparse.ArgumentParser(description="Reset and seed the hospital cluster store")
    parser.add_argument(
        "--database",
        "-d",
        default=settings.database_path,
        help=f"SQLite database file (default: {settings.database_path})",
    )
    return parser.parse_args()


async def seed_database(database_path: str) -> int:
    """Reset the store at ``database_path`` and return the number of slots seeded."""
    settings = ClusterSettings.from_environment()
    database = SqliteDatabase(database_path)
    booking_repo = SqliteBookingRepository(database)
    server_repo = SqliteServerRepository(database)
    await booking_repo.initialize()
    await server_repo.initialize()
    return await reset_and_seed(booking_repo, server_repo, settings.nodes, system_clock_ms())


def main() -> None:
    configure_logging("INFO")
    args = parse_arguments()
    logger.info(f"Seeding {args.database}...")
    slot_count = asyncio.run(seed_database(args.database))
    logger.info(f"Seeding completed: {slot_count} slots")


if __name__ == "__main__":
    main()
