"""
Repository layer for the Hospital Cluster API.

This module implements the repository pattern for the external store that
holds server rows, doctors, slots and bookings.
"""

from .base import BaseRepository, RepositoryException, NotFoundError
from .booking_repository import (
    BookingRepository,
    InMemoryBookingRepository,
    SqliteBookingRepository,
)
from .server_repository import (
    InMemoryServerRepository,
    ServerRepository,
    SqliteServerRepository,
)
from .sqlite_database import SqliteDatabase

__all__ = [
    "BaseRepository",
    "RepositoryException",
    "NotFoundError",
    "BookingRepository",
    "InMemoryBookingRepository",
    "SqliteBookingRepository",
    "ServerRepository",
    "InMemoryServerRepository",
    "SqliteServerRepository",
    "SqliteDatabase",
]
