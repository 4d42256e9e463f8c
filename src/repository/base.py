"""
Base repository interface and exceptions.

Defines the lifecycle shared by every store backend.
"""

from abc import ABC, abstractmethod
from typing import Any


class RepositoryException(Exception):
    """Base exception for repository operations."""
    pass


class NotFoundError(RepositoryException):
    """Raised when an entity is not found."""

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with ID {entity_id} not found")


class BaseRepository(ABC):
    """
    Abstract base repository.

    Backends create their schema in ``initialize`` and release resources in
    ``close``; both must be safe to call more than once.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backend (create tables, indexes...)."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        return None
