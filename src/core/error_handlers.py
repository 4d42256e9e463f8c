"""
Common error handling utilities.

Maps repository and coordination failures to HTTP responses so routers
stay free of status code bookkeeping.
"""

from typing import Any

from fastapi import HTTPException, status

from core.constants import (
    ERROR_DOCTOR_NOT_FOUND,
    ERROR_SLOT_UNAVAILABLE,
    ERROR_SYNC_UNAVAILABLE,
)
from repository.base import NotFoundError


def create_not_found_exception(resource_type: str, resource_id: Any) -> HTTPException:
    """
    Create HTTP 404 exception for any resource not found.

    Args:
        resource_type: Type of resource (doctor, server)
        resource_id: ID of the resource that was not found

    Returns:
        HTTPException with 404 status code
    """
    error_messages = {
        "doctor": ERROR_DOCTOR_NOT_FOUND,
    }

    error_message = error_messages.get(resource_type, f"{resource_type.title()} not found")

    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{error_message}: {resource_id}"
    )


def create_slot_unavailable_exception(doctor_id: int, slot_time: str) -> HTTPException:
    """Create HTTP 400 exception for a slot that is already taken."""
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"{ERROR_SLOT_UNAVAILABLE}: doctor {doctor_id} at {slot_time}"
    )


def create_sync_unavailable_exception(error: Exception) -> HTTPException:
    """Create HTTP 503 exception when no clock reference answered."""
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"{ERROR_SYNC_UNAVAILABLE}: {error}"
    )


def create_internal_server_error_exception(operation: str, error: Exception) -> HTTPException:
    """
    Create HTTP 500 exception for unexpected internal errors.

    Args:
        operation: Description of the operation that failed
        error: The unexpected error that occurred

    Returns:
        HTTPException with 500 status code
    """
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {operation}: {str(error)}"
    )


def not_found_to_http(error: NotFoundError) -> HTTPException:
    """Translate a repository NotFoundError into a 404."""
    return create_not_found_exception(error.entity_type.lower(), error.entity_id)
