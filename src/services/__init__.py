"""
Service layer for the Hospital Cluster API.

This module implements booking business logic and the simulated workload.
"""

from .booking_service import BookingService, SlotUnavailableError, generate_confirmation_id
from .workload_service import WorkloadService

__all__ = [
    "BookingService",
    "SlotUnavailableError",
    "generate_confirmation_id",
    "WorkloadService",
]
