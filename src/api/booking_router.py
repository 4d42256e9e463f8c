"""
Doctor, slot and booking endpoints served by every node.

Any node accepts bookings; the write is committed locally and replicated
to the others with eventual consistency.
"""

from typing import List

from fastapi import APIRouter, Depends

from core.constants import (
    ENDPOINT_BOOKINGS,
    ENDPOINT_CONCURRENT,
    ENDPOINT_DOCTOR_SLOTS,
    ENDPOINT_DOCTORS,
)
from core.error_handlers import (
    create_internal_server_error_exception,
    create_slot_unavailable_exception,
    not_found_to_http,
)
from models.booking import Booking, BookingConfirmation, BookingCreate, ConcurrentWorkRequest, Doctor
from models.responses import ConcurrentWorkResponse, ServerEnvelope
from repository.base import NotFoundError, RepositoryException
from services.booking_service import BookingService, SlotUnavailableError
from services.workload_service import WorkloadService
from .dependencies import get_booking_service, get_workload_service

router = APIRouter(tags=["bookings"])


@router.get(ENDPOINT_DOCTORS, response_model=ServerEnvelope[List[Doctor]], summary="List doctors")
async def list_doctors_endpoint(
    booking_service: BookingService = Depends(get_booking_service),
) -> ServerEnvelope[List[Doctor]]:
    try:
        doctors = await booking_service.list_doctors()
    except RepositoryException as repository_error:
        raise create_internal_server_error_exception("fetch doctors", repository_error)

    return ServerEnvelope[List[Doctor]](
        data=doctors,
        server=booking_service.server_label,
        timestamp=booking_service.node.local_time(),
    )


@router.get(
    ENDPOINT_DOCTOR_SLOTS,
    response_model=ServerEnvelope[List[str]],
    summary="List a doctor's available slot times",
)
async def list_slots_endpoint(
    doctor_id: int,
    booking_service: BookingService = Depends(get_booking_service),
) -> ServerEnvelope[List[str]]:
    """Open slot times of one doctor; 404 for an unknown doctor."""
    try:
        slot_times = await booking_service.list_available_slot_times(doctor_id)
    except NotFoundError as not_found_error:
        raise not_found_to_http(not_found_error)
    except RepositoryException as repository_error:
        raise create_internal_server_error_exception("fetch slots", repository_error)

    return ServerEnvelope[List[str]](
        data=slot_times,
        server=booking_service.server_label,
        timestamp=booking_service.node.local_time(),
    )


@router.post(ENDPOINT_BOOKINGS, response_model=BookingConfirmation, summary="Book an appointment")
async def create_booking_endpoint(
    booking_data: BookingCreate,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingConfirmation:
    """
    Book a slot on this node.

    Returns 400 when the slot is already taken. Replication to peers is
    best effort and never fails the request.
    """
    try:
        return await booking_service.create_booking(booking_data)
    except SlotUnavailableError as slot_error:
        raise create_slot_unavailable_exception(slot_error.doctor_id, slot_error.slot_time)
    except RepositoryException as repository_error:
        raise create_internal_server_error_exception("create booking", repository_error)


@router.get(ENDPOINT_BOOKINGS, response_model=ServerEnvelope[List[Booking]], summary="List bookings")
async def list_bookings_endpoint(
    booking_service: BookingService = Depends(get_booking_service),
) -> ServerEnvelope[List[Booking]]:
    """Bookings stored on this node, newest first."""
    try:
        bookings = await booking_service.list_bookings()
    except RepositoryException as repository_error:
        raise create_internal_server_error_exception("fetch bookings", repository_error)

    return ServerEnvelope[List[Booking]](
        data=bookings,
        server=booking_service.server_label,
        timestamp=booking_service.node.local_time(),
    )


@router.post(ENDPOINT_CONCURRENT, response_model=ConcurrentWorkResponse, summary="Process a simulated batch")
async def concurrent_requests_endpoint(
    work: ConcurrentWorkRequest,
    workload_service: WorkloadService = Depends(get_workload_service),
    booking_service: BookingService = Depends(get_booking_service),
) -> ConcurrentWorkResponse:
    results = await workload_service.process_batch(work.requests)
    return ConcurrentWorkResponse(results=results, server=booking_service.server_label)
