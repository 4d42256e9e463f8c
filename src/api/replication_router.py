"""
Inbound replication endpoints.

Peers post events here after committing them locally. Events are applied
as they arrive: no dedup, no ordering check.
"""

import logging

from fastapi import APIRouter, Depends

from cluster.node import ClusterNode
from core.constants import (
    ENDPOINT_REPLICATE_BOOKING,
    ENDPOINT_REPLICATE_SLOT,
    MESSAGE_BOOKING_REPLICATED,
    MESSAGE_SLOT_REPLICATED,
)
from core.error_handlers import create_internal_server_error_exception
from models.messages import Acknowledgement
from models.replication import BookingCreated, SlotMarkedUnavailable
from repository.base import RepositoryException
from .dependencies import get_cluster_node

logger = logging.getLogger(__name__)

router = APIRouter(tags=["replication"])


@router.post(ENDPOINT_REPLICATE_BOOKING, response_model=Acknowledgement, summary="Apply a replicated booking")
async def replicate_booking_endpoint(
    event: BookingCreated,
    node: ClusterNode = Depends(get_cluster_node),
) -> Acknowledgement:
    try:
        await node.replication.apply_replicated_event(event)
    except RepositoryException as repository_error:
        raise create_internal_server_error_exception("replicate booking", repository_error)
    return Acknowledgement(message=MESSAGE_BOOKING_REPLICATED)


@router.post(ENDPOINT_REPLICATE_SLOT, response_model=Acknowledgement, summary="Apply a replicated slot update")
async def replicate_slot_endpoint(
    event: SlotMarkedUnavailable,
    node: ClusterNode = Depends(get_cluster_node),
) -> Acknowledgement:
    try:
        await node.replication.apply_replicated_event(event)
    except RepositoryException as repository_error:
        raise create_internal_server_error_exception("replicate slot", repository_error)
    return Acknowledgement(message=MESSAGE_SLOT_REPLICATED)
