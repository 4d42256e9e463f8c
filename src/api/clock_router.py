"""
Clock synchronization endpoints (Cristian's algorithm).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from cluster.errors import SyncUnavailable
from cluster.node import ClusterNode
from core.constants import (
    ENDPOINT_CLOCK_SYNC,
    ENDPOINT_CLOCK_SYNC_SYNCHRONIZE,
    SERVER_LABEL_FORMAT,
)
from core.error_handlers import create_sync_unavailable_exception
from models.messages import ClockSyncRequest, ClockSyncResponse
from models.responses import ClockSyncResult
from .dependencies import get_cluster_node

router = APIRouter(tags=["clock"])


def build_sync_response(node: ClusterNode, client_time: Optional[int]) -> ClockSyncResponse:
    """Answer a sync request, using this node's clock when the client sent none."""
    if client_time is None:
        client_time = node.local_time()
    exchange = node.clock_sync.perform_sync(client_time)
    return ClockSyncResponse(
        **exchange.model_dump(),
        server=SERVER_LABEL_FORMAT.format(server_id=node.node_id),
    )


def parse_client_time(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@router.post(ENDPOINT_CLOCK_SYNC, response_model=ClockSyncResponse, summary="Answer a clock sync request")
async def clock_sync_post_endpoint(
    request: ClockSyncRequest,
    node: ClusterNode = Depends(get_cluster_node),
) -> ClockSyncResponse:
    return build_sync_response(node, request.client_time)


@router.get(ENDPOINT_CLOCK_SYNC, response_model=ClockSyncResponse, summary="Answer a clock sync request")
async def clock_sync_get_endpoint(
    client_time: Optional[str] = Query(None, alias="clientTime", description="Client send time (ms)"),
    node: ClusterNode = Depends(get_cluster_node),
) -> ClockSyncResponse:
    """
    Same as the POST form, with the client time as a query parameter.

    A missing or non-integer ``clientTime`` falls back to this node's time.
    """
    return build_sync_response(node, parse_client_time(client_time))


@router.post(
    ENDPOINT_CLOCK_SYNC_SYNCHRONIZE,
    response_model=ClockSyncResult,
    summary="Synchronize this node's clock now",
)
async def synchronize_endpoint(
    node: ClusterNode = Depends(get_cluster_node),
) -> ClockSyncResult:
    """
    Run one Cristian exchange against the leader, or the first peer that answers.

    Returns 503 when no reference node is reachable; the offset is unchanged.
    """
    try:
        exchange = await node.clock_sync.synchronize()
    except SyncUnavailable as sync_error:
        raise create_sync_unavailable_exception(sync_error)

    return ClockSyncResult(
        clock_offset_ms=exchange.clock_offset_ms,
        reference=node.clock_sync.last_reference_id,
        round_trip_time=exchange.round_trip_time,
    )
