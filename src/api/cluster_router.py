"""
Cluster coordination endpoints.

Health checks, the status view and the Bully election messages exchanged
between nodes.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from cluster.node import ClusterNode
from core.constants import (
    API_STATUS_HEALTHY,
    ENDPOINT_ELECTION,
    ENDPOINT_ELECTION_START,
    ENDPOINT_HEALTH,
    ENDPOINT_LEADER_UPDATE,
    ENDPOINT_SERVERS,
    MESSAGE_LEADER_UPDATED,
    SERVER_LABEL_FORMAT,
)
from core.error_handlers import create_internal_server_error_exception
from models.messages import (
    Acknowledgement,
    ElectionMessage,
    ElectionResponse,
    ElectionTriggerResponse,
    HealthResponse,
    LeaderUpdate,
)
from models.node import NodeRuntimeState
from models.responses import ServerEnvelope
from repository.base import RepositoryException
from .dependencies import get_cluster_node

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cluster"])


@router.get(ENDPOINT_HEALTH, response_model=HealthResponse, summary="Node health check")
async def health_check_endpoint(
    node: ClusterNode = Depends(get_cluster_node),
) -> HealthResponse:
    """Liveness probe used by the leader and by clients."""
    return HealthResponse(
        status=API_STATUS_HEALTHY,
        server_id=node.node_id,
        port=node.self_node.port,
        timestamp=node.local_time(),
    )


@router.get(
    ENDPOINT_SERVERS,
    response_model=ServerEnvelope[List[NodeRuntimeState]],
    summary="Status of every cluster node",
)
async def list_servers_endpoint(
    node: ClusterNode = Depends(get_cluster_node),
) -> ServerEnvelope[List[NodeRuntimeState]]:
    """
    Role, heartbeat, connections and clock of every node.

    This node's row carries live values; peer rows are read from the store.
    """
    try:
        states = await node.status.snapshot()
    except RepositoryException as repository_error:
        raise create_internal_server_error_exception("fetch server status", repository_error)

    return ServerEnvelope[List[NodeRuntimeState]](
        data=states,
        server=SERVER_LABEL_FORMAT.format(server_id=node.node_id),
        timestamp=node.local_time(),
    )


@router.post(ENDPOINT_ELECTION, response_model=ElectionResponse, summary="Bully election message")
async def election_message_endpoint(
    message: ElectionMessage,
    node: ClusterNode = Depends(get_cluster_node),
) -> ElectionResponse:
    """
    Receive an election message from a candidate.

    A lower candidate gets ``success=true, reply=alive`` and this node starts
    its own election shortly after; anything else is acknowledged.
    """
    return await node.election.on_election_message_received(message.candidate_id)


@router.post(
    ENDPOINT_ELECTION_START,
    response_model=ElectionTriggerResponse,
    summary="Start an election on this node",
)
async def start_election_endpoint(
    node: ClusterNode = Depends(get_cluster_node),
) -> ElectionTriggerResponse:
    """Run one election round and report how it ended on this node."""
    outcome = await node.trigger_election()
    return ElectionTriggerResponse(outcome=outcome.value)


@router.post(ENDPOINT_LEADER_UPDATE, response_model=Acknowledgement, summary="New leader announcement")
async def leader_update_endpoint(
    update: LeaderUpdate,
    node: ClusterNode = Depends(get_cluster_node),
) -> Acknowledgement:
    """Adopt the announced leader."""
    try:
        await node.election.on_leader_update_received(update.new_leader_id)
    except RepositoryException as repository_error:
        raise create_internal_server_error_exception("update leader", repository_error)
    return Acknowledgement(message=MESSAGE_LEADER_UPDATED)
