"""
Cluster status view.
"""

import logging
from typing import Callable, List

from core.clock import Clock, system_clock_ms
from models.node import Node, NodeRole, NodeRuntimeState, ServerRecord
from repository.server_repository import ServerRepository
from .directory import NodeDirectory
from .local_state import LocalNodeState

logger = logging.getLogger(__name__)


class StatusReporter:
    """
    Builds the per-node status list served by ``GET /api/servers``.

    Peer rows come straight from the store. This node's row is overlaid
    with live values, so the list may mix values read at different times.
    """

    def __init__(
        self,
        self_node: Node,
        directory: NodeDirectory,
        server_repo: ServerRepository,
        local_state: LocalNodeState,
        role_lookup: Callable[[], NodeRole],
        offset_lookup: Callable[[], int],
        clock: Clock = system_clock_ms,
    ):
        self.self_node = self_node
        self.directory = directory
        self.server_repo = server_repo
        self.local_state = local_state
        self.role_lookup = role_lookup
        self.offset_lookup = offset_lookup
        self._clock = clock

    def _from_record(self, record: ServerRecord, now: int) -> NodeRuntimeState:
        node = self.directory.get(record.id)
        return NodeRuntimeState(
            id=record.id,
            name=record.name,
            port=record.port,
            address=node.address if node else None,
            role=NodeRole.LEADER if record.is_leader else NodeRole.FOLLOWER,
            is_leader=record.is_leader,
            last_heartbeat_at=record.last_heartbeat,
            clock_offset_ms=0,
            clock=now,
            active_connections=record.connections,
            status=record.status,
        )

    def _live_self(self, now: int) -> NodeRuntimeState:
        role = self.role_lookup()
        offset = self.offset_lookup()
        return NodeRuntimeState(
            id=self.self_node.id,
            name=self.self_node.display_name,
            port=self.self_node.port,
            address=self.self_node.address,
            role=role,
            is_leader=role == NodeRole.LEADER,
            last_heartbeat_at=self.local_state.last_heartbeat_at,
            clock_offset_ms=offset,
            clock=now + offset,
            active_connections=self.local_state.active_connections,
            status=self.local_state.status,
        )

    async def snapshot(self) -> List[NodeRuntimeState]:
        """Every known node, ascending by id, with this node's live values."""
        now = self._clock()
        records = await self.server_repo.list_servers()

        states = []
        has_self = False
        for record in records:
            if record.id == self.self_node.id:
                states.append(self._live_self(now))
                has_self = True
            else:
                states.append(self._from_record(record, now))

        if not has_self:
            states.append(self._live_self(now))
            states.sort(key=lambda state: state.id)
        return states
