"""
Heartbeats and leader-side liveness probing.

Every node records its own heartbeat on a short interval. The leader also
probes each peer's health endpoint; a failed probe is only logged; it does
not start an election.
"""

import asyncio
import logging
from typing import Callable, Dict, Optional

from core.constants import (
    ENDPOINT_HEALTH,
    HEALTH_PROBE_TIMEOUT_SECONDS,
    HEARTBEAT_INTERVAL_SECONDS,
    LEADER_PROBE_INTERVAL_SECONDS,
)
from models.node import Node
from repository.base import RepositoryException
from repository.server_repository import ServerRepository
from .directory import NodeDirectory
from .errors import PeerUnreachable
from .local_state import LocalNodeState
from .transport import PeerTransport

logger = logging.getLogger(__name__)


class HeartbeatMonitor:
    """
    Periodic heartbeat writer and leader-side peer prober.

    Design choices:
    - Loops are independent tasks and never block request handling
    - Store failures during a beat are logged and the beat is kept locally
    - Probing runs only while ``is_leader()`` is true
    """

    def __init__(
        self,
        self_node: Node,
        directory: NodeDirectory,
        transport: PeerTransport,
        server_repo: ServerRepository,
        local_state: LocalNodeState,
        is_leader: Callable[[], bool],
        heartbeat_interval: float = HEARTBEAT_INTERVAL_SECONDS,
        probe_interval: float = LEADER_PROBE_INTERVAL_SECONDS,
        probe_timeout: float = HEALTH_PROBE_TIMEOUT_SECONDS,
    ):
        self.self_node = self_node
        self.directory = directory
        self.transport = transport
        self.server_repo = server_repo
        self.local_state = local_state
        self.is_leader = is_leader
        self.heartbeat_interval = heartbeat_interval
        self.probe_interval = probe_interval
        self.probe_timeout = probe_timeout

        self.heartbeat_task: Optional[asyncio.Task] = None
        self.probe_task: Optional[asyncio.Task] = None

    async def beat(self) -> int:
        """
        Record a heartbeat locally and in the store.

        Returns:
            Heartbeat timestamp in epoch milliseconds
        """
        timestamp = self.local_state.record_heartbeat()
        try:
            await self.server_repo.update_heartbeat(self.self_node.id, timestamp)
        except RepositoryException as e:
            logger.warning(f"Heartbeat of node {self.self_node.id} not stored: {e}")
        return timestamp

    async def probe_peers(self) -> Dict[int, bool]:
        """
        Check every peer's health endpoint.

        Returns:
            Map of peer id to whether it answered; empty unless this node leads
        """
        if not self.is_leader():
            return {}

        results = {}
        for peer in self.directory.peers_excluding(self.self_node.id):
            try:
                await self.transport.get(peer, ENDPOINT_HEALTH, timeout=self.probe_timeout)
                results[peer.id] = True
            except PeerUnreachable as e:
                logger.warning(f"Node {peer.id} appears down: {e.reason}")
                results[peer.id] = False
        return results

    def start(self) -> None:
        """Start the heartbeat and probe loops."""
        self.heartbeat_task = asyncio.create_task(self._heartbeat_loop())
        self.probe_task = asyncio.create_task(self._probe_loop())

    async def stop(self) -> None:
        """Cancel both loops and wait for them to finish."""
        for task in [self.heartbeat_task, self.probe_task]:
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self.heartbeat_task = None
        self.probe_task = None

    async def _heartbeat_loop(self):
        """Record heartbeats periodically."""
        while True:
            try:
                await asyncio.sleep(self.heartbeat_interval)
                await self.beat()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Heartbeat error: {e}")

    async def _probe_loop(self):
        """Probe peers periodically while leading."""
        while True:
            try:
                await asyncio.sleep(self.probe_interval)
                await self.probe_peers()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Peer probe error: {e}")
