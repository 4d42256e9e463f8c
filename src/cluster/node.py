"""
One cluster member process.

ClusterNode wires the election, clock sync, heartbeat, replication and
status components for this node and owns their background tasks.
"""

import asyncio
import logging
from typing import Optional

from core.clock import Clock, system_clock_ms
from core.config import ClusterSettings
from core.constants import ENDPOINT_ELECTION_START
from models.node import Node, NodeRole, NodeStatus
from repository.base import RepositoryException
from repository.booking_repository import BookingRepository
from repository.server_repository import ServerRepository
from .clock_sync import ClockSyncEngine
from .directory import NodeDirectory
from .election import ElectionOutcome, LeaderElectionEngine
from .errors import PeerUnreachable, SyncUnavailable
from .heartbeat import HeartbeatMonitor
from .local_state import LocalNodeState
from .replication import ReplicationDispatcher
from .status import StatusReporter
from .transport import HttpPeerTransport, PeerTransport

logger = logging.getLogger(__name__)


class ClusterNode:
    """
    Coordination layer of a single node.

    Background tasks:
    - heartbeat and leader probe loops (HeartbeatMonitor)
    - clock sync loop, skipped while this node leads
    - one election after the startup delay
    """

    def __init__(
        self,
        settings: ClusterSettings,
        server_repo: ServerRepository,
        booking_repo: BookingRepository,
        transport: Optional[PeerTransport] = None,
        clock: Clock = system_clock_ms,
    ):
        self.settings = settings
        self.server_repo = server_repo
        self.booking_repo = booking_repo
        self.transport = transport or HttpPeerTransport()
        self._clock = clock

        self.self_node: Node = settings.self_node
        self.directory = NodeDirectory(settings.nodes)
        self.local_state = LocalNodeState(clock)

        self.election = LeaderElectionEngine(
            self.self_node,
            self.directory,
            self.transport,
            server_repo,
            self.local_state,
            clock=clock,
            election_timeout=settings.election_timeout,
            leader_update_timeout=settings.leader_update_timeout,
            response_delay=settings.election_response_delay,
        )
        self.clock_sync = ClockSyncEngine(
            self.self_node,
            self.directory,
            self.transport,
            clock=clock,
            timeout=settings.clock_sync_timeout,
            leader_lookup=lambda: self.election.leader_id,
        )
        self.heartbeat = HeartbeatMonitor(
            self.self_node,
            self.directory,
            self.transport,
            server_repo,
            self.local_state,
            is_leader=lambda: self.election.is_leader,
            heartbeat_interval=settings.heartbeat_interval,
            probe_interval=settings.leader_probe_interval,
            probe_timeout=settings.health_probe_timeout,
        )
        self.replication = ReplicationDispatcher(
            self.self_node,
            self.directory,
            self.transport,
            booking_repo,
            timeout=settings.replication_timeout,
            max_concurrency=settings.replication_max_concurrency,
        )
        self.status = StatusReporter(
            self.self_node,
            self.directory,
            server_repo,
            self.local_state,
            role_lookup=lambda: self.election.role,
            offset_lookup=lambda: self.clock_sync.clock_offset_ms,
            clock=clock,
        )

        self.clock_sync_task: Optional[asyncio.Task] = None
        self.startup_election_task: Optional[asyncio.Task] = None

    @property
    def node_id(self) -> int:
        return self.self_node.id

    @property
    def role(self) -> NodeRole:
        return self.election.role

    @property
    def is_leader(self) -> bool:
        return self.election.is_leader

    def local_time(self) -> int:
        return self.clock_sync.local_time()

    async def start(self) -> None:
        """Mark this node active and start every background task."""
        logger.info(f"Starting node {self.node_id} ({self.self_node.display_name})")
        self.local_state.status = NodeStatus.ACTIVE
        await self._store_status(NodeStatus.ACTIVE)

        self.heartbeat.start()
        if self.settings.clock_sync_interval > 0:
            self.clock_sync_task = asyncio.create_task(self._clock_sync_loop())
        if self.settings.election_startup_delay >= 0:
            self.startup_election_task = asyncio.create_task(self._startup_election())

    async def stop(self) -> None:
        """
        Stop background tasks and mark this node inactive.

        The stored row drops its leader flag and connection count before a
        leader hands off by asking the first other node to start an
        election once the hand-off delay has passed.
        """
        logger.info(f"Stopping node {self.node_id}")
        await self.heartbeat.stop()
        for task in [self.clock_sync_task, self.startup_election_task]:
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self.clock_sync_task = None
        self.startup_election_task = None

        self.local_state.status = NodeStatus.INACTIVE
        await self._store_status(NodeStatus.INACTIVE, connections=0, is_leader=False)

        if self.is_leader:
            await self._hand_off_leadership()

    async def trigger_election(self) -> ElectionOutcome:
        """Run one election round on request."""
        return await self.election.initiate_election()

    async def _store_status(
        self,
        status: NodeStatus,
        connections: Optional[int] = None,
        is_leader: Optional[bool] = None,
    ) -> None:
        if connections is None:
            connections = self.local_state.active_connections
        if is_leader is None:
            is_leader = self.is_leader
        try:
            await self.server_repo.update_status(
                self.node_id,
                connections,
                is_leader,
                status,
                self._clock(),
            )
        except RepositoryException as e:
            logger.error(f"Could not store status of node {self.node_id}: {e}")

    async def _hand_off_leadership(self) -> None:
        peers = self.directory.peers_excluding(self.node_id)
        if not peers:
            return
        await asyncio.sleep(self.settings.leader_handoff_delay)
        successor = peers[0]
        try:
            await self.transport.post(
                successor,
                ENDPOINT_ELECTION_START,
                {},
                timeout=self.settings.election_timeout,
            )
            logger.info(f"Asked node {successor.id} to start an election")
        except PeerUnreachable as e:
            logger.warning(f"Leader hand-off to node {successor.id} failed: {e.reason}")

    async def _startup_election(self):
        """Run the first election once peers have had time to come up."""
        try:
            await asyncio.sleep(self.settings.election_startup_delay)
            outcome = await self.election.initiate_election()
            logger.info(f"Startup election on node {self.node_id}: {outcome.value}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Startup election error: {e}")

    async def _clock_sync_loop(self):
        """Synchronize the clock periodically while following."""
        while True:
            try:
                await asyncio.sleep(self.settings.clock_sync_interval)
                if self.is_leader:
                    continue
                await self.clock_sync.synchronize()
            except asyncio.CancelledError:
                break
            except SyncUnavailable as e:
                logger.debug(f"Clock sync skipped: {e}")
            except Exception as e:
                logger.error(f"Clock sync error: {e}")
