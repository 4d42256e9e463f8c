"""
Leader election using the Bully algorithm.

Bully algorithm:
1. A node starting an election sends ELECTION to every node with a higher id
2. A higher node that is alive answers "alive" and starts its own election
3. If any higher node answers "alive", the initiator stops and waits
4. If no higher node answers, the initiator declares itself leader
5. The new leader announces itself to every other node

There is no term or epoch number. Two racing elections can each end in a
``become_leader`` call before either announcement lands, leaving two nodes
that believe they lead until the next election or leader update.
"""

import asyncio
import logging
from enum import Enum
from typing import List, Optional

from pydantic import ValidationError

from core.clock import Clock, system_clock_ms
from core.constants import (
    ELECTION_RESPONSE_DELAY_SECONDS,
    ELECTION_TIMEOUT_SECONDS,
    ENDPOINT_ELECTION,
    ENDPOINT_LEADER_UPDATE,
    LEADER_UPDATE_TIMEOUT_SECONDS,
    MESSAGE_ELECTION_ACKNOWLEDGED,
    MESSAGE_ELECTION_ALIVE,
)
from models.messages import (
    ElectionMessage,
    ElectionReply,
    ElectionResponse,
    LeaderUpdate,
)
from models.node import ElectionState, Node, NodeRole, NodeStatus
from repository.base import RepositoryException
from repository.server_repository import ServerRepository
from .directory import NodeDirectory
from .errors import PeerUnreachable
from .local_state import LocalNodeState
from .transport import PeerTransport

logger = logging.getLogger(__name__)


class ElectionOutcome(str, Enum):
    """How one election round ended on the initiating node."""

    ELECTED = "elected"  # no higher-id node is configured
    ELECTED_BY_DEFAULT = "elected_by_default"  # no higher-id node contested
    DEFERRED = "deferred"  # a higher-id node is alive and takes over
    SKIPPED = "skipped"  # a round was already running on this node


class LeaderElectionEngine:
    """
    Owns this node's role and its belief about who leads.

    The role changes only in ``become_leader`` and
    ``on_leader_update_received``; everything else reads it through the
    ``role``, ``leader_id`` and ``state`` properties.
    """

    def __init__(
        self,
        self_node: Node,
        directory: NodeDirectory,
        transport: PeerTransport,
        server_repo: ServerRepository,
        local_state: LocalNodeState,
        clock: Clock = system_clock_ms,
        election_timeout: float = ELECTION_TIMEOUT_SECONDS,
        leader_update_timeout: float = LEADER_UPDATE_TIMEOUT_SECONDS,
        response_delay: float = ELECTION_RESPONSE_DELAY_SECONDS,
    ):
        self.self_node = self_node
        self.directory = directory
        self.transport = transport
        self.server_repo = server_repo
        self.local_state = local_state
        self._clock = clock
        self.election_timeout = election_timeout
        self.leader_update_timeout = leader_update_timeout
        self.response_delay = response_delay

        self._role = NodeRole.FOLLOWER
        self._leader_id: Optional[int] = None
        self._campaigning = False
        self._scheduled_election: Optional[asyncio.Task] = None

    @property
    def node_id(self) -> int:
        return self.self_node.id

    @property
    def role(self) -> NodeRole:
        return self._role

    @property
    def leader_id(self) -> Optional[int]:
        return self._leader_id

    @property
    def is_leader(self) -> bool:
        return self._role == NodeRole.LEADER

    @property
    def state(self) -> ElectionState:
        """Role plus the transient candidate phase of a running round."""
        if self._campaigning:
            return ElectionState.CANDIDATE
        return ElectionState(self._role.value)

    @property
    def scheduled_election(self) -> Optional[asyncio.Task]:
        """Election started in response to a lower candidate, if any."""
        return self._scheduled_election

    async def initiate_election(self) -> ElectionOutcome:
        """
        Run one Bully round from this node.

        Higher-id peers are contacted one at a time, lowest first. A failed
        contact counts as "peer is down" and is never retried in the round.
        """
        if self._campaigning:
            logger.info(f"Node {self.node_id} already running an election, skipping")
            return ElectionOutcome.SKIPPED

        self._campaigning = True
        try:
            higher_peers = self.directory.higher_id_peers(self.node_id)
            logger.info(
                f"Node {self.node_id} initiating election "
                f"(higher peers: {[peer.id for peer in higher_peers]})"
            )

            if not higher_peers:
                await self.become_leader()
                return ElectionOutcome.ELECTED

            message = ElectionMessage(candidate_id=self.node_id, sent_at=self._clock())
            for peer in higher_peers:
                response = await self._send_election_message(peer, message)
                if response is not None and response.is_alive:
                    logger.info(f"Node {peer.id} is alive, election aborted on node {self.node_id}")
                    return ElectionOutcome.DEFERRED

            logger.info(f"No higher node contested node {self.node_id}'s election")
            await self.become_leader()
            return ElectionOutcome.ELECTED_BY_DEFAULT
        finally:
            self._campaigning = False

    async def _send_election_message(
        self, peer: Node, message: ElectionMessage
    ) -> Optional[ElectionResponse]:
        try:
            data = await self.transport.post(
                peer,
                ENDPOINT_ELECTION,
                message.model_dump(by_alias=True),
                timeout=self.election_timeout,
            )
            return ElectionResponse.model_validate(data)
        except PeerUnreachable as e:
            logger.info(f"Node {peer.id} is down: {e.reason}")
        except ValidationError as e:
            logger.warning(f"Node {peer.id} sent an unreadable election reply: {e}")
        return None

    async def on_election_message_received(self, candidate_id: int) -> ElectionResponse:
        """
        Answer an election message from ``candidate_id``.

        A lower candidate is told this node is alive, and this node starts
        its own election after ``response_delay`` seconds.
        """
        if candidate_id < self.node_id:
            logger.info(
                f"Node {self.node_id} outranks candidate {candidate_id}, answering alive"
            )
            self._schedule_election()
            return ElectionResponse(
                success=True, reply=ElectionReply.ALIVE, message=MESSAGE_ELECTION_ALIVE
            )

        logger.info(f"Node {self.node_id} defers to candidate {candidate_id}")
        return ElectionResponse(
            success=False,
            reply=ElectionReply.ACKNOWLEDGE,
            message=MESSAGE_ELECTION_ACKNOWLEDGED,
        )

    def _schedule_election(self) -> None:
        if self._scheduled_election is not None and not self._scheduled_election.done():
            return
        self._scheduled_election = asyncio.create_task(self._delayed_election())

    async def _delayed_election(self) -> Optional[ElectionOutcome]:
        await asyncio.sleep(self.response_delay)
        try:
            return await self.initiate_election()
        except Exception as e:
            logger.error(f"Election on node {self.node_id} failed: {e}")
            return None

    async def become_leader(self) -> None:
        """Take the leader role, record it in the store and tell every peer."""
        logger.info(f"Node {self.node_id} becoming leader")
        self._role = NodeRole.LEADER
        self._leader_id = self.node_id

        try:
            await self.server_repo.set_leader(self.node_id)
            await self.server_repo.update_status(
                self.node_id,
                self.local_state.active_connections,
                True,
                NodeStatus.ACTIVE,
                self._clock(),
            )
        except RepositoryException as e:
            logger.error(f"Could not persist leadership of node {self.node_id}: {e}")

        await self.notify_peers_of_new_leader()

    async def notify_peers_of_new_leader(self) -> List[int]:
        """
        Best-effort leader announcement.

        Returns:
            Ids of the peers that acknowledged the update
        """
        update = LeaderUpdate(new_leader_id=self.node_id, sent_at=self._clock())
        notified = []
        for peer in self.directory.peers_excluding(self.node_id):
            try:
                await self.transport.post(
                    peer,
                    ENDPOINT_LEADER_UPDATE,
                    update.model_dump(by_alias=True),
                    timeout=self.leader_update_timeout,
                )
                notified.append(peer.id)
            except PeerUnreachable as e:
                logger.info(f"Failed to notify node {peer.id} of new leader: {e.reason}")
        return notified

    async def on_leader_update_received(self, new_leader_id: int) -> None:
        """Adopt ``new_leader_id`` as leader and record it in the store."""
        logger.info(f"Node {self.node_id} learned that node {new_leader_id} leads")
        self._role = NodeRole.LEADER if new_leader_id == self.node_id else NodeRole.FOLLOWER
        self._leader_id = new_leader_id
        await self.server_repo.set_leader(new_leader_id)
