"""
Clock synchronization using Cristian's algorithm.

The client records its send time t0, asks a reference node for its time, and
records the receive time t1. Assuming the reply took half the round trip,
the reference clock at t1 is ``serverTime + (t1 - t0) / 2``.

This is a point estimate: no smoothing, no outlier rejection and no schedule
of its own. Callers decide the cadence.
"""

import logging
from typing import Callable, List, Optional

from core.clock import Clock, system_clock_ms
from core.constants import CLOCK_SYNC_TIMEOUT_SECONDS, ENDPOINT_CLOCK_SYNC
from models.messages import ClockSyncExchange
from models.node import Node
from .directory import NodeDirectory
from .errors import PeerUnreachable, SyncUnavailable
from .transport import PeerTransport

logger = logging.getLogger(__name__)


def estimate(client_send_time: int, server_time: int, received_at: int) -> ClockSyncExchange:
    """
    Cristian's estimate for one exchange.

    Args:
        client_send_time: Client clock when the request left (t0)
        server_time: Reference clock when it handled the request
        received_at: Client clock when the reply arrived (t1)
    """
    round_trip_time = received_at - client_send_time
    return ClockSyncExchange(
        client_send_time=client_send_time,
        server_time=server_time,
        round_trip_time=round_trip_time,
        adjusted_time=server_time + round_trip_time / 2,
    )


class ClockSyncEngine:
    """
    Keeps this node's clock offset and answers peers' sync requests.

    ``clock_offset_ms`` estimates ``true time - local time``; the node's
    corrected time is ``local_time()``.
    """

    def __init__(
        self,
        self_node: Node,
        directory: NodeDirectory,
        transport: PeerTransport,
        clock: Clock = system_clock_ms,
        timeout: float = CLOCK_SYNC_TIMEOUT_SECONDS,
        leader_lookup: Callable[[], Optional[int]] = lambda: None,
    ):
        """
        Args:
            self_node: This node
            directory: Cluster membership, used to pick reference nodes
            transport: Peer call primitive
            clock: Local clock in epoch milliseconds
            timeout: Per-request timeout in seconds
            leader_lookup: Returns the currently believed leader id, tried first
        """
        self.self_node = self_node
        self.directory = directory
        self.transport = transport
        self._clock = clock
        self.timeout = timeout
        self.leader_lookup = leader_lookup
        self.clock_offset_ms = 0
        self.last_exchange: Optional[ClockSyncExchange] = None
        self.last_reference_id: Optional[int] = None

    def local_time(self) -> int:
        """Local clock corrected by the current offset."""
        return self._clock() + self.clock_offset_ms

    def perform_sync(self, client_send_time: int) -> ClockSyncExchange:
        """
        Answer a sync request as the reference node.

        ``serverTime`` is captured when the request is handled. The responder
        cannot see the real round trip, so ``rtt`` is its own estimate
        (server time minus the client's send time).
        """
        server_time = self.local_time()
        exchange = estimate(client_send_time, server_time, received_at=server_time)
        exchange.clock_offset_ms = self.clock_offset_ms
        logger.debug(
            f"Clock sync answered: t0={client_send_time} server={server_time} "
            f"rtt={exchange.round_trip_time}ms"
        )
        return exchange

    def reference_candidates(self) -> List[Node]:
        """Believed leader first, then the other peers in directory order."""
        peers = self.directory.peers_excluding(self.self_node.id)
        leader_id = self.leader_lookup()
        leader = [peer for peer in peers if peer.id == leader_id]
        return leader + [peer for peer in peers if peer.id != leader_id]

    async def synchronize(self) -> ClockSyncExchange:
        """
        Sync against the first reference node that answers.

        Returns:
            The exchange used, with the new offset filled in

        Raises:
            SyncUnavailable: If no reference node answered; the offset is kept
        """
        attempted = []
        for reference in self.reference_candidates():
            attempted.append(reference.id)
            exchange = await self._exchange_with(reference)
            if exchange is None:
                continue

            self.clock_offset_ms = round(exchange.adjusted_time - self._clock())
            exchange.clock_offset_ms = self.clock_offset_ms
            self.last_exchange = exchange
            self.last_reference_id = reference.id
            logger.info(
                f"Clock synced with node {reference.id}: rtt={exchange.round_trip_time}ms "
                f"offset={self.clock_offset_ms}ms"
            )
            return exchange

        logger.warning(f"Clock sync failed, keeping offset {self.clock_offset_ms}ms")
        raise SyncUnavailable(attempted)

    async def _exchange_with(self, reference: Node) -> Optional[ClockSyncExchange]:
        client_send_time = self._clock()
        try:
            data = await self.transport.get(
                reference,
                ENDPOINT_CLOCK_SYNC,
                timeout=self.timeout,
                params={"clientTime": client_send_time},
            )
            server_time = int(data["serverTime"])
        except PeerUnreachable as e:
            logger.info(f"Clock reference node {reference.id} unreachable: {e.reason}")
            return None
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Clock reference node {reference.id} sent a bad reply: {e}")
            return None

        return estimate(client_send_time, server_time, received_at=self._clock())
