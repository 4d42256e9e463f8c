"""
Best-effort propagation of committed writes to peer nodes.

Consistency model is eventual: the origin commits locally, then fans the
event out to every peer with a per-call timeout. Failed deliveries are
logged and dropped; there is no retry queue, no ordering and no dedup.
"""

import asyncio
import logging
from typing import List, Union

from pydantic import BaseModel, Field

from core.constants import REPLICATION_MAX_CONCURRENCY, REPLICATION_TIMEOUT_SECONDS
from models.node import Node
from models.replication import BookingCreated, SlotMarkedUnavailable, to_wire_payload
from repository.booking_repository import BookingRepository
from .directory import NodeDirectory
from .errors import PeerUnreachable
from .transport import PeerTransport

logger = logging.getLogger(__name__)

Event = Union[BookingCreated, SlotMarkedUnavailable]


class ReplicationReport(BaseModel):
    """Which peers received one event."""

    delivered: List[int] = Field(default_factory=list)
    failed: List[int] = Field(default_factory=list)

    @property
    def partial_failure(self) -> bool:
        """True when at least one peer missed the event."""
        return bool(self.failed)


class ReplicationDispatcher:
    """Fans replication events out to peers and applies inbound ones."""

    def __init__(
        self,
        self_node: Node,
        directory: NodeDirectory,
        transport: PeerTransport,
        booking_repo: BookingRepository,
        timeout: float = REPLICATION_TIMEOUT_SECONDS,
        max_concurrency: int = REPLICATION_MAX_CONCURRENCY,
    ):
        self.self_node = self_node
        self.directory = directory
        self.transport = transport
        self.booking_repo = booking_repo
        self.timeout = timeout
        self.max_concurrency = max_concurrency

    async def replicate(self, event: Event) -> ReplicationReport:
        """
        Deliver ``event`` to every peer except this node.

        Never raises; per-peer failures end up in the report.
        """
        peers = self.directory.peers_excluding(self.self_node.id)
        payload = to_wire_payload(event)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def deliver(peer: Node) -> bool:
            async with semaphore:
                try:
                    await self.transport.post(peer, event.endpoint, payload, timeout=self.timeout)
                    logger.debug(f"Replicated {event.event_type} to node {peer.id}")
                    return True
                except PeerUnreachable as e:
                    logger.warning(
                        f"Failed to replicate {event.event_type} to node {peer.id}: {e.reason}"
                    )
                    return False

        results = await asyncio.gather(*(deliver(peer) for peer in peers))

        report = ReplicationReport()
        for peer, delivered in zip(peers, results):
            (report.delivered if delivered else report.failed).append(peer.id)

        if report.partial_failure:
            logger.warning(
                f"Partial replication of {event.event_type}: "
                f"delivered to {report.delivered}, missed {report.failed}"
            )
        return report

    async def apply_replicated_event(self, event: Event) -> None:
        """Apply an event received from another node to the local store."""
        if isinstance(event, BookingCreated):
            await self.booking_repo.create_booking(
                doctor_id=event.doctor_id,
                patient_name=event.patient_name,
                slot_time=event.slot_time,
                confirmation_id=event.confirmation_id,
                booking_timestamp=event.booking_timestamp,
                server_id=event.origin_server_id,
            )
            await self.booking_repo.book_slot(event.doctor_id, event.slot_time)
            logger.info(
                f"Applied booking {event.confirmation_id} from node {event.origin_server_id}"
            )
        else:
            await self.booking_repo.book_slot(event.doctor_id, event.slot_time)
            logger.info(f"Applied slot update for doctor {event.doctor_id} at {event.slot_time}")
