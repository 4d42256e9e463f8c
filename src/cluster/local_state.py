"""
Live counters owned by the local node.
"""

from contextlib import asynccontextmanager

from core.clock import Clock, system_clock_ms
from models.node import NodeStatus


class LocalNodeState:
    """
    In-memory counters of this node that the store only sees periodically.

    Readers get whatever value is current; no lock spans the fields.
    """

    def __init__(self, clock: Clock = system_clock_ms):
        self._clock = clock
        self.active_connections = 0
        self.last_heartbeat_at = clock()
        self.status = NodeStatus.ACTIVE

    def record_heartbeat(self) -> int:
        self.last_heartbeat_at = self._clock()
        return self.last_heartbeat_at

    @asynccontextmanager
    async def track_connections(self, count: int = 1):
        """Count ``count`` connections as active for the duration of the block."""
        self.active_connections += count
        try:
            yield self
        finally:
            self.active_connections -= count
