"""
Simulated concurrent workload.

Used to show the connection gauge moving under load; every request just
sleeps for a random short time.
"""

import asyncio
import logging
import random
from typing import Any, List

from cluster.local_state import LocalNodeState
from core.constants import MAX_SIMULATED_WORK_SECONDS
from models.booking import ProcessedRequest

logger = logging.getLogger(__name__)


class WorkloadService:
    """Processes batches of requests concurrently on this node."""

    def __init__(
        self,
        node_id: int,
        local_state: LocalNodeState,
        max_work_seconds: float = MAX_SIMULATED_WORK_SECONDS,
    ):
        self.node_id = node_id
        self.local_state = local_state
        self.max_work_seconds = max_work_seconds

    async def _process(self, request_id: int) -> ProcessedRequest:
        await asyncio.sleep(random.uniform(0, self.max_work_seconds))
        return ProcessedRequest(request_id=request_id, processed_by=self.node_id)

    async def process_batch(self, requests: List[Any]) -> List[ProcessedRequest]:
        """
        Process every request of the batch concurrently.

        The connection gauge counts the whole batch until the last request
        finishes. There is no admission control.
        """
        logger.info(f"Handling {len(requests)} concurrent requests")
        async with self.local_state.track_connections(len(requests)):
            return list(
                await asyncio.gather(*(self._process(index) for index in range(len(requests))))
            )
