"""
Shared fixtures for cluster tests.

Peer calls are routed in-process: a LoopbackTransport hands each request to
the target node's real FastAPI app through httpx's ASGI transport, so the
routers, models and engines are exercised exactly as over the network.
Application lifespans are not run; tests drive elections and syncs directly.
"""

import asyncio
import os
import sys
from typing import Any, Dict, Iterable, Optional

import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from cluster.errors import PeerUnreachable
from cluster.node import ClusterNode
from cluster.transport import PeerTransport
from core.config import ClusterSettings, default_cluster_nodes
from core.constants import API_PREFIX, STORE_BACKEND_MEMORY
from main import build_node, create_app
from models.node import Node


class FakeClock:
    """Manually advanced clock in epoch milliseconds."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, milliseconds: int) -> None:
        self.now += milliseconds


class LoopbackTransport(PeerTransport):
    """PeerTransport delivering requests to in-process FastAPI apps."""

    def __init__(self):
        self.apps: Dict[int, Any] = {}
        self.unreachable = set()
        self.calls = []

    def register(self, node_id: int, app) -> None:
        self.apps[node_id] = app

    async def _request(self, method: str, node: Node, path: str, timeout: float, **kwargs) -> Dict[str, Any]:
        self.calls.append((node.id, method, path))
        if node.id in self.unreachable or node.id not in self.apps:
            raise PeerUnreachable(node.id, "connection refused")

        transport = httpx.ASGITransport(app=self.apps[node.id])
        async with httpx.AsyncClient(transport=transport, base_url=node.base_url) as client:
            try:
                response = await asyncio.wait_for(
                    client.request(method, f"{API_PREFIX}{path}", **kwargs), timeout
                )
            except asyncio.TimeoutError:
                raise PeerUnreachable(node.id, f"timed out after {timeout}s")

        if response.status_code >= 400:
            raise PeerUnreachable(node.id, f"HTTP {response.status_code}")
        return response.json()

    async def post(self, node: Node, path: str, payload: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        return await self._request("POST", node, path, timeout, json=payload)

    async def get(
        self,
        node: Node,
        path: str,
        timeout: float,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        return await self._request("GET", node, path, timeout, params=params)

    def calls_to(self, node_id: int, path: str):
        return [call for call in self.calls if call[0] == node_id and call[2] == path]


def make_settings(server_id: int, **overrides) -> ClusterSettings:
    """Test settings: in-memory store, no startup election, no delays."""
    values = dict(
        server_id=server_id,
        store_backend=STORE_BACKEND_MEMORY,
        election_startup_delay=-1,
        election_response_delay=0,
        leader_handoff_delay=0,
        clock_sync_interval=0,
    )
    values.update(overrides)
    return ClusterSettings(**values)


class LocalCluster:
    """A set of nodes wired together through one LoopbackTransport."""

    def __init__(self, node_ids: Iterable[int] = (1, 2, 3), down: Iterable[int] = (), clock=None, **overrides):
        self.transport = LoopbackTransport()
        self.nodes: Dict[int, ClusterNode] = {}
        self.apps = {}
        node_ids = tuple(node_ids)
        if "nodes" not in overrides:
            overrides["nodes"] = [node for node in default_cluster_nodes() if node.id in node_ids]
        for node_id in node_ids:
            kwargs = {"clock": clock} if clock is not None else {}
            node = build_node(make_settings(node_id, **overrides), transport=self.transport, **kwargs)
            app = create_app(node)
            self.nodes[node_id] = node
            self.apps[node_id] = app
            self.transport.register(node_id, app)
        self.transport.unreachable.update(down)

    def __getitem__(self, node_id: int) -> ClusterNode:
        return self.nodes[node_id]

    def leaders(self):
        return [node_id for node_id, node in self.nodes.items() if node.is_leader]

    async def settle(self) -> None:
        """Wait until every election scheduled in response to a candidate has finished."""
        while True:
            pending = [
                node.election.scheduled_election
                for node in self.nodes.values()
                if node.election.scheduled_election is not None
                and not node.election.scheduled_election.done()
            ]
            if not pending:
                return
            await asyncio.gather(*pending)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def cluster_factory():
    """Build a LocalCluster; ``down`` lists node ids that refuse connections."""
    return LocalCluster
