"""
Cluster membership and node state models.

A Node is a static cluster member; NodeRuntimeState is the mutable view of
one node as reported by the status endpoint.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class NodeRole(str, Enum):
    """Role a node believes it holds."""

    LEADER = "leader"
    FOLLOWER = "follower"


class ElectionState(str, Enum):
    """Election engine state, including the transient candidate phase."""

    FOLLOWER = "follower"
    CANDIDATE = "candidate"
    LEADER = "leader"


class NodeStatus(str, Enum):
    """Whether a node considers itself serving."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class Node(BaseModel):
    """Static cluster member, immutable once the cluster is configured."""

    id: int = Field(description="Unique node id, higher ids win elections", ge=1)
    address: str = Field(description="Network address as host:port")
    display_name: str = Field(description="Human readable node name")

    class Config:
        """Pydantic configuration."""

        frozen = True

    @property
    def host(self) -> str:
        """Host part of the address."""
        return self.address.rsplit(":", 1)[0]

    @property
    def port(self) -> int:
        """Port part of the address."""
        return int(self.address.rsplit(":", 1)[1])

    @property
    def base_url(self) -> str:
        """HTTP base URL of the node."""
        return f"http://{self.address}"


class ServerRecord(BaseModel):
    """Persisted per-node row in the shared store."""

    id: int = Field(ge=1)
    name: str
    port: int
    connections: int = Field(default=0, ge=0)
    is_leader: bool = False
    last_heartbeat: int = Field(default=0, description="Epoch milliseconds")
    status: NodeStatus = NodeStatus.ACTIVE

    @classmethod
    def for_node(cls, node: Node, last_heartbeat: int = 0) -> "ServerRecord":
        """Create the initial store row for a configured node."""
        return cls(
            id=node.id,
            name=node.display_name,
            port=node.port,
            last_heartbeat=last_heartbeat,
        )


class NodeRuntimeState(BaseModel):
    """Snapshot of one node's role, heartbeat and clock offset."""

    id: int
    name: str
    port: int
    address: Optional[str] = None
    role: NodeRole = NodeRole.FOLLOWER
    is_leader: bool = Field(default=False, alias="isLeader")
    last_heartbeat_at: int = Field(default=0, alias="lastHeartbeat")
    clock_offset_ms: int = Field(default=0, alias="clockOffset")
    clock: int = Field(default=0, description="Reporter's local time plus offset")
    active_connections: int = Field(default=0, alias="connections", ge=0)
    status: NodeStatus = NodeStatus.ACTIVE

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
