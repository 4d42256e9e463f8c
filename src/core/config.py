"""
Node configuration.

Settings come from environment variables with defaults from
``core.constants``; cluster membership is static and fixed at startup.
"""

import os
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field, model_validator

from core.constants import (
    CLOCK_SYNC_INTERVAL_SECONDS,
    CLOCK_SYNC_TIMEOUT_SECONDS,
    DEFAULT_CLUSTER_NODES,
    DEFAULT_DATABASE_PATH,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_SERVER_ID,
    DEFAULT_STORE_BACKEND,
    ELECTION_RESPONSE_DELAY_SECONDS,
    ELECTION_STARTUP_DELAY_SECONDS,
    ELECTION_TIMEOUT_SECONDS,
    ENV_CLOCK_SYNC_INTERVAL,
    ENV_CLUSTER_NODES,
    ENV_DATABASE_PATH,
    ENV_ELECTION_STARTUP_DELAY,
    ENV_HOST,
    ENV_LOG_LEVEL,
    ENV_PORT,
    ENV_SERVER_ID,
    ENV_STORE_BACKEND,
    HEALTH_PROBE_TIMEOUT_SECONDS,
    HEARTBEAT_INTERVAL_SECONDS,
    LEADER_HANDOFF_DELAY_SECONDS,
    LEADER_PROBE_INTERVAL_SECONDS,
    LEADER_UPDATE_TIMEOUT_SECONDS,
    REPLICATION_MAX_CONCURRENCY,
    REPLICATION_TIMEOUT_SECONDS,
    STORE_BACKEND_MEMORY,
    STORE_BACKEND_SQLITE,
)
from models.node import Node


def default_cluster_nodes() -> List[Node]:
    """The three-node local cluster."""
    return [
        Node(id=node_id, display_name=name, address=address)
        for node_id, name, address in DEFAULT_CLUSTER_NODES
    ]


def parse_cluster_nodes(spec: str) -> List[Node]:
    """
    Parse a membership string.

    Entries are comma separated, each ``<id>=<name>@<host:port>`` or
    ``<id>@<host:port>`` (the name then defaults to ``Server-<id>``).

    Raises:
        ValueError: If an entry is malformed
    """
    nodes = []
    for entry in spec.split(","):
        entry = entry.strip()
        if not entry:
            continue
        if "@" not in entry:
            raise ValueError(f"Invalid cluster node entry: {entry!r}")
        identity, address = entry.split("@", 1)
        if "=" in identity:
            node_id, name = identity.split("=", 1)
        else:
            node_id, name = identity, f"Server-{identity}"
        if ":" not in address:
            raise ValueError(f"Cluster node address must be host:port: {address!r}")
        nodes.append(Node(id=int(node_id), display_name=name.strip(), address=address.strip()))
    return nodes


class ClusterSettings(BaseModel):
    """Everything one node process needs to join the cluster."""

    server_id: int = Field(default=DEFAULT_SERVER_ID, ge=1)
    host: str = DEFAULT_HOST
    port: Optional[int] = Field(None, description="Defaults to this node's configured port")
    nodes: List[Node] = Field(default_factory=default_cluster_nodes)

    store_backend: str = DEFAULT_STORE_BACKEND
    database_path: str = DEFAULT_DATABASE_PATH
    log_level: str = DEFAULT_LOG_LEVEL

    heartbeat_interval: float = Field(HEARTBEAT_INTERVAL_SECONDS, gt=0)
    leader_probe_interval: float = Field(LEADER_PROBE_INTERVAL_SECONDS, gt=0)
    clock_sync_interval: float = CLOCK_SYNC_INTERVAL_SECONDS
    election_startup_delay: float = ELECTION_STARTUP_DELAY_SECONDS
    election_response_delay: float = Field(ELECTION_RESPONSE_DELAY_SECONDS, ge=0)
    leader_handoff_delay: float = Field(LEADER_HANDOFF_DELAY_SECONDS, ge=0)

    election_timeout: float = Field(ELECTION_TIMEOUT_SECONDS, gt=0)
    leader_update_timeout: float = Field(LEADER_UPDATE_TIMEOUT_SECONDS, gt=0)
    clock_sync_timeout: float = Field(CLOCK_SYNC_TIMEOUT_SECONDS, gt=0)
    health_probe_timeout: float = Field(HEALTH_PROBE_TIMEOUT_SECONDS, gt=0)
    replication_timeout: float = Field(REPLICATION_TIMEOUT_SECONDS, gt=0)
    replication_max_concurrency: int = Field(REPLICATION_MAX_CONCURRENCY, ge=1)

    @model_validator(mode="after")
    def check_membership(self) -> "ClusterSettings":
        ids = [node.id for node in self.nodes]
        if len(ids) != len(set(ids)):
            raise ValueError("Cluster node ids must be unique")
        if self.server_id not in ids:
            raise ValueError(f"Server id {self.server_id} is not a configured cluster node")
        if self.store_backend not in (STORE_BACKEND_SQLITE, STORE_BACKEND_MEMORY):
            raise ValueError(f"Unknown store backend: {self.store_backend}")
        return self

    @property
    def self_node(self) -> Node:
        return next(node for node in self.nodes if node.id == self.server_id)

    @property
    def listen_port(self) -> int:
        return self.port if self.port is not None else self.self_node.port

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] = None) -> "ClusterSettings":
        """Build settings from environment variables."""
        environ = os.environ if environ is None else environ
        values = {}
        if ENV_SERVER_ID in environ:
            values["server_id"] = int(environ[ENV_SERVER_ID])
        if ENV_HOST in environ:
            values["host"] = environ[ENV_HOST]
        if ENV_PORT in environ:
            values["port"] = int(environ[ENV_PORT])
        if environ.get(ENV_CLUSTER_NODES):
            values["nodes"] = parse_cluster_nodes(environ[ENV_CLUSTER_NODES])
        if ENV_STORE_BACKEND in environ:
            values["store_backend"] = environ[ENV_STORE_BACKEND].lower()
        if ENV_DATABASE_PATH in environ:
            values["database_path"] = environ[ENV_DATABASE_PATH]
        if ENV_LOG_LEVEL in environ:
            values["log_level"] = environ[ENV_LOG_LEVEL].lower()
        if ENV_ELECTION_STARTUP_DELAY in environ:
            values["election_startup_delay"] = float(environ[ENV_ELECTION_STARTUP_DELAY])
        if ENV_CLOCK_SYNC_INTERVAL in environ:
            values["clock_sync_interval"] = float(environ[ENV_CLOCK_SYNC_INTERVAL])
        return cls(**values)
