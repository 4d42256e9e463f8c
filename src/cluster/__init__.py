"""
Cluster coordination for the hospital booking servers.

Provides Bully leader election, Cristian clock synchronization, heartbeats
and best-effort replication between a fixed set of nodes.
"""

from .clock_sync import ClockSyncEngine, estimate
from .directory import NodeDirectory
from .election import ElectionOutcome, LeaderElectionEngine
from .errors import ClusterError, PeerUnreachable, SyncUnavailable
from .heartbeat import HeartbeatMonitor
from .local_state import LocalNodeState
from .node import ClusterNode
from .replication import ReplicationDispatcher, ReplicationReport
from .status import StatusReporter
from .transport import HttpPeerTransport, PeerTransport

__all__ = [
    "ClockSyncEngine",
    "estimate",
    "NodeDirectory",
    "ElectionOutcome",
    "LeaderElectionEngine",
    "ClusterError",
    "PeerUnreachable",
    "SyncUnavailable",
    "HeartbeatMonitor",
    "LocalNodeState",
    "ClusterNode",
    "ReplicationDispatcher",
    "ReplicationReport",
    "StatusReporter",
    "HttpPeerTransport",
    "PeerTransport",
]
