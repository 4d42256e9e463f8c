"""
Failure types of the coordination layer.

None of these is fatal: every caller recovers by proceeding with stale or
partial state.
"""


class ClusterError(Exception):
    """Base exception for coordination failures."""
    pass


class PeerUnreachable(ClusterError):
    """A peer call timed out, was refused or answered with an error status."""

    def __init__(self, node_id: int, reason: str):
        self.node_id = node_id
        self.reason = reason
        super().__init__(f"Node {node_id} unreachable: {reason}")


class SyncUnavailable(ClusterError):
    """No reference node answered a clock sync request."""

    def __init__(self, attempted_node_ids):
        self.attempted_node_ids = list(attempted_node_ids)
        super().__init__(
            f"No reference node reachable for clock sync (tried {self.attempted_node_ids})"
        )
