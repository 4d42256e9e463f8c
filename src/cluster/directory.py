"""
Static cluster membership.
"""

from typing import Iterable, List, Optional

from models.node import Node


class NodeDirectory:
    """
    Ordered, immutable list of cluster members.

    Membership is configuration, not discovery: there are no mutation
    operations and no error conditions.
    """

    def __init__(self, nodes: Iterable[Node]):
        self._nodes = tuple(sorted(nodes, key=lambda node: node.id))

    def all_peers(self) -> List[Node]:
        """Every configured node, ascending by id."""
        return list(self._nodes)

    def peers_excluding(self, self_id: int) -> List[Node]:
        """Every node except ``self_id``."""
        return [node for node in self._nodes if node.id != self_id]

    def higher_id_peers(self, self_id: int) -> List[Node]:
        """Nodes that outrank ``self_id``, ascending by id."""
        return [node for node in self._nodes if node.id > self_id]

    def get(self, node_id: int) -> Optional[Node]:
        return next((node for node in self._nodes if node.id == node_id), None)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self):
        return iter(self._nodes)
