"""Target nodes placed on the venue map."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple


class NodeCategory(Enum):
    """Kinds of point of interest a node can represent."""
    VENDOR = "vendor"
    ENTRY_EXIT = "entry-exit"
    BIN = "bin"

    @property
    def is_spawn_point(self) -> bool:
        return self is NodeCategory.ENTRY_EXIT

    @property
    def is_target(self) -> bool:
        """Entry-exits and bins are destinations; vendors only shape the static field."""
        return self in (NodeCategory.ENTRY_EXIT, NodeCategory.BIN)

    @classmethod
    def parse(cls, value: str) -> "NodeCategory":
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(c.value for c in cls)
            raise ValueError(f"Unknown node category {value!r} (expected one of: {valid})") from None


@dataclass(frozen=True)
class Node:
    """A fixed target point in world coordinates."""
    node_id: str
    x: float
    y: float
    category: NodeCategory

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)


class NodeRegistry:
    """
    Immutable, ordered collection of nodes keyed by id.

    Insertion order is preserved; it fixes BFS seeding order and the order
    in which random node picks index into candidate lists.
    """

    def __init__(self, nodes: Iterable[Node]):
        self._nodes: Dict[str, Node] = {}
        for node in nodes:
            if node.node_id in self._nodes:
                raise ValueError(f"Duplicate node id: {node.node_id!r}")
            self._nodes[node.node_id] = node

        self.spawn_points: List[Node] = [
            n for n in self._nodes.values() if n.category.is_spawn_point
        ]
        self.targets: List[Node] = [
            n for n in self._nodes.values() if n.category.is_target
        ]

    def __iter__(self):
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def targets_except(self, node_id: str) -> List[Node]:
        """Target-eligible nodes other than ``node_id``."""
        return [n for n in self.targets if n.node_id != node_id]
