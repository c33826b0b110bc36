"""In-memory NetworkX based storage for synchronised nodes."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Literal, Optional, Set, Tuple

import networkx as nx

from .model import NodeSpec

LOGGER = logging.getLogger(__name__)

PendingWrite = Tuple[Literal["add", "delete"], NodeSpec]


@dataclass
class NodeStore:
    """Keyed node graph with a readiness barrier for deferred writes.

    Nodes live on a :class:`networkx.DiGraph` keyed by node id, with an edge
    from each child to its parent. A child whose parent is not stored yet is
    parked in ``waiting_children`` and linked when the parent arrives, so a
    dangling reference never materialises a phantom node. The ``parent``
    attribute remains the source of truth for lookups.

    ``high_volume`` flags a backend for which counting and full iteration
    are expensive. The coverage diagnostic uses it to decide whether it may
    skip its scan.
    """

    graph: nx.DiGraph = field(default_factory=nx.DiGraph)
    high_volume: bool = False
    pending: List[PendingWrite] = field(default_factory=list)
    waiting_children: Dict[str, Set[str]] = field(default_factory=dict, repr=False)

    def add_node(self, node: NodeSpec) -> None:
        """Insert ``node`` or replace the stored node with the same id."""

        if node.id in self.graph:
            self._detach(node.id)
        self.graph.add_node(
            node.id,
            owner=node.owner,
            parent=node.parent,
            payload=dict(node.payload),
        )
        self._link(node.id, node.parent)
        for child_id in self.waiting_children.pop(node.id, set()):
            if child_id in self.graph and self.graph.nodes[child_id].get("parent") == node.id:
                self.graph.add_edge(child_id, node.id)

    def delete_node(self, node_id: str) -> None:
        """Remove the node identified by ``node_id``."""

        if node_id not in self.graph:
            raise KeyError(f"Node '{node_id}' does not exist")
        self._detach(node_id)

    def children(self, node_id: str) -> List[str]:
        """Return the ids of stored nodes whose parent is ``node_id``."""

        if node_id not in self.graph:
            return []
        return [child for child in self.graph.predecessors(node_id) if child != node_id]

    def enqueue(self, op: Literal["add", "delete"], node: NodeSpec) -> None:
        """Queue a write that becomes visible on the next :meth:`ready`."""

        self.pending.append((op, node))

    async def ready(self) -> None:
        """Apply every queued write and yield to the event loop.

        Once this coroutine returns all writes issued before it was awaited
        are visible to reads.
        """

        while self.pending:
            batch, self.pending = self.pending, []
            for op, node in batch:
                if op == "add":
                    self.add_node(node)
                elif node.id in self.graph:
                    self._detach(node.id)
                else:
                    LOGGER.debug("Deferred delete of missing node %s ignored", node.id)
            await asyncio.sleep(0)

    def _link(self, node_id: str, parent: Optional[str]) -> None:
        if not parent:
            return
        if parent in self.graph:
            self.graph.add_edge(node_id, parent)
        else:
            self.waiting_children.setdefault(parent, set()).add(node_id)

    def _detach(self, node_id: str) -> None:
        # children keep their parent id and relink if a node with this id returns
        for child_id in self.children(node_id):
            self.waiting_children.setdefault(node_id, set()).add(child_id)
        parent = self.graph.nodes[node_id].get("parent")
        waiting = self.waiting_children.get(parent)
        if waiting is not None:
            waiting.discard(node_id)
            if not waiting:
                del self.waiting_children[parent]
        self.graph.remove_node(node_id)

    def get_node(self, node_id: str) -> Optional[NodeSpec]:
        """Retrieve a node and return it as a :class:`NodeSpec` if present."""

        if node_id not in self.graph:
            return None
        return self._to_spec(node_id, self.graph.nodes[node_id])

    def iterate_nodes(self) -> Iterator[NodeSpec]:
        """Lazily yield every stored node.

        The iterator reads the live graph; mutating the store while it is
        being consumed is not supported.
        """

        for node_id, data in self.graph.nodes(data=True):
            yield self._to_spec(node_id, data)

    def count_nodes(self) -> int:
        return self.graph.number_of_nodes()

    def is_high_volume_backend(self) -> bool:
        return self.high_volume

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.graph

    @staticmethod
    def _to_spec(node_id: str, data: dict) -> NodeSpec:
        return NodeSpec(
            id=node_id,
            owner=data["owner"],
            parent=data.get("parent"),
            payload=dict(data.get("payload") or {}),
        )
