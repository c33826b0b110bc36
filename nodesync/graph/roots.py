"""Resolve the topmost ancestor of a node."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from .model import NodeSpec
from .store import NodeStore

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from nodesync.obs.events import Reporter

LOGGER = logging.getLogger(__name__)

MAX_PARENT_HOPS = 100


@dataclass
class RootResolver:
    """Climb ``parent`` references through the store.

    The walk stops at a node without a parent, or whose parent is not in the
    store. It takes at most :data:`MAX_PARENT_HOPS` steps. A chain that is
    still going after that is reported as malformed (usually a cycle or a
    node parented to itself) and the last visited node is used as the root.
    """

    store: NodeStore
    reporter: Optional[Reporter] = None

    def resolve(self, node: NodeSpec) -> NodeSpec:
        root = node
        for _ in range(MAX_PARENT_HOPS):
            parent = self._lookup_parent(root)
            if parent is None:
                return root
            root = parent

        if self._lookup_parent(root) is not None:
            self._report_malformed(node, root)
        return root

    def _lookup_parent(self, node: NodeSpec) -> Optional[NodeSpec]:
        if not node.parent:
            return None
        return self.store.get_node(node.parent)

    def _report_malformed(self, start: NodeSpec, last: NodeSpec) -> None:
        msg = (
            f"Node '{start.id}' has a parent chain longer than {MAX_PARENT_HOPS} hops; "
            "it looks like a node has set its parent as itself or as one of its descendants"
        )
        LOGGER.warning("%s (stopped at '%s')", msg, last.id)
        if self.reporter is not None:
            self.reporter.report(
                "warn",
                msg,
                action="malformed_chain",
                target_ids=[start.id],
                extras={"last_visited": last.id, "owner": start.owner},
            )
