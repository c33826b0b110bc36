"""Node model shared by the store, the ledger and the sync passes."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

# Owner of nodes created by the site itself rather than a registered plugin.
# Always counted as a node owner, whether or not a plugin of that name exists.
DEFAULT_SITE_PLUGIN = "default-site-plugin"


@dataclass
class NodeSpec:
    """A unit of graph data produced by a plugin.

    ``parent`` holds the identifier of another node and is resolved through
    the store on demand. The referenced node may be missing or may point
    back at this node; consumers must not assume a well formed forest.
    """

    id: str
    owner: str
    parent: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_root(self) -> bool:
        return not self.parent

    def update(self, values: Mapping[str, Any]) -> None:
        """Merge ``values`` into the payload."""

        self.payload.update(values)


def coerce_node_payload(owner: str, attributes: Mapping[str, Any]) -> NodeSpec:
    """Build a :class:`NodeSpec` from a plugin supplied mapping.

    ``id`` is required. ``parent`` is optional and the remaining keys become
    the payload.
    """

    data = dict(attributes)
    node_id = data.pop("id", None)
    if not isinstance(node_id, str) or not node_id:
        raise ValueError("node payload must include a non-empty string 'id'")
    parent = data.pop("parent", None)
    if parent is not None and not isinstance(parent, str):
        raise ValueError(f"node '{node_id}' has a non-string parent: {parent!r}")
    data.pop("owner", None)
    return NodeSpec(id=node_id, owner=owner, parent=parent or None, payload=data)


__all__ = ["DEFAULT_SITE_PLUGIN", "NodeSpec", "coerce_node_payload"]
