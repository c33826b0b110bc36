"""Serialised mutation interface for the node store.

Every create, touch and delete goes through :meth:`NodeActions.dispatch`,
which holds a lock for the duration of the write so that the store and the
touched ledger never disagree about a node.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Union

from nodesync.errors import MutationError
from nodesync.graph.ledger import TouchedLedger
from nodesync.graph.model import NodeSpec, coerce_node_payload
from nodesync.graph.store import NodeStore

LOGGER = logging.getLogger(__name__)

CREATE_NODE = "CREATE_NODE"
TOUCH_NODE = "TOUCH_NODE"
DELETE_NODE = "DELETE_NODE"

CreateListener = Callable[[NodeSpec], None]
ActionHandler = Callable[[dict], dict]


@dataclass
class NodeActions:
    """Apply node mutations to ``store`` and record touches in ``ledger``.

    With ``defer=True`` creates and deletes are queued on the store and only
    become visible once :meth:`NodeStore.ready` runs. Touches are recorded
    immediately either way.
    """

    store: NodeStore
    ledger: TouchedLedger
    handlers: Dict[str, ActionHandler] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._lock = threading.RLock()
        self._listeners: List[CreateListener] = []
        self.handlers.setdefault(CREATE_NODE, self._handle_create)
        self.handlers.setdefault(TOUCH_NODE, self._handle_touch)
        self.handlers.setdefault(DELETE_NODE, self._handle_delete)

    def subscribe(self, listener: CreateListener) -> None:
        """Call ``listener`` with every node created from now on."""

        self._listeners.append(listener)

    def unsubscribe(self, listener: CreateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispatch(self, action: str, params: dict) -> dict:
        """Execute the handler associated with ``action``."""

        if action not in self.handlers:
            raise KeyError(f"Unknown action: {action}")
        with self._lock:
            return self.handlers[action](params)

    def create_node(self, node: NodeSpec, *, defer: bool = False) -> NodeSpec:
        return self.dispatch(CREATE_NODE, {"node": node, "defer": defer})["node"]

    def touch_node(self, node_id: str) -> None:
        self.dispatch(TOUCH_NODE, {"node_id": node_id})

    def delete_node(self, node: NodeSpec, *, defer: bool = False) -> None:
        self.dispatch(DELETE_NODE, {"node": node, "defer": defer})

    def bind(self, owner: str, *, defer: bool = False) -> "PluginActions":
        """Return the action helpers handed to the plugin ``owner``."""

        return PluginActions(actions=self, owner=owner, defer=defer)

    # -- handlers -----------------------------------------------------------

    def _handle_create(self, params: dict) -> dict:
        node: NodeSpec = params["node"]
        if params.get("defer"):
            self.store.enqueue("add", node)
        else:
            self.store.add_node(node)
        self.ledger.touch(node.id)
        for listener in list(self._listeners):
            listener(node)
        return {"node": node}

    def _handle_touch(self, params: dict) -> dict:
        node_id = params["node_id"]
        if node_id not in self.store and not self._is_pending(node_id):
            raise MutationError(f"Cannot touch unknown node '{node_id}'")
        self.ledger.touch(node_id)
        return {"node_id": node_id}

    def _handle_delete(self, params: dict) -> dict:
        node: NodeSpec = params["node"]
        if params.get("defer"):
            self.store.enqueue("delete", node)
        else:
            try:
                self.store.delete_node(node.id)
            except KeyError as exc:
                raise MutationError(f"Cannot delete unknown node '{node.id}'") from exc
        self.ledger.forget(node.id)
        LOGGER.debug("Deleted node %s owned by %s", node.id, node.owner)
        return {"node_id": node.id}

    def _is_pending(self, node_id: str) -> bool:
        return any(op == "add" and node.id == node_id for op, node in self.store.pending)


@dataclass
class PluginActions:
    """Mutation helpers bound to a single plugin as node owner."""

    actions: NodeActions
    owner: str
    defer: bool = False

    def create_node(self, node: Union[NodeSpec, Mapping[str, Any]]) -> NodeSpec:
        """Create or replace a node owned by this plugin.

        ``node`` may be a :class:`NodeSpec` or a mapping with ``id``, an
        optional ``parent`` and arbitrary payload keys.
        """

        if isinstance(node, NodeSpec):
            if node.owner != self.owner:
                raise MutationError(
                    f"Plugin '{self.owner}' cannot create node '{node.id}' owned by '{node.owner}'"
                )
            spec = node
        else:
            try:
                spec = coerce_node_payload(self.owner, node)
            except ValueError as exc:
                raise MutationError(str(exc)) from exc
        return self.actions.create_node(spec, defer=self.defer)

    def touch_node(self, node_id: str) -> None:
        """Mark an unchanged node as still present in the source."""

        self.actions.touch_node(node_id)

    def delete_node(self, node: Union[NodeSpec, str]) -> None:
        if isinstance(node, str):
            found = self.actions.store.get_node(node)
            if found is None:
                raise MutationError(f"Cannot delete unknown node '{node}'")
            node = found
        self.actions.delete_node(node, defer=self.defer)
