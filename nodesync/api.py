"""Public API surface for nodesync."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from nodesync.actions import NodeActions
from nodesync.config import SyncSettings
from nodesync.graph.ledger import TouchedLedger
from nodesync.graph.store import NodeStore
from nodesync.obs.events import EventBus
from nodesync.plugins.registry import PluginDescriptor, PluginHandler, PluginRegistry
from nodesync.plugins.runner import PluginRunner
from nodesync.sync import SourceNodesRequest, SyncOrchestrator, SyncReport


@dataclass
class NodeSyncApp:
    """Container wiring together the store, plugins and sync orchestrator."""

    store: NodeStore = field(default_factory=NodeStore)
    ledger: TouchedLedger = field(default_factory=TouchedLedger)
    registry: PluginRegistry = field(default_factory=PluginRegistry)
    event_bus: EventBus = field(default_factory=EventBus)
    settings: Optional[SyncSettings] = None

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = SyncSettings.from_env()
        if self.settings.high_volume_backend:
            self.store.high_volume = True
        self.actions = NodeActions(store=self.store, ledger=self.ledger)
        self.runner = PluginRunner(registry=self.registry, actions=self.actions, reporter=self.event_bus)
        self.orchestrator = SyncOrchestrator(
            store=self.store,
            ledger=self.ledger,
            registry=self.registry,
            actions=self.actions,
            runner=self.runner,
            reporter=self.event_bus,
            settings=self.settings,
        )

    def register_plugin(
        self,
        name: str,
        handlers: Mapping[str, PluginHandler],
        *,
        node_apis: Optional[list[str]] = None,
    ) -> PluginDescriptor:
        """Register a plugin from its API handlers."""

        return self.registry.register(
            PluginDescriptor.from_handlers(name, handlers, node_apis=node_apis)
        )

    async def source_nodes(
        self,
        *,
        webhook_body: Optional[dict] = None,
        plugin_name: Optional[str] = None,
        parent_span: Any = None,
        defer_node_mutation: bool = False,
    ) -> SyncReport:
        """Run one full sync pass and return what it found and deleted."""

        return await self.orchestrator.run(
            SourceNodesRequest(
                webhook_body=webhook_body,
                plugin_name=plugin_name,
                parent_span=parent_span,
                defer_node_mutation=defer_node_mutation,
            )
        )


async def source_nodes(
    app: NodeSyncApp,
    *,
    webhook_body: Optional[dict] = None,
    plugin_name: Optional[str] = None,
    parent_span: Any = None,
    defer_node_mutation: bool = False,
) -> SyncReport:
    """Module level shortcut for :meth:`NodeSyncApp.source_nodes`."""

    return await app.source_nodes(
        webhook_body=webhook_body,
        plugin_name=plugin_name,
        parent_span=parent_span,
        defer_node_mutation=defer_node_mutation,
    )


__all__ = ["NodeSyncApp", "source_nodes"]
