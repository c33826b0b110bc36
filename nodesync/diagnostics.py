"""Detect plugins that declare node sourcing but own no nodes."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Set

from nodesync.config import DEFAULT_DIAGNOSTIC_NODE_THRESHOLD
from nodesync.graph.model import DEFAULT_SITE_PLUGIN
from nodesync.graph.store import NodeStore
from nodesync.plugins.registry import PluginRegistry

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from nodesync.obs.events import Reporter

LOGGER = logging.getLogger(__name__)


@dataclass
class CoverageDiagnostic:
    """Compare node owners in the store against node-capable plugins.

    The scan reads every stored node. On a high volume backend holding more
    than ``node_threshold`` nodes it is skipped and reports nothing.
    """

    store: NodeStore
    registry: PluginRegistry
    node_threshold: int = DEFAULT_DIAGNOSTIC_NODE_THRESHOLD

    def should_skip(self) -> bool:
        return self.store.is_high_volume_backend() and self.store.count_nodes() > self.node_threshold

    def node_owners(self) -> Set[str]:
        owners = {DEFAULT_SITE_PLUGIN}
        for node in self.store.iterate_nodes():
            owners.add(node.owner)
        return owners

    def find_plugins_without_nodes(self) -> List[str]:
        """Return, in registry order, node-capable plugins that own no nodes."""

        if self.should_skip():
            LOGGER.debug("Skipping plugin coverage scan on a high volume store")
            return []

        owners = self.node_owners()
        return [
            plugin.name
            for plugin in self.registry.list_plugins()
            if plugin.node_capable and plugin.name not in owners
        ]

    def warn_for_plugins_without_nodes(self, reporter: "Reporter") -> List[str]:
        """Report one warning per plugin without nodes and return their names."""

        names = self.find_plugins_without_nodes()
        for name in names:
            try:
                reporter.report(
                    "warn",
                    f"The {name} plugin has generated no nodes. Do you need it?",
                    action="plugin_without_nodes",
                    extras={"plugin": name},
                )
            except Exception:
                LOGGER.exception("Failed to report missing nodes for plugin %s", name)
        return names
