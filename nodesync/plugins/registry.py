"""Registered plugins and the node APIs they implement."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

SOURCE_NODES = "source_nodes"
ON_CREATE_NODE = "on_create_node"

PluginHandler = Callable[[Any], Any]


@dataclass(frozen=True)
class PluginDescriptor:
    """A registered plugin.

    ``node_apis`` lists the APIs the plugin declares. ``handlers`` maps an
    API name to the callable run for it; a plugin may declare an API it
    provides no handler for.
    """

    name: str
    node_apis: Tuple[str, ...] = ()
    handlers: Mapping[str, PluginHandler] = field(default_factory=dict, compare=False)

    @classmethod
    def from_handlers(
        cls,
        name: str,
        handlers: Mapping[str, PluginHandler],
        *,
        node_apis: Optional[Iterable[str]] = None,
    ) -> "PluginDescriptor":
        """Build a descriptor whose declared APIs default to ``handlers``' keys."""

        apis = tuple(node_apis) if node_apis is not None else tuple(handlers)
        return cls(name=name, node_apis=apis, handlers=dict(handlers))

    @property
    def node_capable(self) -> bool:
        """Whether the plugin declares that it can create nodes."""

        return SOURCE_NODES in self.node_apis

    def implements(self, api: str) -> bool:
        return api in self.handlers


@dataclass
class PluginRegistry:
    """Ordered collection of plugins, keyed by unique name."""

    plugins: List[PluginDescriptor] = field(default_factory=list)

    def register(self, plugin: PluginDescriptor) -> PluginDescriptor:
        if self.get(plugin.name) is not None:
            raise ValueError(f"Plugin '{plugin.name}' is already registered")
        self.plugins.append(plugin)
        return plugin

    def get(self, name: str) -> Optional[PluginDescriptor]:
        for plugin in self.plugins:
            if plugin.name == name:
                return plugin
        return None

    def list_plugins(self) -> Tuple[PluginDescriptor, ...]:
        """Return the plugins in registration order."""

        return tuple(self.plugins)

    def implementing(self, api: str, *, plugin_name: Optional[str] = None) -> List[PluginDescriptor]:
        """Return plugins with a handler for ``api``, optionally limited to one name."""

        return [
            plugin
            for plugin in self.plugins
            if plugin.implements(api) and (plugin_name is None or plugin.name == plugin_name)
        ]
