"""Plugin registration and API execution."""

from .registry import ON_CREATE_NODE, SOURCE_NODES, PluginDescriptor, PluginRegistry
from .runner import ApiContext, PluginArgs, PluginRunner

__all__ = [
    "ApiContext",
    "ON_CREATE_NODE",
    "PluginArgs",
    "PluginDescriptor",
    "PluginRegistry",
    "PluginRunner",
    "SOURCE_NODES",
]
