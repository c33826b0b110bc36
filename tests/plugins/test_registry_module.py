"""Tests for :mod:`nodesync.plugins.registry`."""

from __future__ import annotations

import pytest

from nodesync.plugins.registry import ON_CREATE_NODE, SOURCE_NODES, PluginDescriptor, PluginRegistry


def noop(args):
    return None


def test_descriptor_apis_default_to_handler_names():
    plugin = PluginDescriptor.from_handlers("a", {SOURCE_NODES: noop})

    assert plugin.node_apis == (SOURCE_NODES,)
    assert plugin.node_capable
    assert plugin.implements(SOURCE_NODES)
    assert not plugin.implements(ON_CREATE_NODE)


def test_descriptor_may_declare_api_without_handler():
    plugin = PluginDescriptor.from_handlers("a", {}, node_apis=[SOURCE_NODES])

    assert plugin.node_capable
    assert not plugin.implements(SOURCE_NODES)


def test_transformer_only_plugin_is_not_node_capable():
    plugin = PluginDescriptor.from_handlers("t", {ON_CREATE_NODE: noop})
    assert not plugin.node_capable


def test_registry_preserves_order_and_rejects_duplicates():
    registry = PluginRegistry()
    registry.register(PluginDescriptor.from_handlers("b", {SOURCE_NODES: noop}))
    registry.register(PluginDescriptor.from_handlers("a", {ON_CREATE_NODE: noop}))

    assert [plugin.name for plugin in registry.list_plugins()] == ["b", "a"]
    assert registry.get("a").name == "a"
    assert registry.get("zzz") is None
    with pytest.raises(ValueError):
        registry.register(PluginDescriptor(name="a"))


def test_implementing_filters_by_api_and_name():
    registry = PluginRegistry()
    registry.register(PluginDescriptor.from_handlers("a", {SOURCE_NODES: noop}))
    registry.register(PluginDescriptor.from_handlers("b", {SOURCE_NODES: noop, ON_CREATE_NODE: noop}))

    assert [p.name for p in registry.implementing(SOURCE_NODES)] == ["a", "b"]
    assert [p.name for p in registry.implementing(SOURCE_NODES, plugin_name="b")] == ["b"]
    assert [p.name for p in registry.implementing(ON_CREATE_NODE)] == ["b"]
