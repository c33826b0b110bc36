"""End-to-end tests for :class:`nodesync.api.NodeSyncApp`."""

from __future__ import annotations

import pytest

import nodesync
from nodesync.api import NodeSyncApp
from nodesync.config import SyncSettings
from nodesync.errors import SourcingError
from nodesync.graph.model import DEFAULT_SITE_PLUGIN, NodeSpec
from nodesync.plugins.registry import ON_CREATE_NODE, SOURCE_NODES


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


def make_app(**settings) -> NodeSyncApp:
    return NodeSyncApp(settings=SyncSettings(**settings))


def seed_previous_pass(app: NodeSyncApp) -> None:
    for node in (
        NodeSpec(id="root1", owner="cms"),
        NodeSpec(id="child1", owner="cms", parent="root1"),
        NodeSpec(id="root2", owner="cms"),
        NodeSpec(id="child2", owner="cms", parent="root2"),
    ):
        app.store.add_node(node)


@pytest.mark.anyio("asyncio")
async def test_untouched_subtree_is_deleted_after_a_pass():
    app = make_app()
    seed_previous_pass(app)
    app.register_plugin("cms", {SOURCE_NODES: lambda args: args.actions.touch_node("root1")})

    report = await app.source_nodes()

    assert set(report.deleted) == {"root2", "child2"}
    assert {node.id for node in app.store.iterate_nodes()} == {"root1", "child1"}
    assert report.plugins_without_nodes == []


@pytest.mark.anyio("asyncio")
async def test_second_pass_keeps_recreated_nodes():
    app = make_app()

    def source(args):
        root = args.actions.create_node({"id": "post-1", "title": "Hello"})
        args.actions.create_node({"id": "post-1-body", "parent": root.id})

    app.register_plugin("cms", {SOURCE_NODES: source})

    await app.source_nodes()
    report = await app.source_nodes()

    assert report.deleted == []
    assert app.store.get_node("post-1-body").parent == "post-1"


@pytest.mark.anyio("asyncio")
async def test_pass_warns_about_plugins_without_nodes():
    app = make_app()
    app.register_plugin("A", {SOURCE_NODES: lambda args: args.actions.create_node({"id": "a"})})
    app.register_plugin("B", {SOURCE_NODES: lambda args: None})
    app.register_plugin("C", {ON_CREATE_NODE: lambda args: None})
    app.store.add_node(NodeSpec(id="site", owner=DEFAULT_SITE_PLUGIN))

    report = await nodesync.source_nodes(app)

    assert report.plugins_without_nodes == ["B"]
    messages = [event.msg for event in app.event_bus.by_action("plugin_without_nodes")]
    assert messages == ["The B plugin has generated no nodes. Do you need it?"]


@pytest.mark.anyio("asyncio")
async def test_diagnostic_is_skipped_on_large_high_volume_store():
    app = make_app(diagnostic_node_threshold=0, high_volume_backend=True)
    app.register_plugin("B", {SOURCE_NODES: lambda args: None})
    app.register_plugin("A", {SOURCE_NODES: lambda args: args.actions.create_node({"id": "a"})})

    report = await app.source_nodes()

    assert app.store.is_high_volume_backend()
    assert report.plugins_without_nodes == []


@pytest.mark.anyio("asyncio")
async def test_deferred_mutations_are_visible_to_gc():
    app = make_app()
    seed_previous_pass(app)

    def source(args):
        args.actions.create_node({"id": "root2"})
        args.actions.create_node({"id": "child2", "parent": "root2"})

    app.register_plugin("cms", {SOURCE_NODES: source})

    report = await app.source_nodes(defer_node_mutation=True)

    assert set(report.deleted) == {"root1", "child1"}
    assert {node.id for node in app.store.iterate_nodes()} == {"root2", "child2"}
    assert app.store.pending == []


@pytest.mark.anyio("asyncio")
async def test_cyclic_nodes_are_collected_and_reported():
    app = make_app()
    app.store.add_node(NodeSpec(id="loop", owner="cms", parent="loop"))
    app.register_plugin("cms", {SOURCE_NODES: lambda args: args.actions.create_node({"id": "fresh"})})

    report = await app.source_nodes(webhook_body={"event": "publish"})

    assert report.deleted == ["loop"]
    assert app.event_bus.by_action("malformed_chain")


@pytest.mark.anyio("asyncio")
async def test_failed_sourcing_leaves_store_untouched():
    app = make_app()
    seed_previous_pass(app)

    def broken(args):
        raise ConnectionError("cms offline")

    app.register_plugin("cms", {SOURCE_NODES: broken})

    with pytest.raises(SourcingError):
        await app.source_nodes()

    assert app.store.count_nodes() == 4


@pytest.mark.anyio("asyncio")
async def test_transformer_nodes_survive_through_their_parent():
    app = make_app()

    def source(args):
        args.actions.create_node({"id": "md-file"})

    def transform(args):
        args.actions.create_node({"id": f"{args.node.id}-html", "parent": args.node.id})

    app.register_plugin("filesystem", {SOURCE_NODES: source})
    app.register_plugin("markdown", {ON_CREATE_NODE: transform})

    report = await app.source_nodes()

    assert report.deleted == []
    assert app.store.get_node("md-file-html").owner == "markdown"
