"""Tests for :mod:`nodesync.graph.roots`."""

from __future__ import annotations

from nodesync.graph.model import NodeSpec
from nodesync.graph.roots import MAX_PARENT_HOPS, RootResolver
from nodesync.graph.store import NodeStore
from nodesync.obs.events import EventBus


def build_chain(store: NodeStore, length: int) -> list[NodeSpec]:
    """Store ``length + 1`` nodes where each node's parent is the previous one."""

    nodes = [NodeSpec(id="n0", owner="p")]
    for index in range(1, length + 1):
        nodes.append(NodeSpec(id=f"n{index}", owner="p", parent=f"n{index - 1}"))
    for node in nodes:
        store.add_node(node)
    return nodes


def test_parentless_node_is_its_own_root():
    store = NodeStore()
    node = NodeSpec(id="solo", owner="p")
    store.add_node(node)

    assert RootResolver(store).resolve(node) == node


def test_resolves_topmost_ancestor_of_acyclic_chain():
    store = NodeStore()
    nodes = build_chain(store, 5)

    for node in nodes:
        assert RootResolver(store).resolve(node).id == "n0"


def test_chain_at_hop_bound_resolves_without_warning():
    store = NodeStore()
    bus = EventBus()
    nodes = build_chain(store, MAX_PARENT_HOPS)

    root = RootResolver(store, reporter=bus).resolve(nodes[-1])

    assert root.id == "n0"
    assert bus.by_action("malformed_chain") == []


def test_chain_past_hop_bound_is_truncated_and_reported():
    store = NodeStore()
    bus = EventBus()
    nodes = build_chain(store, MAX_PARENT_HOPS + 1)

    root = RootResolver(store, reporter=bus).resolve(nodes[-1])

    assert root.id == "n1"
    events = bus.by_action("malformed_chain")
    assert len(events) == 1
    assert events[0].target_ids == [nodes[-1].id]
    assert events[0].extras["last_visited"] == "n1"


def test_self_parented_node_terminates():
    store = NodeStore()
    bus = EventBus()
    node = NodeSpec(id="loop", owner="p", parent="loop")
    store.add_node(node)

    root = RootResolver(store, reporter=bus).resolve(node)

    assert root.id == "loop"
    assert len(bus.by_action("malformed_chain")) == 1


def test_two_node_cycle_terminates():
    store = NodeStore()
    store.add_node(NodeSpec(id="a", owner="p", parent="b"))
    store.add_node(NodeSpec(id="b", owner="p", parent="a"))

    root = RootResolver(store).resolve(store.get_node("a"))

    assert root.id in {"a", "b"}


def test_dangling_parent_stops_at_last_existing_node():
    store = NodeStore()
    store.add_node(NodeSpec(id="top", owner="p", parent="deleted"))
    child = NodeSpec(id="child", owner="p", parent="top")
    store.add_node(child)

    assert RootResolver(store).resolve(child).id == "top"
