"""Tests for :mod:`nodesync.obs.events`."""

from __future__ import annotations

import logging

from nodesync.obs.events import EventBus


def test_event_bus_emit_and_history():
    bus = EventBus()
    event = bus.emit(level="info", msg="Test", action="act", target_ids=["node"], extras={"detail": 1})

    assert event.msg == "Test"
    assert list(bus.history()) == [event]


def test_report_records_event_and_logs(caplog):
    bus = EventBus()

    with caplog.at_level(logging.WARNING, logger="nodesync.obs.events"):
        event = bus.report("warn", "Plugin x is idle", action="plugin_without_nodes")

    assert event.level == "warn"
    assert bus.by_action("plugin_without_nodes") == [event]
    assert "Plugin x is idle" in caplog.text
