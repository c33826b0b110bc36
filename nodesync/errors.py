"""Exceptions raised by nodesync."""
from __future__ import annotations


class NodeSyncError(Exception):
    """Base class for nodesync errors."""


class SourcingError(NodeSyncError):
    """A plugin failed while running a sourcing API.

    Fatal to the current pass: diagnostics and garbage collection are
    skipped.
    """

    def __init__(self, plugin_name: str, api: str, message: str | None = None) -> None:
        self.plugin_name = plugin_name
        self.api = api
        super().__init__(message or f"Plugin '{plugin_name}' failed while running '{api}'")


class MutationError(NodeSyncError):
    """A node mutation could not be applied."""


class SyncInProgressError(NodeSyncError):
    """A pass was started while another pass is still running."""
