"""Drive a full node synchronisation pass."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from nodesync.actions import NodeActions
from nodesync.config import SyncSettings
from nodesync.diagnostics import CoverageDiagnostic
from nodesync.errors import SyncInProgressError
from nodesync.graph.gc import GarbageCollector, GCResult
from nodesync.graph.ids import new_id
from nodesync.graph.ledger import TouchedLedger
from nodesync.graph.roots import RootResolver
from nodesync.graph.staleness import StalenessScanner
from nodesync.graph.store import NodeStore
from nodesync.obs.events import EventBus
from nodesync.plugins.registry import SOURCE_NODES, PluginRegistry
from nodesync.plugins.runner import ApiContext, PluginRunner

LOGGER = logging.getLogger(__name__)

SOURCE_NODES_TRACE_ID = "initial-sourceNodes"


class SyncState(str, Enum):
    """Phases of a pass, entered strictly in declaration order."""

    IDLE = "idle"
    SOURCING = "sourcing"
    AWAITING_READY = "awaiting_ready"
    DIAGNOSING = "diagnosing"
    COLLECTING_GARBAGE = "collecting_garbage"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SourceNodesRequest:
    """Caller supplied options for one pass."""

    webhook_body: Optional[dict] = None
    plugin_name: Optional[str] = None
    parent_span: Any = None
    defer_node_mutation: bool = False


@dataclass
class SyncReport:
    """What a completed pass found and removed."""

    pass_id: str
    plugins_without_nodes: List[str] = field(default_factory=list)
    gc: GCResult = field(default_factory=GCResult)

    @property
    def deleted(self) -> List[str]:
        return self.gc.deleted


@dataclass
class SyncOrchestrator:
    """Run sourcing, wait for the store, then diagnose and collect garbage.

    A failure while sourcing aborts the pass before anything reads the
    store. A failure in the coverage diagnostic is reported and the pass
    goes on to garbage collection.
    """

    store: NodeStore
    ledger: TouchedLedger
    registry: PluginRegistry
    actions: NodeActions
    runner: PluginRunner
    reporter: EventBus = field(default_factory=EventBus)
    settings: SyncSettings = field(default_factory=SyncSettings)
    diagnostic: Optional[CoverageDiagnostic] = None
    collector: Optional[GarbageCollector] = None

    def __post_init__(self) -> None:
        self.state = SyncState.IDLE
        self._running = False
        if self.diagnostic is None:
            self.diagnostic = CoverageDiagnostic(
                store=self.store,
                registry=self.registry,
                node_threshold=self.settings.diagnostic_node_threshold,
            )
        if self.collector is None:
            resolver = RootResolver(store=self.store, reporter=self.reporter)
            scanner = StalenessScanner(store=self.store, ledger=self.ledger, resolver=resolver)
            self.collector = GarbageCollector(scanner=scanner, actions=self.actions, reporter=self.reporter)

    async def run(self, request: Optional[SourceNodesRequest] = None) -> SyncReport:
        """Execute one pass and return its :class:`SyncReport`."""

        if self._running:
            raise SyncInProgressError("A sync pass is already running against this store")
        request = request or SourceNodesRequest()
        report = SyncReport(pass_id=new_id("pass"))
        self._running = True
        try:
            self._enter(SyncState.SOURCING, report.pass_id)
            self.ledger.reset()
            await self.runner.run_api(
                SOURCE_NODES,
                ApiContext(
                    trace_id=SOURCE_NODES_TRACE_ID,
                    wait_for_cascading_actions=True,
                    defer_node_mutation=request.defer_node_mutation,
                    parent_span=request.parent_span,
                    webhook_body=request.webhook_body or {},
                    plugin_name=request.plugin_name,
                ),
            )

            self._enter(SyncState.AWAITING_READY, report.pass_id)
            await self.store.ready()

            self._enter(SyncState.DIAGNOSING, report.pass_id)
            report.plugins_without_nodes = self._diagnose()

            self._enter(SyncState.COLLECTING_GARBAGE, report.pass_id)
            report.gc = self.collector.collect()

            self._enter(SyncState.DONE, report.pass_id)
        except Exception as exc:
            failed_in = self.state
            self.state = SyncState.FAILED
            self.reporter.report(
                "error",
                f"Sync pass {report.pass_id} failed while {failed_in.value}: {exc}",
                action="sync_failed",
                extras={"pass_id": report.pass_id, "state": failed_in.value},
            )
            raise
        finally:
            self._running = False
        return report

    def _diagnose(self) -> List[str]:
        try:
            return self.diagnostic.warn_for_plugins_without_nodes(self.reporter)
        except Exception as exc:
            LOGGER.exception("Plugin coverage diagnostic failed")
            self.reporter.report(
                "error",
                f"Plugin coverage diagnostic failed: {exc}",
                action="diagnostic_failed",
            )
            return []

    def _enter(self, state: SyncState, pass_id: str) -> None:
        self.state = state
        LOGGER.debug("Sync pass %s entered %s", pass_id, state.value)
        self.reporter.emit(
            level="debug",
            msg=f"Entered {state.value}",
            action="sync_state",
            extras={"pass_id": pass_id, "state": state.value},
        )
