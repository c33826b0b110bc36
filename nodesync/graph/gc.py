"""Delete stale nodes after a sync pass."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from .staleness import StalenessScanner

if TYPE_CHECKING:  # pragma: no cover - import for type checking only
    from nodesync.actions import NodeActions
    from nodesync.obs.events import Reporter

LOGGER = logging.getLogger(__name__)


@dataclass
class GCResult:
    """Outcome of a garbage collection run."""

    deleted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


@dataclass
class GarbageCollector:
    """Issue one delete action per stale node.

    Deletions are independent: a failure is logged and reported for that
    node and the remaining nodes are still attempted.
    """

    scanner: StalenessScanner
    actions: "NodeActions"
    reporter: Optional[Reporter] = None

    def collect(self) -> GCResult:
        result = GCResult()
        # Materialise first; deleting while the store iterator is live is unsupported.
        stale = list(self.scanner.stale_nodes())
        for node in stale:
            try:
                self.actions.delete_node(node)
            except Exception as exc:
                LOGGER.warning("Failed to delete stale node %s: %s", node.id, exc)
                result.failed.append(node.id)
                self._report_failure(node.id, exc)
            else:
                result.deleted.append(node.id)
        if stale:
            LOGGER.info("Deleted %d stale node(s)", len(result.deleted))
        return result

    def _report_failure(self, node_id: str, exc: Exception) -> None:
        if self.reporter is None:
            return
        try:
            self.reporter.report(
                "error",
                f"Failed to delete stale node '{node_id}': {exc}",
                action="delete_failed",
                target_ids=[node_id],
            )
        except Exception:
            LOGGER.exception("Failed to report deletion failure for node %s", node_id)
