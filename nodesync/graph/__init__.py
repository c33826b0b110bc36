"""Graph subpackage: node model, storage and stale node collection."""

from .gc import GarbageCollector, GCResult
from .ledger import TouchedLedger
from .model import DEFAULT_SITE_PLUGIN, NodeSpec
from .roots import MAX_PARENT_HOPS, RootResolver
from .staleness import StalenessScanner
from .store import NodeStore

__all__ = [
    "DEFAULT_SITE_PLUGIN",
    "GCResult",
    "GarbageCollector",
    "MAX_PARENT_HOPS",
    "NodeSpec",
    "NodeStore",
    "RootResolver",
    "StalenessScanner",
    "TouchedLedger",
]
