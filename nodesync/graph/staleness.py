"""Find nodes whose root was not touched in the current pass."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from .ledger import TouchedLedger
from .model import NodeSpec
from .roots import RootResolver
from .store import NodeStore


@dataclass
class StalenessScanner:
    """Classify stored nodes against the touched ledger."""

    store: NodeStore
    ledger: TouchedLedger
    resolver: RootResolver

    def is_stale(self, node: NodeSpec) -> bool:
        return self.resolver.resolve(node).id not in self.ledger

    def stale_nodes(self) -> Iterator[NodeSpec]:
        """Lazily yield every stored node whose resolved root is untouched.

        Single pass over the live store; ordering is unspecified. The touched
        ids are captured when iteration starts.
        """

        touched = self.ledger.touched_root_ids()
        for node in self.store.iterate_nodes():
            if self.resolver.resolve(node).id not in touched:
                yield node
