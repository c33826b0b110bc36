"""Per-pass record of touched node identifiers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Set


@dataclass
class TouchedLedger:
    """Set of node ids created or explicitly touched during the current pass."""

    touched: Set[str] = field(default_factory=set)

    def touch(self, node_id: str) -> None:
        self.touched.add(node_id)

    def touch_many(self, node_ids: Iterable[str]) -> None:
        self.touched.update(node_ids)

    def forget(self, node_id: str) -> None:
        self.touched.discard(node_id)

    def reset(self) -> None:
        """Forget every touched id. Called at the start of each pass."""

        self.touched.clear()

    def touched_root_ids(self) -> FrozenSet[str]:
        """Return a frozen copy of the touched ids."""

        return frozenset(self.touched)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.touched

    def __len__(self) -> int:
        return len(self.touched)
