"""Event bus primitives."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Protocol

from nodesync.graph.ids import utc_now

LOGGER = logging.getLogger(__name__)

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class Reporter(Protocol):
    """Fire-and-forget sink for user facing findings."""

    def report(
        self,
        level: str,
        msg: str,
        *,
        action: str | None = None,
        target_ids: Iterable[str] | None = None,
        extras: dict | None = None,
    ) -> "Event":  # pragma: no cover - interface
        ...


@dataclass
class Event:
    """Simple event structure stored in the event bus."""

    ts: str
    level: str
    msg: str
    action: str | None = None
    target_ids: List[str] = field(default_factory=list)
    extras: dict | None = None


@dataclass
class EventBus:
    """Append-only in-memory event bus."""

    events: List[Event] = field(default_factory=list)

    def emit(
        self,
        *,
        level: str,
        msg: str,
        action: str | None = None,
        target_ids: Iterable[str] | None = None,
        extras: dict | None = None,
    ) -> Event:
        """Create and store a new :class:`Event`."""

        event = Event(
            ts=utc_now(),
            level=level,
            msg=msg,
            action=action,
            target_ids=list(target_ids or []),
            extras=extras,
        )
        self.events.append(event)
        return event

    def report(
        self,
        level: str,
        msg: str,
        *,
        action: str | None = None,
        target_ids: Iterable[str] | None = None,
        extras: dict | None = None,
    ) -> Event:
        """Record ``msg`` as an event and mirror it to the module logger."""

        LOGGER.log(_LOG_LEVELS.get(level, logging.INFO), msg)
        return self.emit(level=level, msg=msg, action=action, target_ids=target_ids, extras=extras)

    def history(self) -> Iterable[Event]:
        """Return the chronological event history."""

        return tuple(self.events)

    def by_action(self, action: str) -> List[Event]:
        """Return the events recorded under ``action``."""

        return [event for event in self.events if event.action == action]
