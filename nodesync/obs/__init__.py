"""Observability helpers."""

from .events import Event, EventBus, Reporter

__all__ = ["Event", "EventBus", "Reporter"]
