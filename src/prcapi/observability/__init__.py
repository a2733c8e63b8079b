"""
Observability module for prcapi.

Diagnostic events for queue activity, primarily dispatch failures.
"""

from prcapi.observability.events import (
    Event,
    EventEmitter,
    EventHandler,
    EventType,
)

__all__ = [
    "Event",
    "EventEmitter",
    "EventHandler",
    "EventType",
]
