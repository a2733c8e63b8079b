"""
Diagnostic event stream for prcapi.

Every dispatch failure is broadcast here independently of the error delivered
to the caller, so applications can log or count queue problems in one place.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable

import structlog

logger = structlog.get_logger()


class EventType(str, Enum):
    """Types of events emitted by the queue scheduler."""

    REQUEST_COMPLETED = "request.completed"
    DISPATCH_FAILED = "queue.dispatch_failed"
    QUEUE_FULL = "queue.full"
    RATE_LIMITED = "queue.rate_limited"


@dataclass
class Event:
    """A diagnostic event."""

    event_id: str
    event_type: EventType
    timestamp: datetime
    queue: str
    data: dict[str, Any] = field(default_factory=dict)
    error: Exception | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "queue": self.queue,
            "data": self.data,
            "error": str(self.error) if self.error else None,
            "error_type": type(self.error).__name__ if self.error else None,
        }


EventHandler = Callable[[Event], Awaitable[None]]


class EventEmitter:
    """
    In-process event emitter.

    Handlers run as background tasks so a slow handler never delays a queue.
    A failing handler is logged and does not affect other handlers.
    """

    def __init__(self, enabled: bool = True):
        self._enabled = enabled
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._pending: set[asyncio.Task] = set()

    def on(
        self,
        event_type: EventType | None = None,
        handler: EventHandler | None = None,
    ) -> Callable[[EventHandler], EventHandler]:
        """
        Register an event handler. ``None`` subscribes to every event type.

        Can be used as a decorator:
            @emitter.on(EventType.DISPATCH_FAILED)
            async def handle_failure(event):
                ...

        Or directly:
            emitter.on(EventType.DISPATCH_FAILED, handler_func)
        """

        def decorator(fn: EventHandler) -> EventHandler:
            self._handlers.setdefault(event_type, []).append(fn)
            return fn

        if handler:
            decorator(handler)
            return lambda fn: fn

        return decorator

    def off(self, event_type: EventType | None, handler: EventHandler) -> None:
        """Remove a previously registered handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(
        self,
        event_type: EventType,
        queue: str,
        error: Exception | None = None,
        **data: Any,
    ) -> Event:
        """
        Emit an event to all registered handlers.

        Must be called from inside a running event loop when handlers exist.

        Returns:
            The emitted Event object
        """
        event = Event(
            event_id=uuid.uuid4().hex[:16],
            event_type=event_type,
            timestamp=datetime.now(timezone.utc),
            queue=queue,
            data=data,
            error=error,
        )

        if not self._enabled:
            return event

        handlers = [
            *self._handlers.get(event_type, []),
            *self._handlers.get(None, []),
        ]
        if handlers:
            task = asyncio.get_running_loop().create_task(self._dispatch(event, handlers))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        return event

    async def _dispatch(self, event: Event, handlers: list[EventHandler]) -> None:
        """Dispatch event to handlers."""
        for handler in handlers:
            try:
                await handler(event)
            except Exception as e:
                logger.warning(
                    "Event handler failed",
                    handler=getattr(handler, "__name__", repr(handler)),
                    event_type=event.event_type.value,
                    error=str(e),
                )

    async def flush(self) -> None:
        """Wait for every in-progress handler dispatch to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
