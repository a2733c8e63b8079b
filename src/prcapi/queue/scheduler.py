"""
Named request queues with pacing, backpressure and rate-limit backoff.

Each queue is an independent FIFO that has at most one request in flight,
waits a minimum interval between the end of one request and the start of the
next, and stretches that interval when the server reports a rate limit.
Different queues advance concurrently on the same event loop.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import structlog

from prcapi.core.models import DEFAULT_QUEUE, RequestDescriptor
from prcapi.observability.events import EventEmitter, EventType
from prcapi.queue.backoff import backoff_extension_ms
from prcapi.transport.base import PRCError, ResponseNotOKError

logger = structlog.get_logger()

SendCallable = Callable[[RequestDescriptor], Awaitable[Any]]

# Distinguishes "use the manager default" from an explicit unbounded capacity
_DEFAULT: Any = object()


class QueueFullError(PRCError):
    """Raised when a request is added to a queue that is at capacity."""

    def __init__(self, queue_name: str, capacity: int):
        super().__init__(
            f"The maximum request queue limit ({capacity}) for this queue ({queue_name}) "
            "has been reached and further requests to it will be dropped."
        )
        self.queue_name = queue_name
        self.capacity = capacity


class RemovedFromQueueError(PRCError):
    """Raised when a request is removed from its queue before being sent."""

    def __init__(self, was_queue_cleared: bool):
        if was_queue_cleared:
            message = "The queue was cleared, removing this request from the queue"
        else:
            message = "Request was removed from the queue"
        super().__init__(message)
        self.was_queue_cleared = was_queue_cleared


@dataclass
class QueueStats:
    """Queue statistics."""

    total_queued: int = 0
    total_processed: int = 0
    total_failed: int = 0
    total_dropped: int = 0
    total_removed: int = 0
    rate_limit_hits: int = 0
    current_queue_size: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_queued": self.total_queued,
            "total_processed": self.total_processed,
            "total_failed": self.total_failed,
            "total_dropped": self.total_dropped,
            "total_removed": self.total_removed,
            "rate_limit_hits": self.rate_limit_hits,
            "current_queue_size": self.current_queue_size,
        }


@dataclass
class WorkItem:
    """A queued request and the future its caller is waiting on."""

    request: RequestDescriptor
    future: asyncio.Future

    def fulfil(self, value: Any) -> None:
        if not self.future.done():
            self.future.set_result(value)

    def fail(self, error: BaseException) -> None:
        if not self.future.done():
            self.future.set_exception(error)


@dataclass
class RequestQueue:
    """State of one named queue."""

    name: str
    pace_interval_ms: float
    capacity: int | None = None
    pending: deque[WorkItem] = field(default_factory=deque)
    # Whether the queue advances automatically when requests are added
    running: bool = False
    # Whether a dispatcher task currently owns this queue
    dispatching: bool = False
    # time.monotonic() at the end of the last dispatch
    last_dispatch_at: float = 0.0
    stats: QueueStats = field(default_factory=QueueStats)
    task: asyncio.Task | None = field(default=None, repr=False)

    @property
    def is_full(self) -> bool:
        return self.capacity is not None and len(self.pending) >= self.capacity

    def __len__(self) -> int:
        return len(self.pending)


class QueueManager:
    """
    Registry of named request queues and their dispatchers.

    Features:
    - Strict FIFO per queue, one request in flight per queue
    - Minimum interval between requests, per queue
    - Bounded capacity (requests beyond it are rejected immediately)
    - Retry-After aware backoff on HTTP 429
    - Cancellation of requests that have not been sent yet

    Every control method works on in-memory state and returns immediately.
    Only the outcome of each request is asynchronous.

    Example:
        manager = QueueManager(transport.send)
        manager.ensure_queue("commands", pace_interval_ms=1000, capacity=10)
        manager.start("commands")

        future = manager.enqueue(RequestDescriptor(endpoint="v1/server", queue="commands"))
        info = await future
    """

    def __init__(
        self,
        send: SendCallable,
        events: EventEmitter | None = None,
        default_pace_interval_ms: float = 250.0,
        default_capacity: int | None = None,
        default_queue: str = DEFAULT_QUEUE,
    ):
        self._send = send
        self.events = events or EventEmitter()
        self.default_pace_interval_ms = default_pace_interval_ms
        self.default_capacity = default_capacity
        self.default_queue = default_queue
        self._queues: dict[str, RequestQueue] = {}

        self.ensure_queue(default_queue)

    # Registry

    @property
    def queue_names(self) -> list[str]:
        return list(self._queues)

    def __contains__(self, name: object) -> bool:
        return name in self._queues

    def get_queue(self, name: str | None = None) -> RequestQueue | None:
        """Get the state record for a queue, if it exists."""
        return self._queues.get(self._resolve(name))

    def ensure_queue(
        self,
        name: str | None = None,
        pace_interval_ms: float | None = None,
        capacity: int | None = _DEFAULT,
    ) -> RequestQueue:
        """
        Create a queue if it does not exist yet.

        An existing queue keeps its configuration.

        Args:
            name: Queue name
            pace_interval_ms: Minimum gap between requests (manager default if None)
            capacity: Maximum pending requests, None for unbounded

        Returns:
            The queue's state record
        """
        name = self._resolve(name)
        existing = self._queues.get(name)
        if existing is not None:
            return existing

        if pace_interval_ms is None:
            pace_interval_ms = self.default_pace_interval_ms
        if capacity is _DEFAULT:
            capacity = self.default_capacity

        if pace_interval_ms < 0:
            raise ValueError(f"pace_interval_ms must be >= 0, given {pace_interval_ms}")
        if capacity is not None and (not isinstance(capacity, int) or capacity < 0):
            raise ValueError(f"capacity must be a non-negative int or None, given {capacity!r}")

        queue = RequestQueue(name=name, pace_interval_ms=pace_interval_ms, capacity=capacity)
        self._queues[name] = queue
        logger.debug(
            "Queue created",
            queue=name,
            pace_interval_ms=pace_interval_ms,
            capacity=capacity,
        )
        return queue

    def remove_queue(self, name: str | None = None) -> None:
        """
        Stop a queue, reject everything still pending in it, and forget it.

        A request already being sent still completes normally.
        """
        name = self._resolve(name)
        queue = self._queues.get(name)
        if queue is None:
            return

        queue.running = False
        removed = self._reject_pending(queue, was_queue_cleared=True)
        del self._queues[name]
        logger.debug("Queue removed", queue=name, rejected=removed)

    def get_stats(self, name: str | None = None) -> QueueStats:
        """Get statistics for a queue."""
        queue = self._require(name)
        queue.stats.current_queue_size = len(queue.pending)
        return queue.stats

    # Control surface

    def enqueue(self, request: RequestDescriptor, queue: str | None = None) -> asyncio.Future:
        """
        Add a request to the tail of its queue.

        The queue is created with default configuration if it does not exist.
        Must be called from a running event loop.

        Args:
            request: The request to send
            queue: Queue name, overriding ``request.queue``

        Returns:
            Future resolved with the decoded response, or failed with the
            request's error. A full queue yields an already failed future.
        """
        name = self._resolve(queue if queue is not None else request.queue)
        record = self.ensure_queue(name)
        future = asyncio.get_running_loop().create_future()

        if record.is_full:
            record.stats.total_dropped += 1
            logger.warning("Queue full, dropping request", queue=name, capacity=record.capacity)
            self.events.emit(EventType.QUEUE_FULL, name, capacity=record.capacity)
            future.set_exception(QueueFullError(name, record.capacity))
            return future

        record.pending.append(WorkItem(request=request, future=future))
        record.stats.total_queued += 1

        if record.running and not record.dispatching:
            self._spawn(record)
        return future

    def cancel(self, name: str | None, index: int) -> bool:
        """
        Remove the pending request at ``index`` without sending it.

        Returns:
            True if a request was removed
        """
        queue = self._queues.get(self._resolve(name))
        if queue is None:
            return False
        try:
            item = queue.pending[index]
        except IndexError:
            return False

        del queue.pending[index]
        queue.stats.total_removed += 1
        item.fail(RemovedFromQueueError(was_queue_cleared=False))
        logger.debug("Request removed from queue", queue=queue.name, index=index)
        return True

    def clear(self, name: str | None = None) -> int:
        """
        Reject every pending request in a queue.

        The queue keeps running and accepts new requests.

        Returns:
            Number of requests rejected
        """
        queue = self._queues.get(self._resolve(name))
        if queue is None:
            return 0
        removed = self._reject_pending(queue, was_queue_cleared=True)
        if removed:
            logger.debug("Queue cleared", queue=queue.name, rejected=removed)
        return removed

    def start(self, name: str | None = None) -> None:
        """Let a queue advance automatically, dispatching at once if idle."""
        queue = self.ensure_queue(name)
        queue.running = True
        if queue.pending and not queue.dispatching:
            self._spawn(queue)

    def stop(self, name: str | None = None) -> None:
        """
        Stop a queue from advancing automatically.

        A request already being sent still completes and resolves.
        """
        queue = self._queues.get(self._resolve(name))
        if queue is not None:
            queue.running = False

    def stop_and_clear(self, name: str | None = None) -> int:
        """Stop a queue, then reject everything pending in it."""
        self.stop(name)
        return self.clear(name)

    async def join(self, name: str | None = None) -> None:
        """Wait until the queue's dispatcher, if any, goes idle."""
        queue = self._queues.get(self._resolve(name))
        if queue is not None and queue.task is not None:
            await asyncio.shield(queue.task)

    async def aclose(self) -> None:
        """Stop every queue, reject pending requests and cancel dispatchers."""
        tasks = []
        for queue in self._queues.values():
            queue.running = False
            self._reject_pending(queue, was_queue_cleared=True)
            if queue.task is not None:
                queue.task.cancel()
                tasks.append(queue.task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # Dispatcher

    def _spawn(self, queue: RequestQueue) -> None:
        # Set before the task runs so back-to-back enqueues spawn only one
        queue.dispatching = True
        queue.task = asyncio.get_running_loop().create_task(
            self._run(queue), name=f"prcapi-queue-{queue.name}"
        )

    def _is_current(self, queue: RequestQueue) -> bool:
        return self._queues.get(queue.name) is queue

    async def _run(self, queue: RequestQueue) -> None:
        """Send the queue's requests one at a time until it is empty or stopped."""
        try:
            while self._is_current(queue) and queue.pending:
                wait = queue.last_dispatch_at + queue.pace_interval_ms / 1000 - time.monotonic()
                if wait > 0:
                    await asyncio.sleep(wait)

                # The queue may have been cleared or removed while pacing
                if not self._is_current(queue) or not queue.pending:
                    break

                item = queue.pending.popleft()
                if item.future.cancelled():
                    continue

                delay_ms = await self._dispatch(queue, item)

                if not queue.running:
                    break
                await asyncio.sleep(delay_ms / 1000)
                if not queue.running:
                    break
        finally:
            queue.dispatching = False
            queue.task = None

    async def _dispatch(self, queue: RequestQueue, item: WorkItem) -> float:
        """
        Send one request and resolve its future.

        Returns:
            Delay in milliseconds before the queue may advance again
        """
        request = item.request
        try:
            result = await self._send(request)
        except asyncio.CancelledError:
            item.future.cancel()
            raise
        except Exception as e:
            extension = backoff_extension_ms(e)
            queue.stats.total_failed += 1

            logger.warning(
                "Request failed in queue",
                queue=queue.name,
                endpoint=request.endpoint,
                method=request.method,
                error=str(e),
                error_type=type(e).__name__,
                backoff_ms=extension,
            )
            self.events.emit(
                EventType.DISPATCH_FAILED,
                queue.name,
                error=e,
                endpoint=request.endpoint,
                method=request.method,
            )
            if isinstance(e, ResponseNotOKError) and e.is_rate_limited:
                queue.stats.rate_limit_hits += 1
                self.events.emit(
                    EventType.RATE_LIMITED,
                    queue.name,
                    error=e,
                    retry_after_ms=extension,
                )

            item.fail(e)
            queue.last_dispatch_at = time.monotonic()
            return queue.pace_interval_ms + extension

        item.fulfil(result)
        queue.last_dispatch_at = time.monotonic()
        queue.stats.total_processed += 1
        self.events.emit(
            EventType.REQUEST_COMPLETED,
            queue.name,
            endpoint=request.endpoint,
            method=request.method,
        )
        return queue.pace_interval_ms

    # Helpers

    def _resolve(self, name: str | None) -> str:
        if name is None:
            return self.default_queue
        if not isinstance(name, str):
            raise TypeError(f"Expected queue name to be a string, given {type(name).__name__}")
        return name

    def _require(self, name: str | None) -> RequestQueue:
        resolved = self._resolve(name)
        queue = self._queues.get(resolved)
        if queue is None:
            raise KeyError(f"Unknown queue: {resolved}")
        return queue

    def _reject_pending(self, queue: RequestQueue, was_queue_cleared: bool) -> int:
        # Swap first so the queue is already empty while callbacks run
        saved, queue.pending = queue.pending, deque()
        for item in saved:
            item.fail(RemovedFromQueueError(was_queue_cleared=was_queue_cleared))
        queue.stats.total_removed += len(saved)
        return len(saved)
