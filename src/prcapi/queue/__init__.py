"""
Request queue module.

Paces requests per named queue so the API's rate limits are respected.
"""

from prcapi.queue.backoff import backoff_extension_ms
from prcapi.queue.scheduler import (
    QueueFullError,
    QueueManager,
    QueueStats,
    RemovedFromQueueError,
    RequestQueue,
    WorkItem,
)

__all__ = [
    "QueueFullError",
    "QueueManager",
    "QueueStats",
    "RemovedFromQueueError",
    "RequestQueue",
    "WorkItem",
    "backoff_extension_ms",
]
