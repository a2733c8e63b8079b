"""
prcapi - Police Roleplay Community API client

An asyncio client for the PRC private server API with named, paced request
queues that respect the API's rate limits.
"""

__version__ = "1.0.0"
__author__ = "prcapi Team"

from prcapi.client import PRCClient, PrivateServer, deep_link_from_join_code
from prcapi.core.models import (
    AccountVerificationRequirement,
    DeepLinkFormat,
    PermissionLevel,
    RequestDescriptor,
    ServerInfo,
)
from prcapi.observability.events import Event, EventEmitter, EventType
from prcapi.queue import QueueFullError, QueueManager, RemovedFromQueueError
from prcapi.transport import (
    BaseTransport,
    HttpTransport,
    PRCError,
    ResponseNotOKError,
    ResponseNotValidError,
    TransportError,
)

__all__ = [
    "PRCClient",
    "PrivateServer",
    "deep_link_from_join_code",
    "AccountVerificationRequirement",
    "DeepLinkFormat",
    "PermissionLevel",
    "RequestDescriptor",
    "ServerInfo",
    "Event",
    "EventEmitter",
    "EventType",
    "QueueFullError",
    "QueueManager",
    "RemovedFromQueueError",
    "BaseTransport",
    "HttpTransport",
    "PRCError",
    "ResponseNotOKError",
    "ResponseNotValidError",
    "TransportError",
]
