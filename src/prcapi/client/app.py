"""
PRC API client.

Ties settings, transport and request queues together and hands out
PrivateServer objects for individual servers.
"""

from __future__ import annotations

from typing import Any

from prcapi.client.server import PrivateServer
from prcapi.core.config import Settings, get_settings
from prcapi.core.models import RequestDescriptor
from prcapi.observability.events import EventEmitter, EventHandler, EventType
from prcapi.queue.scheduler import QueueManager, QueueStats
from prcapi.transport.base import BaseTransport
from prcapi.transport.http import HttpTransport


class PRCClient:
    """
    Client for the PRC private server API.

    Requests are sent through named queues. The ``main`` queue always exists;
    other queues are created on first use or with ``add_queue``. Queues start
    stopped, so call ``start_queue`` before awaiting queued requests.

    Example:
        async with PRCClient() as client:
            client.start_queue()
            server = client.get_private_server("server-key")
            info = await server.get_info()

            @client.on(EventType.DISPATCH_FAILED)
            async def log_failure(event):
                print(event.error)
    """

    def __init__(
        self,
        authorization_key: str | None = None,
        settings: Settings | None = None,
        transport: BaseTransport | None = None,
        events: EventEmitter | None = None,
    ):
        self.settings = settings or get_settings()

        if authorization_key is None and self.settings.api.authorization_key is not None:
            authorization_key = self.settings.api.authorization_key.get_secret_value()
        self.authorization_key = authorization_key

        self.transport = transport or HttpTransport(
            base_url=self.settings.api.base_url,
            timeout=self.settings.api.timeout,
        )
        self.events = events or EventEmitter()
        self.queues = QueueManager(
            self.transport.send,
            events=self.events,
            default_pace_interval_ms=self.settings.queue.pace_interval_ms,
            default_capacity=self.settings.queue.capacity,
            default_queue=self.settings.queue.default_queue,
        )

    async def __aenter__(self) -> "PRCClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop all queues and close the transport."""
        await self.queues.aclose()
        await self.events.flush()
        await self.transport.aclose()

    def on(
        self,
        event_type: EventType | None = None,
        handler: EventHandler | None = None,
    ):
        """Register a diagnostic event handler. See EventEmitter.on."""
        return self.events.on(event_type, handler)

    def get_headers(self, server_key: str) -> dict[str, str]:
        """Headers for a request to the server identified by ``server_key``."""
        headers = {"Server-Key": server_key}
        if self.authorization_key:
            headers["Authorization"] = self.authorization_key
        headers["Content-Type"] = "application/json"
        headers["Accept"] = "*/*"
        return headers

    def create_request(
        self,
        server_key: str,
        endpoint: str,
        method: str = "GET",
        body: Any | None = None,
        queue: str | None = None,
    ) -> RequestDescriptor:
        return RequestDescriptor(
            endpoint=endpoint,
            method=method,
            headers=self.get_headers(server_key),
            body=body,
            queue=queue or self.queues.default_queue,
        )

    def get_private_server(self, server_key: str) -> PrivateServer:
        if not isinstance(server_key, str):
            raise TypeError(f"Expected server_key to be a string, given {type(server_key).__name__}")
        return PrivateServer(self, server_key)

    async def send_request(self, request: RequestDescriptor) -> Any:
        """Send a request immediately, bypassing the queues."""
        return await self.transport.send(request)

    # Queue control

    def enqueue(self, request: RequestDescriptor, queue: str | None = None):
        """Queue a request. Returns a future for its decoded response."""
        return self.queues.enqueue(request, queue)

    def add_queue(
        self,
        name: str,
        pace_interval_ms: float | None = None,
        capacity: int | None = None,
    ) -> None:
        """Create a queue with explicit configuration (no-op if it exists)."""
        self.queues.ensure_queue(name, pace_interval_ms=pace_interval_ms, capacity=capacity)

    def remove_queue(self, name: str) -> None:
        self.queues.remove_queue(name)

    def start_queue(self, name: str | None = None) -> None:
        self.queues.start(name)

    def stop_queue(self, name: str | None = None) -> None:
        self.queues.stop(name)

    def stop_and_clear_queue(self, name: str | None = None) -> int:
        return self.queues.stop_and_clear(name)

    def clear_queue(self, name: str | None = None) -> int:
        return self.queues.clear(name)

    def remove_from_queue(self, name: str | None, index: int) -> bool:
        return self.queues.cancel(name, index)

    def get_queue_stats(self, name: str | None = None) -> QueueStats:
        return self.queues.get_stats(name)
