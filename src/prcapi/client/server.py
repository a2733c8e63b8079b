"""
Typed access to one private server's endpoints.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from prcapi.client.links import deep_link_from_join_code
from prcapi.core.models import DeepLinkFormat, RequestDescriptor, ServerInfo
from prcapi.transport.base import ResponseNotValidError

if TYPE_CHECKING:
    from prcapi.client.app import PRCClient


class PrivateServer:
    """
    A private server reachable with its Server-Key.

    Every call goes through the client's queues, so it is paced together with
    everything else sent on the same queue.

    Example:
        server = client.get_private_server("server-key")
        info = await server.get_info()
        await server.send_command("h Welcome!")
    """

    def __init__(self, client: PRCClient, server_key: str, default_queue: str | None = None):
        self.client = client
        self.server_key = server_key
        self.default_queue = default_queue or client.queues.default_queue

    def create_request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any | None = None,
        queue: str | None = None,
    ) -> RequestDescriptor:
        return self.client.create_request(
            self.server_key,
            endpoint,
            method=method,
            body=body,
            queue=queue or self.default_queue,
        )

    async def queue_request(self, request: RequestDescriptor) -> Any:
        """Queue a request and wait for its decoded response."""
        return await self.client.enqueue(request)

    async def send_request(self, request: RequestDescriptor) -> Any:
        """Send a request immediately, bypassing the queues."""
        return await self.client.send_request(request)

    async def get_info(self, queue: str | None = None) -> ServerInfo:
        """
        Get the server's name, owners, player counts and join settings.

        Raises:
            ResponseNotOKError, ResponseNotValidError, TransportError,
            QueueFullError, RemovedFromQueueError
        """
        data = await self.queue_request(self.create_request("v1/server", queue=queue))
        try:
            return ServerInfo.model_validate(data)
        except ValidationError as e:
            raise ResponseNotValidError(f"Unexpected server info shape: {e}") from e

    async def send_command(self, command: str, queue: str | None = None) -> None:
        """
        Run an in-game command as the server.

        A leading ``:`` is added when missing.
        """
        if not command.startswith(":"):
            command = ":" + command
        await self.queue_request(
            self.create_request(
                "v1/server/command",
                method="POST",
                body={"command": command},
                queue=queue,
            )
        )

    async def get_deep_link(
        self,
        format: DeepLinkFormat | str = DeepLinkFormat.VIA_PRC_WEBSITE,
        queue: str | None = None,
    ) -> str:
        """Build a join link using the server's current join code."""
        format = DeepLinkFormat(format)
        info = await self.get_info(queue)
        return deep_link_from_join_code(info.join_code, format)
