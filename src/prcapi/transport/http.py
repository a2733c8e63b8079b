"""
HTTP transport built on httpx.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from prcapi.core.models import RequestDescriptor
from prcapi.transport.base import (
    BaseTransport,
    ResponseNotOKError,
    ResponseNotValidError,
    TransportError,
)

logger = structlog.get_logger()


class HttpTransport(BaseTransport):
    """
    Sends requests with a shared httpx.AsyncClient.

    Example:
        transport = HttpTransport("https://api.policeroleplay.community")
        info = await transport.send(RequestDescriptor(endpoint="v1/server"))
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._client

    async def send(self, request: RequestDescriptor) -> Any:
        client = self._get_client()
        kwargs: dict[str, Any] = {"headers": request.headers}
        if request.body is not None:
            kwargs["json"] = request.body

        try:
            response = await client.request(request.method, request.endpoint, **kwargs)
        except httpx.HTTPError as e:
            logger.debug(
                "Transport error",
                endpoint=request.endpoint,
                method=request.method,
                error=str(e),
            )
            raise TransportError(f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise ResponseNotOKError(
                status=response.status_code,
                status_text=response.reason_phrase,
                body=_try_json(response),
                headers=response.headers,
            )

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ResponseNotValidError(
                "Expected JSON response from server, did not receive it. "
                "This is usually a server error."
            ) from e

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def _try_json(response: httpx.Response) -> Any | None:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
