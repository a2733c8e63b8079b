"""
Base transport interface and error types.

A transport turns a RequestDescriptor into a decoded JSON value or raises one
of the errors below. The queue scheduler depends on nothing else.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Mapping

from prcapi.core.models import RequestDescriptor


class PRCError(Exception):
    """Base exception for prcapi errors."""


class TransportError(PRCError):
    """Raised when the request never produced an HTTP response."""


class ResponseNotOKError(PRCError):
    """Raised when the server answers with a status outside 200-299."""

    def __init__(
        self,
        status: int,
        status_text: str = "",
        body: Any | None = None,
        headers: Mapping[str, str] | None = None,
    ):
        super().__init__(
            "Received a response that did not have an OK status. "
            f"Received {status} ({status_text}), expected a response between 200-299."
        )
        self.status = status
        self.status_text = status_text
        self.body = body
        # Header names are stored lower-cased
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}

        self.is_client_error = 400 <= status < 500
        self.is_server_error = 500 <= status < 600

        self.error_code = body.get("code") if isinstance(body, dict) else None
        self.error_text = body.get("message") if isinstance(body, dict) else None

    @property
    def is_rate_limited(self) -> bool:
        return self.status == 429

    @property
    def retry_after(self) -> float | None:
        """Seconds from the ``retry-after`` header, if present and numeric."""
        raw = self.headers.get("retry-after")
        if raw is None:
            return None
        try:
            value = float(raw)
        except ValueError:
            # HTTP-date form is not used by the API
            return None
        if not math.isfinite(value) or value < 0:
            return None
        return value


class ResponseNotValidError(PRCError):
    """Raised when a successful response body is not what was expected."""

    def __init__(self, message: str):
        super().__init__(f"Response received from server was not what was expected: {message}")


class BaseTransport(ABC):
    """
    Abstract base class for transports.

    Implementations must provide send() and may override aclose().
    """

    @abstractmethod
    async def send(self, request: RequestDescriptor) -> Any:
        """
        Issue the request and decode the response.

        Args:
            request: The request to send

        Returns:
            The decoded JSON body

        Raises:
            TransportError, ResponseNotOKError, ResponseNotValidError
        """
        ...

    async def aclose(self) -> None:
        """Release any held resources."""
