"""Transports that carry requests to the API."""

from prcapi.transport.base import (
    BaseTransport,
    PRCError,
    ResponseNotOKError,
    ResponseNotValidError,
    TransportError,
)
from prcapi.transport.http import HttpTransport

__all__ = [
    "BaseTransport",
    "HttpTransport",
    "PRCError",
    "ResponseNotOKError",
    "ResponseNotValidError",
    "TransportError",
]
