"""API client and private server mapping."""

from prcapi.client.app import PRCClient
from prcapi.client.links import deep_link_from_join_code
from prcapi.client.server import PrivateServer

__all__ = [
    "PRCClient",
    "PrivateServer",
    "deep_link_from_join_code",
]
