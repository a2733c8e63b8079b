"""Core configuration and data models."""

from prcapi.core.config import Settings, get_settings, reload_settings
from prcapi.core.models import (
    DEFAULT_QUEUE,
    AccountVerificationRequirement,
    DeepLinkFormat,
    PermissionLevel,
    RequestDescriptor,
    ServerInfo,
)

__all__ = [
    "Settings",
    "get_settings",
    "reload_settings",
    "DEFAULT_QUEUE",
    "AccountVerificationRequirement",
    "DeepLinkFormat",
    "PermissionLevel",
    "RequestDescriptor",
    "ServerInfo",
]
