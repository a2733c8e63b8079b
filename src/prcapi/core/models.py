"""
Core data models for prcapi.

Defines the request descriptor consumed by the queue scheduler and the typed
shapes returned by the private server endpoints.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_QUEUE = "main"


class AccountVerificationRequirement(str, Enum):
    """Roblox account verification level required to join a server."""

    NONE = "Disabled"
    EMAIL = "Email"
    # Phone number, or age verified with government ID
    PHONE_OR_ID = "Phone/ID"


class DeepLinkFormat(str, Enum):
    """Ways of linking a player straight into a private server."""

    VIA_PRC_WEBSITE = "prcWebsite"  # https://policeroleplay.community/join/<code>
    VIA_ROBLOX_WEB = "viaRobloxWeb"  # https://www.roblox.com/games/start
    DIRECT = "directToApp"  # roblox://


class PermissionLevel(str, Enum):
    """In-game permission levels."""

    NONE = "Normal"
    ADMINISTRATOR = "Server Administrator"
    OWNER = "Server Owner"
    MODERATOR = "Server Moderator"


class RequestDescriptor(BaseModel):
    """
    One unit of outbound work.

    The scheduler routes it by ``queue`` and hands it untouched to the
    transport, which resolves ``endpoint`` against its base URL.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str
    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any | None = None
    queue: str = DEFAULT_QUEUE

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        return v.upper()

    @field_validator("queue", mode="before")
    @classmethod
    def default_queue(cls, v: Any) -> Any:
        return v or DEFAULT_QUEUE


class ServerInfo(BaseModel):
    """Private server status as returned by ``v1/server``."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="Name")
    owner_user_id: int = Field(alias="OwnerId")
    co_owner_user_ids: list[int] = Field(default_factory=list, alias="CoOwnerIds")
    player_count: int = Field(alias="CurrentPlayers")
    # One slot is always reserved for the owner
    max_player_count: int = Field(alias="MaxPlayers")
    # Unique but changeable; do not use as a server ID
    join_code: str = Field(alias="JoinKey")
    account_verification_required: AccountVerificationRequirement = Field(
        alias="AccVerifiedReq"
    )
    auto_team_balance_enabled: bool = Field(alias="TeamBalance")
