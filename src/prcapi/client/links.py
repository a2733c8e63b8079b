"""
Deep links that take a player straight into a private server.

See https://create.roblox.com/docs/production/promotion/deeplinks
"""

from __future__ import annotations

import json
from urllib.parse import quote

from prcapi.core.models import DeepLinkFormat

# Emergency Response: Liberty County
PLACE_ID = 2534724415


def _launch_data(join_code: str) -> str:
    # Same escaping as JavaScript's encodeURIComponent
    payload = json.dumps({"psCode": join_code}, separators=(",", ":"))
    return quote(payload, safe="!*'()")


def deep_link_from_join_code(join_code: str, format: DeepLinkFormat | str) -> str:
    """
    Build a join link for a private server.

    Args:
        join_code: The server's current join code
        format: One of DeepLinkFormat (or its string value)

    Returns:
        The link
    """
    format = DeepLinkFormat(format)
    if format is DeepLinkFormat.DIRECT:
        return f"roblox://placeId={PLACE_ID}&launchData={_launch_data(join_code)}"
    if format is DeepLinkFormat.VIA_ROBLOX_WEB:
        return (
            f"https://www.roblox.com/games/start?placeId={PLACE_ID}"
            f"&launchData={_launch_data(join_code)}"
        )
    return f"https://policeroleplay.community/join/{quote(join_code, safe='')}"
