#!/usr/bin/env python3
"""
Basic usage examples for prcapi.

Set PRC_SERVER_KEY (and optionally PRC_API_AUTHORIZATION_KEY) before running.
"""

import asyncio
import os

from prcapi import DeepLinkFormat, EventType, PRCClient, QueueFullError
from prcapi.utils import setup_logging


async def server_status(client: PRCClient, server_key: str):
    """Read a server's status through the main queue."""
    print("\n=== Server Status ===\n")

    server = client.get_private_server(server_key)
    info = await server.get_info()

    print(f"Name: {info.name}")
    print(f"Players: {info.player_count}/{info.max_player_count}")
    print(f"Join link: {await server.get_deep_link(DeepLinkFormat.VIA_ROBLOX_WEB)}")


async def paced_commands(client: PRCClient, server_key: str):
    """Send commands on their own slower, bounded queue."""
    print("\n=== Paced Commands ===\n")

    client.add_queue("commands", pace_interval_ms=5000, capacity=3)
    client.start_queue("commands")
    server = client.get_private_server(server_key)
    server.default_queue = "commands"

    pending = [
        asyncio.ensure_future(server.send_command(f"h Announcement {i}"))
        for i in range(5)
    ]
    for i, result in enumerate(await asyncio.gather(*pending, return_exceptions=True)):
        if isinstance(result, QueueFullError):
            print(f"Command {i}: dropped, queue full")
        elif isinstance(result, Exception):
            print(f"Command {i}: failed ({result})")
        else:
            print(f"Command {i}: sent")


async def main():
    setup_logging(level="INFO", json_format=False)
    server_key = os.environ["PRC_SERVER_KEY"]

    async with PRCClient() as client:

        @client.on(EventType.DISPATCH_FAILED)
        async def report(event):
            print(f"[{event.queue}] request failed: {event.error}")

        client.start_queue()
        await server_status(client, server_key)
        await paced_commands(client, server_key)


if __name__ == "__main__":
    asyncio.run(main())
