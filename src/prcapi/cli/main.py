"""
Command-line interface for prcapi.

Query and control a private server from the terminal.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from prcapi import __version__
from prcapi.client.app import PRCClient
from prcapi.core.models import DeepLinkFormat
from prcapi.transport.base import PRCError
from prcapi.utils.logging import setup_logging

app = typer.Typer(
    name="prcapi",
    help="Police Roleplay Community private server API client",
    no_args_is_help=True,
)
console = Console()


def get_client(auth_key: str | None) -> PRCClient:
    """Get a client with its main queue running."""
    client = PRCClient(authorization_key=auth_key)
    client.start_queue()
    return client


def _run(coro) -> None:
    try:
        asyncio.run(coro)
    except PRCError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.callback()
def configure(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level"),
):
    """Configure logging for every command."""
    setup_logging(level=log_level, json_format=False)


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold cyan]prcapi[/bold cyan] v{__version__}")


@app.command()
def info(
    server_key: str = typer.Argument(..., help="The private server's Server-Key"),
    auth_key: Optional[str] = typer.Option(None, "--auth-key", "-a", help="Application authorization key"),
):
    """Show a private server's status."""

    async def run():
        async with get_client(auth_key) as client:
            server_info = await client.get_private_server(server_key).get_info()

        table = Table(title=server_info.name, show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Players", f"{server_info.player_count}/{server_info.max_player_count}")
        table.add_row("Join code", server_info.join_code)
        table.add_row("Owner", str(server_info.owner_user_id))
        table.add_row("Co-owners", ", ".join(map(str, server_info.co_owner_user_ids)) or "-")
        table.add_row("Verification", server_info.account_verification_required.value)
        table.add_row("Team balance", "on" if server_info.auto_team_balance_enabled else "off")
        console.print(table)

    _run(run())


@app.command()
def command(
    server_key: str = typer.Argument(..., help="The private server's Server-Key"),
    text: str = typer.Argument(..., help="Command to run, e.g. ':h Hello'"),
    auth_key: Optional[str] = typer.Option(None, "--auth-key", "-a", help="Application authorization key"),
):
    """Run an in-game command."""

    async def run():
        async with get_client(auth_key) as client:
            await client.get_private_server(server_key).send_command(text)
        console.print("[green]Command sent[/green]")

    _run(run())


@app.command()
def link(
    server_key: str = typer.Argument(..., help="The private server's Server-Key"),
    format: DeepLinkFormat = typer.Option(DeepLinkFormat.VIA_PRC_WEBSITE, "--format", "-f", help="Link format"),
    auth_key: Optional[str] = typer.Option(None, "--auth-key", "-a", help="Application authorization key"),
):
    """Print a join link for a private server."""

    async def run():
        async with get_client(auth_key) as client:
            url = await client.get_private_server(server_key).get_deep_link(format)
        console.print(url)

    _run(run())


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
