"""Commands that talk to a running ovpnctl server."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ...api_client import OvpnctlAPIClient
from ...api_client.types import GatewayResult, PushEvent
from ...ovpn import ParseFailure, describe, parse
from ...ovpn.transfer import read_config_file, write_config_file

console = Console()


def _check(result: GatewayResult) -> GatewayResult:
    if not result.get("success"):
        console.print(f"[red]Error:[/red] {result.get('error') or 'request failed'}")
        raise typer.Exit(1)
    return result


def _status_label(connected: bool) -> str:
    return "[green]connected[/green]" if connected else "[yellow]disconnected[/yellow]"


async def status_command(client: OvpnctlAPIClient) -> None:
    result = _check(await client.get_status())
    console.print(f"Status: {_status_label(bool(result.get('connected')))}")

    info = await client.get_config_details()
    details = info.get("details")
    if not details:
        console.print("[dim]No config saved[/dim]")
        return

    table = Table(show_header=False, box=None)
    table.add_column(style="cyan")
    table.add_column()
    table.add_row("Server", str(details.get("server")))
    if details.get("remotes", 1) != 1:
        table.add_row("Remotes", str(details.get("remotes")))
    if details.get("cipher"):
        table.add_row("Cipher", str(details.get("cipher")))
    if details.get("auth"):
        table.add_row("Auth", str(details.get("auth")))
    proxy = info.get("proxy")
    if proxy:
        table.add_row("Proxy", f"{proxy.get('scheme')}://{proxy.get('host')}:{proxy.get('port')}")
    console.print(table)


async def connect_command(client: OvpnctlAPIClient, file: Optional[Path]) -> None:
    if file is not None:
        raw = read_config_file(file)
    else:
        raw = (await client.get_config()).get("config")
        if not raw:
            console.print("[red]Error:[/red] No config saved; pass a config file")
            raise typer.Exit(1)

    _check(await client.connect(raw))
    console.print(f"Status: {_status_label(True)}")


async def disconnect_command(client: OvpnctlAPIClient) -> None:
    _check(await client.disconnect())
    console.print(f"Status: {_status_label(False)}")


async def save_command(client: OvpnctlAPIClient, file: str) -> None:
    """Save config text from ``file``, or from stdin when ``file`` is ``-``."""
    raw = sys.stdin.read() if file == "-" else Path(file).read_bytes().decode("utf-8")
    _check(await client.save_config(raw))
    console.print("[green]Config saved[/green]")


async def import_command(client: OvpnctlAPIClient, file: Path) -> None:
    raw = read_config_file(file)
    _check(await client.save_config(raw))
    console.print(f"[green]Imported[/green] {file}")


async def show_command(client: OvpnctlAPIClient) -> None:
    raw = _check(await client.get_config()).get("config")
    if not raw:
        console.print("[dim]No config saved[/dim]")
        return
    typer.echo(raw, nl=not raw.endswith("\n"))


async def export_command(client: OvpnctlAPIClient, target: Path) -> None:
    raw = _check(await client.get_config()).get("config")
    written = write_config_file(raw, target)
    console.print(f"[green]Exported[/green] {written}")


def _describe_push(event: PushEvent) -> str:
    state = "connected" if event.get("connected") else "disconnected"
    config = event.get("config")
    if not config:
        return f"{event.get('type')}: {state}"
    try:
        server = describe(parse(config))["server"]
    except ParseFailure:
        server = "unreadable config"
    return f"{event.get('type')}: {state} {server}"


async def watch_command(client: OvpnctlAPIClient, count: Optional[int] = None) -> None:
    """Print pushes from the SSE channel, stopping after ``count`` when given."""
    seen = 0
    async for event in client.stream_events():
        console.print(_describe_push(event))
        seen += 1
        if count is not None and seen >= count:
            return
