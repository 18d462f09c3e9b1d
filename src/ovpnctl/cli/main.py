"""CLI entry point for ovpnctl.

``ovpnctl serve`` hosts the control plane. The other commands talk to a
running server, except ``parse`` which validates a file locally.
"""

import asyncio
import os
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from .. import __version__
from ..api_client import OvpnctlAPIClient
from ..util.error import format_error

app = typer.Typer(
    name="ovpnctl",
    help="ovpnctl - control plane for an OpenVPN client",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()

URL_ENV = "OVPNCTL_URL"


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        console.print(f"ovpnctl {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """ovpnctl - control plane for an OpenVPN client."""


def resolve_base_url(url: Optional[str]) -> str:
    """Explicit ``--url``, then ``OVPNCTL_URL``, then the ``server`` config section."""
    if url:
        return url.rstrip("/")
    env_url = os.environ.get(URL_ENV)
    if env_url:
        return env_url.rstrip("/")

    from ..core.config import ConfigManager
    from ..server.server import DEFAULT_HOST, DEFAULT_PORT

    cfg = asyncio.run(ConfigManager().get())
    host = (cfg.server.hostname if cfg.server else None) or DEFAULT_HOST
    port = (cfg.server.port if cfg.server else None) or DEFAULT_PORT
    return f"http://{host}:{port}"


def create_client(base_url: str) -> OvpnctlAPIClient:
    return OvpnctlAPIClient(base_url=base_url)


def _fail(error: Exception) -> None:
    message = format_error(error)
    if message is None:
        message = f"{type(error).__name__}: {error}"
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(1)


def _remote(url: Optional[str], fn: Callable[[OvpnctlAPIClient], Awaitable[None]]) -> None:
    from ..api_client import ApiClientError
    from ..core.config import ConfigError
    from ..ovpn import TransferError

    try:
        base_url = resolve_base_url(url)
    except ConfigError as e:
        _fail(e)

    async def run() -> None:
        client = create_client(base_url)
        try:
            await fn(client)
        finally:
            await client.aclose()

    try:
        asyncio.run(run())
    except (ApiClientError, ConfigError, TransferError, OSError, UnicodeDecodeError) as e:
        _fail(e)


URL_OPTION = typer.Option(
    None,
    "--url",
    "-u",
    help="Server URL (defaults to $OVPNCTL_URL or the configured server)",
)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Hostname to bind"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on"),
    ephemeral: bool = typer.Option(
        False,
        "--ephemeral",
        help="Keep the config in memory only",
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="debug, info, warn or error"),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="kv, json or pretty"),
    access_log: Optional[bool] = typer.Option(
        None,
        "--access-log/--no-access-log",
        help="Log every HTTP request",
    ),
):
    """Run the control plane server."""
    from ..core.config import ConfigError
    from .cmd import serve as serve_module

    try:
        serve_module.serve_command(
            host=host,
            port=port,
            ephemeral=ephemeral,
            log_level=log_level,
            log_format=log_format,
            access_log=access_log,
        )
    except (ConfigError, ValueError) as e:
        _fail(e)


@app.command()
def status(url: Optional[str] = URL_OPTION):
    """Show connection status and the active server."""
    from .cmd.remote import status_command

    _remote(url, status_command)


@app.command()
def connect(
    file: Optional[Path] = typer.Argument(
        None,
        help="Config file to apply first (.ovpn or .conf); defaults to the saved config",
    ),
    url: Optional[str] = URL_OPTION,
):
    """Connect using a config file or the saved config."""
    from .cmd.remote import connect_command

    _remote(url, lambda client: connect_command(client, file))


@app.command()
def disconnect(url: Optional[str] = URL_OPTION):
    """Disconnect."""
    from .cmd.remote import disconnect_command

    _remote(url, disconnect_command)


@app.command()
def save(
    file: str = typer.Argument("-", help="File holding config text, or - for stdin"),
    url: Optional[str] = URL_OPTION,
):
    """Save config text as the active config."""
    from .cmd.remote import save_command

    _remote(url, lambda client: save_command(client, file))


@app.command()
def show(url: Optional[str] = URL_OPTION):
    """Print the saved config text."""
    from .cmd.remote import show_command

    _remote(url, show_command)


@app.command("import")
def import_(
    file: Path = typer.Argument(..., help="Config file (.ovpn or .conf)"),
    url: Optional[str] = URL_OPTION,
):
    """Import a config file and save it."""
    from .cmd.remote import import_command

    _remote(url, lambda client: import_command(client, file))


@app.command()
def export(
    target: Path = typer.Argument(
        Path("."),
        help="Destination file or directory (directories get vpn-config.ovpn)",
    ),
    url: Optional[str] = URL_OPTION,
):
    """Write the saved config to a file."""
    from .cmd.remote import export_command

    _remote(url, lambda client: export_command(client, target))


@app.command()
def watch(
    count: Optional[int] = typer.Option(
        None,
        "--count",
        "-n",
        help="Stop after this many events",
    ),
    url: Optional[str] = URL_OPTION,
):
    """Stream connection changes as they happen."""
    from .cmd.remote import watch_command

    try:
        _remote(url, lambda client: watch_command(client, count))
    except KeyboardInterrupt:
        pass


@app.command()
def parse(
    file: str = typer.Argument("-", help="Config file, or - for stdin"),
    json_output: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """Validate a config locally and show what was found."""
    from .cmd.parse import parse_command

    try:
        parse_command(file, json_output=json_output)
    except (OSError, UnicodeDecodeError) as e:
        _fail(e)


if __name__ == "__main__":
    app()
