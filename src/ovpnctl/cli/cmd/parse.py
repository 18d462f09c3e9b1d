"""Parse command - validate a config file locally."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ...ovpn import ParseFailure, describe, parse

console = Console()


def parse_command(file: str, *, json_output: bool = False) -> None:
    raw = sys.stdin.read() if file == "-" else Path(file).read_bytes().decode("utf-8")
    try:
        config = parse(raw)
    except ParseFailure as failure:
        if json_output:
            typer.echo(json.dumps({"ok": False, "kind": failure.kind.value, "error": failure.detail}))
        else:
            console.print(f"[red]Invalid config:[/red] {failure.detail}")
        raise typer.Exit(1)

    details = describe(config)
    if json_output:
        typer.echo(json.dumps({"ok": True, **details}))
        return

    table = Table(title="Parsed config", show_header=False)
    table.add_column(style="cyan")
    table.add_column()
    table.add_row("Server", details["server"])
    for index, remote in enumerate(config.remotes[1:], start=2):
        table.add_row(f"Remote {index}", str(remote))
    if config.cipher:
        table.add_row("Cipher", config.cipher)
    if config.auth_method is not None:
        table.add_row("Auth", config.auth_method.label)
    for name in sorted(config.certificates):
        table.add_row(f"<{name}>", f"{len(config.certificates[name])} bytes")
    console.print(table)
