"""Serve command - run the control plane over HTTP."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence

from rich.console import Console

from ...core.config import ConfigManager, ServerConfig, StorageConfig
from ...runtime import AppContext, bootstrap_logging
from ...server.server import DEFAULT_HOST, DEFAULT_PORT, Server
from ...util.log import Log

log = Log.create({"service": "cli.serve"})
console = Console()


async def _wait_forever() -> None:
    await asyncio.Future()


async def serve(
    *,
    ctx: AppContext,
    host: str,
    port: int,
    access_log: bool = True,
    cors: Sequence[str] | None = None,
    wait: Callable[[], Awaitable[None]] | None = None,
) -> None:
    info = await Server.start(ctx, host=host, port=port, access_log=access_log, cors=cors)
    console.print(f"[green]ovpnctl[/green] control plane running at {info.url}")
    log.info("server running", {"host": host, "port": port})

    block = wait or _wait_forever
    try:
        await block()
    finally:
        await Server.stop()
        log.info("server shut down", {"host": host, "port": port})


def serve_command(
    *,
    host: str | None,
    port: int | None,
    ephemeral: bool,
    log_level: str | None,
    log_format: str | None,
    access_log: bool | None,
) -> None:
    manager = ConfigManager()
    settings = bootstrap_logging(
        mode="web",
        config=manager,
        level=log_level,
        format=log_format,
        access_log=access_log,
    )
    cfg = asyncio.run(manager.get())
    if ephemeral:
        cfg = cfg.model_copy(update={"storage": StorageConfig(backend="memory")})
    server_cfg = cfg.server or ServerConfig()

    ctx = AppContext(cfg)
    try:
        asyncio.run(serve(
            ctx=ctx,
            host=host or server_cfg.hostname or DEFAULT_HOST,
            port=port or server_cfg.port or DEFAULT_PORT,
            access_log=settings.access_log,
            cors=server_cfg.cors,
        ))
    except KeyboardInterrupt:
        console.print("\nStopping ovpnctl...")
