"""uvicorn-backed server lifecycle.

Example:
    from ovpnctl.runtime import AppContext
    from ovpnctl.server import Server

    info = await Server.start(AppContext(), port=4477)
    print(f"Server running at {info.url}")
    await Server.stop()
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from fastapi import FastAPI

from ..runtime import AppContext
from ..util.log import Log
from .app import create_app

log = Log.create({"service": "server"})

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 4477


@dataclass
class ServerInfo:
    """Information about a running server.

    Attributes:
        host: Server hostname
        port: Server port
    """
    host: str
    port: int

    @property
    def url(self) -> str:
        """Get the full server URL."""
        return f"http://{self.host}:{self.port}"


class Server:
    """HTTP server hosting the control plane for one ``AppContext``."""

    _app: Optional[FastAPI] = None
    _ctx: Optional[AppContext] = None
    _server: Optional[Any] = None
    _task: Optional[asyncio.Task] = None
    _info: Optional[ServerInfo] = None

    @classmethod
    async def start(
        cls,
        ctx: AppContext,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        *,
        access_log: bool = True,
        cors: Sequence[str] | None = None,
    ) -> ServerInfo:
        """Start the runtime and the HTTP server.

        Returns:
            ServerInfo with connection details
        """
        import uvicorn

        await ctx.startup()
        cls._ctx = ctx
        cls._app = create_app(ctx, access_log=access_log, cors=cors)

        config = uvicorn.Config(
            cls._app,
            host=host,
            port=port,
            log_level="warning",
        )

        cls._server = uvicorn.Server(config)
        cls._info = ServerInfo(host=host, port=port)

        log.info("starting server", {"host": host, "port": port})

        cls._task = asyncio.create_task(cls._server.serve())

        while not cls._server.started:
            if cls._task.done():
                # serve() returned early, typically a bind failure
                error = cls._task.exception()
                await cls._reset()
                raise RuntimeError(f"server failed to start on {host}:{port}") from error
            await asyncio.sleep(0.1)

        log.info("server started", {"url": cls._info.url})
        return cls._info

    @classmethod
    async def stop(cls) -> None:
        """Stop the HTTP server and the runtime."""
        if cls._server is None:
            return
        log.info("stopping server")
        cls._server.should_exit = True
        if cls._task is not None:
            await cls._task
        await cls._reset()
        log.info("server stopped")

    @classmethod
    def info(cls) -> Optional[ServerInfo]:
        """Get information about the running server."""
        return cls._info

    @classmethod
    async def _reset(cls) -> None:
        if cls._ctx is not None:
            await cls._ctx.shutdown()
        cls._app = None
        cls._ctx = None
        cls._server = None
        cls._task = None
        cls._info = None
