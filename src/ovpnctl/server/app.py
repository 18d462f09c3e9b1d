"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..runtime import AppContext
from .errors import register_error_handlers
from .middleware import AccessLogMiddleware
from .routes import channel, events, requests, system
from .schemas import ErrorResponse


def create_app(
    ctx: AppContext,
    *,
    manage_lifecycle: bool = False,
    access_log: bool = True,
    cors: Sequence[str] | None = None,
) -> FastAPI:
    """Create a FastAPI application.

    ``ctx`` is the application-level service container. With
    ``manage_lifecycle`` the app starts and stops it from its lifespan;
    otherwise the caller owns that.
    """

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        await ctx.startup()
        try:
            yield
        finally:
            await ctx.shutdown()

    app = FastAPI(
        title="ovpnctl API",
        version=__version__,
        openapi_version="3.1.0",
        lifespan=_lifespan if manage_lifecycle else None,
        responses={
            400: {"model": ErrorResponse},
            422: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
        },
    )
    app.state.ctx = ctx

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors) if cors else ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(AccessLogMiddleware, enabled=access_log)
    register_error_handlers(app)

    app.include_router(system.router)
    app.include_router(requests.router)
    app.include_router(events.router)
    app.include_router(channel.router)
    return app
