"""FastAPI dependencies shared across transport handlers."""

from __future__ import annotations

from starlette.requests import HTTPConnection

from ..runtime import AppContext


def resolve_app_context(conn: HTTPConnection) -> AppContext:
    ctx = getattr(conn.app.state, "ctx", None)
    if ctx is None:
        raise RuntimeError("Application context is not initialized")
    return ctx
