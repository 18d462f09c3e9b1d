"""Request ID and access logging as raw ASGI middleware."""

from __future__ import annotations

import secrets
import time
from typing import Any, Awaitable, Callable, MutableMapping

from ..util.log import Log

Scope = MutableMapping[str, Any]
Message = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]

REQUEST_ID_HEADER = b"x-request-id"

access = Log.create({"service": "server.access"})


def request_id_for(scope: Scope) -> str:
    """Incoming ``X-Request-ID`` if the client sent one, else a fresh ID."""
    for name, value in scope.get("headers", []):
        if name == REQUEST_ID_HEADER:
            return value.decode("latin-1")
    return secrets.token_hex(8)


class AccessLogMiddleware:
    """Tags each HTTP request with an ID and logs one line when it ends.

    The ID is stored in ``request.state.request_id`` and echoed as
    ``X-Request-ID``. For the SSE stream the line is written once the
    client goes away. WebSocket and lifespan traffic pass straight through.
    """

    def __init__(self, app: ASGIApp, enabled: bool = True) -> None:
        self.app = app
        self.enabled = enabled

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        rid = request_id_for(scope)
        scope.setdefault("state", {})["request_id"] = rid
        started = time.perf_counter()
        status: int | None = None

        async def send_with_id(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
                message["headers"] = [*message.get("headers", []), (REQUEST_ID_HEADER, rid.encode())]
            await send(message)

        def fields() -> dict[str, Any]:
            client = scope.get("client")
            return {
                "request_id": rid,
                "method": scope.get("method"),
                "path": scope.get("path"),
                "status": status,
                "client": client[0] if client else None,
                "ms": round((time.perf_counter() - started) * 1000),
            }

        try:
            await self.app(scope, receive, send_with_id)
        except Exception as e:
            if self.enabled:
                access.error("request failed", {**fields(), "error": str(e)})
            raise
        if self.enabled:
            access.info("request", fields())
