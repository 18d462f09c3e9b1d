"""WebSocket standing channel.

The socket receives ``init`` and ``status`` pushes like any other
subscriber. Text frames sent by the client are gateway requests; each is
answered with ``{"type": "response", ...}`` echoing the request ``id``
when one was given. Replies travel through the same queue as pushes, so
a single task writes to the socket.
"""

from __future__ import annotations

import asyncio
import json
from contextlib import suppress
from typing import Any

from fastapi import APIRouter, Depends, WebSocket
from starlette.websockets import WebSocketDisconnect

from ...connection import QueueChannel
from ...runtime import AppContext
from ...util.log import Log
from ..deps import resolve_app_context

log = Log.create({"service": "server.channel"})

router = APIRouter(tags=["channel"])


async def _pump(websocket: WebSocket, channel: QueueChannel) -> None:
    try:
        async for message in channel:
            await websocket.send_json(message)
    except Exception as e:
        log.debug("websocket write failed", {"channel": channel.id, "error": str(e)})
    finally:
        # pushes to a closed channel fail, which prunes it from the broadcaster
        channel.close()


async def _reply(ctx: AppContext, text: str) -> dict[str, Any]:
    try:
        message = json.loads(text)
    except json.JSONDecodeError as e:
        return {
            "type": "response",
            "success": False,
            "error": f"Invalid request: malformed JSON ({e.msg})",
            "kind": "invalid_request",
        }

    response = await ctx.gateway.dispatch(message)
    reply: dict[str, Any] = {"type": "response", **response.to_wire()}
    if isinstance(message, dict) and "id" in message:
        reply["id"] = message["id"]
    return reply


@router.websocket("/v1/channel")
async def channel_ws(websocket: WebSocket, ctx: AppContext = Depends(resolve_app_context)) -> None:
    await websocket.accept()
    channel = QueueChannel("ws")
    await ctx.broadcaster.subscribe(channel)
    pump = asyncio.create_task(_pump(websocket, channel))
    log.debug("websocket channel opened", {"channel": channel.id})
    try:
        while True:
            text = await websocket.receive_text()
            reply = await _reply(ctx, text)
            if channel.closed:
                break
            await channel.send(reply)
    except WebSocketDisconnect:
        pass
    finally:
        await ctx.broadcaster.unsubscribe(channel)
        channel.close()
        pump.cancel()
        with suppress(asyncio.CancelledError):
            await pump
        log.debug("websocket channel closed", {"channel": channel.id})
