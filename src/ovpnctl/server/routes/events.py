"""Server-sent events standing channel."""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ...connection import Broadcaster, QueueChannel
from ...runtime import AppContext
from ...util.log import Log
from ..deps import resolve_app_context
from ..schemas import PushMessage

log = Log.create({"service": "server.events"})

router = APIRouter(prefix="/v1/events", tags=["events"])

HEARTBEAT_SECONDS = 30.0


async def channel_events(
    broadcaster: Broadcaster,
    *,
    heartbeat: float = HEARTBEAT_SECONDS,
) -> AsyncIterator[Optional[dict[str, Any]]]:
    """Subscribe a fresh channel and yield its pushes.

    Yields None when nothing arrived within ``heartbeat`` seconds. The
    channel is unsubscribed and closed when the iterator is closed.
    """
    channel = QueueChannel("sse")
    await broadcaster.subscribe(channel)
    log.debug("sse channel opened", {"channel": channel.id})
    try:
        while True:
            yield await channel.receive(timeout=heartbeat)
    finally:
        await broadcaster.unsubscribe(channel)
        channel.close()
        log.debug("sse channel closed", {"channel": channel.id})


def _sse_data(message: dict[str, Any]) -> str:
    return f"data: {json.dumps(message)}\n\n"


def _sse_response(iterator: AsyncIterator[str]) -> StreamingResponse:
    return StreamingResponse(
        iterator,
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


@router.get("", response_model=PushMessage)
async def stream_events(ctx: AppContext = Depends(resolve_app_context)) -> StreamingResponse:
    stream = channel_events(ctx.broadcaster)

    async def event_generator() -> AsyncIterator[str]:
        try:
            async for message in stream:
                if message is None:
                    yield ": heartbeat\n\n"
                    continue
                yield _sse_data(message)
        finally:
            await stream.aclose()

    return _sse_response(event_generator())
