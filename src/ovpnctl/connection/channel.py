"""Standing channels between UI surfaces and the broadcaster."""

from __future__ import annotations

import asyncio
import itertools
from typing import Any, AsyncIterator, Optional, Protocol

Message = dict[str, Any]

_ids = itertools.count(1)


class ChannelClosedError(Exception):
    """Raised when pushing to a channel whose surface has gone away."""


class Channel(Protocol):
    """Anything the broadcaster can push messages to.

    ``send`` raising (for any reason) marks the channel as dead.
    """

    async def send(self, message: Message) -> None: ...


class QueueChannel:
    """Queue-backed channel drained by a transport.

    ``send`` never blocks the caller; the transport reads with ``receive``
    or by iterating and writes to its own wire at its own pace.
    """

    def __init__(self, name: Optional[str] = None) -> None:
        self.id = f"ch_{next(_ids)}"
        self.name = name or self.id
        self._queue: asyncio.Queue[Optional[Message]] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, message: Message) -> None:
        if self._closed:
            raise ChannelClosedError(f"channel {self.name} is closed")
        self._queue.put_nowait(message)

    async def receive(self, timeout: Optional[float] = None) -> Optional[Message]:
        """Next message, or None once closed (or when ``timeout`` expires)."""
        if self._closed and self._queue.empty():
            return None
        try:
            if timeout is None:
                return await self._queue.get()
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # wake a reader blocked in receive()
        self._queue.put_nowait(None)

    async def __aiter__(self) -> AsyncIterator[Message]:
        while True:
            message = await self.receive()
            if message is None:
                return
            yield message

    def __repr__(self) -> str:
        return f"QueueChannel({self.name!r}, closed={self._closed})"
