"""Fan-out of connection changes to standing channels."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from ..core.bus import Bus, EventPayload
from ..util.log import Log
from .channel import Channel
from .events import ConnectionChanged
from .store import ConnectionStateStore

log = Log.create({"service": "broadcaster"})


class Broadcaster:
    """Live set of standing channels.

    Every push carries the store's current snapshot. A channel whose push
    raises is dropped on the spot; there is no retry and no replay.
    """

    def __init__(self, store: ConnectionStateStore) -> None:
        self._store = store
        self._channels: list[Channel] = []
        self._lock = asyncio.Lock()
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def count(self) -> int:
        return len(self._channels)

    async def subscribe(self, channel: Channel) -> bool:
        """Add ``channel`` and push it an ``init`` message.

        Returns False when the initial push failed and the channel was
        dropped again.
        """
        async with self._lock:
            if not any(existing is channel for existing in self._channels):
                self._channels.append(channel)
            message = self._store.snapshot().to_message("init")
            try:
                await channel.send(message)
            except Exception as e:
                self._remove(channel)
                log.warn("initial push failed, channel dropped", {"error": str(e)})
                return False
            log.debug("channel subscribed", {"channels": len(self._channels)})
            return True

    async def unsubscribe(self, channel: Channel) -> None:
        async with self._lock:
            if self._remove(channel):
                log.debug("channel unsubscribed", {"channels": len(self._channels)})

    async def notify_all(self) -> int:
        """Push a ``status`` message to every live channel.

        Returns the number of channels that accepted the push.
        """
        async with self._lock:
            message = self._store.snapshot().to_message("status")
            delivered = 0
            for channel in list(self._channels):
                try:
                    await channel.send(message)
                    delivered += 1
                except Exception as e:
                    self._remove(channel)
                    log.info("pruned dead channel", {"error": str(e)})
            return delivered

    def attach(self, bus: Bus) -> None:
        """Notify channels on every ``connection.changed`` published on ``bus``."""
        self.detach()
        self._unsubscribe = bus.subscribe(ConnectionChanged, self._on_changed)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _on_changed(self, payload: EventPayload) -> None:
        delivered = await self.notify_all()
        log.debug("change delivered", {
            "reason": payload.properties.get("reason"),
            "delivered": delivered,
        })

    def _remove(self, channel: Channel) -> bool:
        for index, existing in enumerate(self._channels):
            if existing is channel:
                del self._channels[index]
                return True
        return False
