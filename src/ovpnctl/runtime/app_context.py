"""Application runtime context and lifecycle container."""

from __future__ import annotations

from typing import Optional

from ..connection.broadcaster import Broadcaster
from ..connection.gateway import RequestGateway
from ..connection.store import ConnectionStateStore
from ..connection.tunnel import SimulatedTunnel
from ..core.bus import Bus
from ..core.config import Config
from ..storage import MemoryStorage, PersistenceAdapter, SqliteStorage
from ..util.log import Log

log = Log.create({"service": "runtime"})


def create_storage(config: Config) -> PersistenceAdapter:
    """Persistence backend selected by the ``storage`` config section."""
    if config.storage.backend == "memory":
        return MemoryStorage()
    return SqliteStorage(config.storage.path)


class AppContext:
    """Application-level service container.

    Created once per process (CLI command or server) and handed to every
    surface that talks to the connection. Owns the bus, persistence, the
    tunnel, the store, the broadcaster and the gateway; nothing about the
    connection lives in module globals.
    """

    __slots__ = (
        "config",
        "bus",
        "storage",
        "tunnel",
        "store",
        "broadcaster",
        "gateway",
        "started",
    )

    def __init__(
        self,
        config: Optional[Config] = None,
        *,
        storage: Optional[PersistenceAdapter] = None,
    ) -> None:
        self.config = config or Config()
        self.bus = Bus()
        self.storage = storage if storage is not None else create_storage(self.config)
        self.tunnel = SimulatedTunnel(self.config.tunnel)
        self.store = ConnectionStateStore(self.storage, self.bus, self.tunnel)
        self.broadcaster = Broadcaster(self.store)
        self.gateway = RequestGateway(self.store)
        self.started = False

    async def startup(self) -> None:
        if self.started:
            return
        snap = await self.store.load_initial()
        self.broadcaster.attach(self.bus)
        self.started = True
        log.info("runtime started", {
            "storage": type(self.storage).__name__,
            "config": snap.config is not None,
        })

    async def shutdown(self) -> None:
        if not self.started:
            return
        self.broadcaster.detach()
        if self.tunnel.active is not None:
            await self.tunnel.release()
        self.bus.clear()
        self.storage.close()
        self.started = False
        log.info("runtime stopped")
