"""Shared test helpers."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from ovpnctl.core.bus import Bus
from ovpnctl.core.config import Config, StorageConfig
from ovpnctl.connection import ConnectionStateStore, SimulatedTunnel
from ovpnctl.runtime import AppContext
from ovpnctl.storage import MemoryStorage, StorageError

SAMPLE_CONFIG = """client
dev tun
proto udp
remote vpn.example.com 1194 udp
remote backup.example.com 443 tcp
cipher AES-256-GCM
auth-user-pass
<ca>
-----BEGIN CERTIFICATE-----
MIIBszCCAVmgAwIBAgIU
-----END CERTIFICATE-----
</ca>
<tls-crypt>
6acef03f62675b4b
</tls-crypt>
"""

MINIMAL_CONFIG = "remote a.example 1194\n"

OTHER_CONFIG = "remote b.example 443 udp\ncipher AES-128-CBC\n"


class RecordingChannel:
    """Channel that keeps every message it is sent."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def send(self, message: dict[str, Any]) -> None:
        self.messages.append(message)


class FailingChannel:
    """Channel whose surface is gone: every push raises."""

    def __init__(self) -> None:
        self.attempts = 0

    async def send(self, message: dict[str, Any]) -> None:
        self.attempts += 1
        raise RuntimeError("receiving end does not exist")


class FlakyChannel(RecordingChannel):
    """Accepts ``accept`` pushes, then fails forever."""

    def __init__(self, accept: int) -> None:
        super().__init__()
        self.accept = accept

    async def send(self, message: dict[str, Any]) -> None:
        if len(self.messages) >= self.accept:
            raise RuntimeError("channel went away")
        await super().send(message)


class FailingStorage(MemoryStorage):
    """Memory storage with switchable failures."""

    def __init__(
        self,
        initial: dict[str, Any] | None = None,
        *,
        fail_get: bool = False,
        fail_set: bool = False,
        fail_delete: bool = False,
    ) -> None:
        super().__init__(initial)
        self.fail_get = fail_get
        self.fail_set = fail_set
        self.fail_delete = fail_delete

    async def get(self, key: list[str]) -> Any:
        if self.fail_get:
            raise StorageError("disk unavailable")
        return await super().get(key)

    async def set(self, key: list[str], value: Any) -> None:
        if self.fail_set:
            raise StorageError("disk full")
        await super().set(key, value)

    async def delete(self, key: list[str]) -> None:
        if self.fail_delete:
            raise StorageError("disk unavailable")
        await super().delete(key)


class SlowStorage(MemoryStorage):
    """Memory storage whose writes suspend for a while."""

    def __init__(self, delay: float = 0.05) -> None:
        super().__init__()
        self.delay = delay

    async def set(self, key: list[str], value: Any) -> None:
        await asyncio.sleep(self.delay)
        await super().set(key, value)


def make_store(storage: Any | None = None) -> tuple[ConnectionStateStore, Bus, SimulatedTunnel]:
    bus = Bus()
    tunnel = SimulatedTunnel()
    store = ConnectionStateStore(storage if storage is not None else MemoryStorage(), bus, tunnel)
    return store, bus, tunnel


def memory_config() -> Config:
    return Config(storage=StorageConfig(backend="memory"))


@asynccontextmanager
async def running_app_context(storage: Any | None = None) -> AsyncIterator[AppContext]:
    """AppContext on memory storage, started and shut down around the block."""
    ctx = AppContext(memory_config(), storage=storage)
    await ctx.startup()
    try:
        yield ctx
    finally:
        await ctx.shutdown()
