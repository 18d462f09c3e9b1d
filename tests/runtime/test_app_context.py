from __future__ import annotations

from pathlib import Path

import pytest

from ovpnctl.core.config import Config, StorageConfig, TunnelConfig
from ovpnctl.connection import ConnectionChanged
from ovpnctl.ovpn import parse
from ovpnctl.runtime import AppContext, create_storage
from ovpnctl.storage import MemoryStorage, SqliteStorage
from tests.helpers import MINIMAL_CONFIG, RecordingChannel, memory_config, running_app_context


def test_create_storage_follows_storage_section(tmp_path: Path) -> None:
    assert isinstance(create_storage(memory_config()), MemoryStorage)

    sqlite = create_storage(Config(storage=StorageConfig(path=str(tmp_path / "x.db"))))
    assert isinstance(sqlite, SqliteStorage)
    assert sqlite.path == str(tmp_path / "x.db")


@pytest.mark.anyio
async def test_startup_restores_config_and_wires_broadcaster() -> None:
    storage = MemoryStorage({"connection/active_config": parse(MINIMAL_CONFIG).model_dump(mode="json")})

    async with running_app_context(storage) as ctx:
        assert ctx.started is True
        assert ctx.store.snapshot().raw == MINIMAL_CONFIG
        assert ctx.bus.subscriber_count(ConnectionChanged) == 1

        channel = RecordingChannel()
        await ctx.broadcaster.subscribe(channel)
        await ctx.gateway.dispatch({"action": "connect", "config": {"raw": MINIMAL_CONFIG}})

        assert channel.messages[-1] == {"type": "status", "connected": True, "config": MINIMAL_CONFIG}

    assert ctx.started is False
    assert ctx.bus.subscriber_count() == 0
    assert ctx.tunnel.active is None


@pytest.mark.anyio
async def test_startup_and_shutdown_are_idempotent() -> None:
    ctx = AppContext(memory_config())

    await ctx.startup()
    await ctx.startup()
    assert ctx.bus.subscriber_count(ConnectionChanged) == 1

    await ctx.shutdown()
    await ctx.shutdown()
    assert ctx.started is False


@pytest.mark.anyio
async def test_contexts_do_not_share_state() -> None:
    async with running_app_context() as first, running_app_context() as second:
        await first.gateway.dispatch({"action": "saveConfig", "config": {"raw": MINIMAL_CONFIG}})

        assert first.store.snapshot().raw == MINIMAL_CONFIG
        assert second.store.snapshot().raw is None


def test_tunnel_settings_come_from_config() -> None:
    ctx = AppContext(Config(storage=StorageConfig(backend="memory"), tunnel=TunnelConfig(scheme="http")))

    assert ctx.tunnel.settings_for(parse(MINIMAL_CONFIG)).scheme == "http"


@pytest.mark.anyio
async def test_sqlite_backed_context_survives_restart(tmp_path: Path) -> None:
    config = Config(storage=StorageConfig(path=str(tmp_path / "state.db")))

    first = AppContext(config)
    await first.startup()
    await first.gateway.dispatch({"action": "connect", "config": {"raw": MINIMAL_CONFIG}})
    await first.shutdown()

    second = AppContext(config)
    await second.startup()
    try:
        assert second.store.snapshot().raw == MINIMAL_CONFIG
        assert second.store.snapshot().connected is False
    finally:
        await second.shutdown()
