"""Authoritative connection state.

``ConnectionStateStore`` is the only writer of the connection record. Every
command takes the store lock for its whole duration, persistence I/O and
change notification included, so commands from any transport take effect
one at a time in arrival order.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from pydantic import ValidationError

from ..core.bus import Bus
from ..ovpn.errors import FailureKind, ParseFailure
from ..ovpn.models import ParsedConfig
from ..ovpn.parser import parse
from ..storage import CorruptRecordError, PersistenceAdapter, StorageError, StorageKey
from ..util.log import Log
from .events import ConnectionChanged, ConnectionChangedProps
from .models import CommandResult, ConnectionRecord, ConnectionStatus, Snapshot
from .tunnel import SimulatedTunnel

log = Log.create({"service": "store"})


def _restore(stored: Any) -> ParsedConfig:
    """Rebuild a config from its persisted form.

    Structured records are trusted as-is. Records that do not validate but
    still carry the original text are re-parsed from it.
    """
    try:
        return ParsedConfig.model_validate(stored)
    except ValidationError as e:
        raw = stored.get("raw") if isinstance(stored, dict) else stored
        if not isinstance(raw, str):
            raise ParseFailure(FailureKind.PERSISTENCE_CORRUPT) from e
        log.warn("stored config structure invalid, re-parsing raw text", {"error": str(e)})

    try:
        return parse(raw)
    except ParseFailure as failure:
        raise ParseFailure(
            FailureKind.PERSISTENCE_CORRUPT,
            f"Stored config is corrupt: {failure.detail}",
            raw=raw,
        ) from failure


class ConnectionStateStore:
    """Owner of the ``ConnectionRecord``.

    Args:
        storage: Durable key/value store holding the active config.
        bus: Bus that receives ``connection.changed`` after every change.
        tunnel: Tunnel collaborator driven by connect/disconnect.
    """

    def __init__(
        self,
        storage: PersistenceAdapter,
        bus: Bus,
        tunnel: Optional[SimulatedTunnel] = None,
    ) -> None:
        self._storage = storage
        self._bus = bus
        self._tunnel = tunnel or SimulatedTunnel()
        self._key = StorageKey.active_config()
        self._record = ConnectionRecord()
        self._lock = asyncio.Lock()

    @property
    def tunnel(self) -> SimulatedTunnel:
        return self._tunnel

    def snapshot(self) -> Snapshot:
        return Snapshot(status=self._record.status, config=self._record.active_config)

    async def current(self) -> Snapshot:
        """Snapshot taken in command order, after every earlier command finished."""
        async with self._lock:
            return self.snapshot()

    async def load_initial(self) -> Snapshot:
        """Hydrate the record from storage. Status always starts disconnected."""
        async with self._lock:
            self._record = ConnectionRecord()
            try:
                stored = await self._storage.get(self._key)
            except CorruptRecordError as e:
                await self._discard(ParseFailure(FailureKind.PERSISTENCE_CORRUPT, str(e)))
                return self.snapshot()
            except StorageError as e:
                log.error("failed to read persisted config", {"error": e})
                return self.snapshot()

            if stored is None:
                log.info("no persisted config")
                return self.snapshot()

            try:
                config = _restore(stored)
            except ParseFailure as failure:
                await self._discard(failure)
                return self.snapshot()

            self._record.active_config = config
            log.info("restored persisted config", {"remote": str(config.primary)})
            return self.snapshot()

    async def apply_config(self, raw: Any) -> CommandResult:
        """Validate, persist and activate a config without touching status."""
        async with self._lock:
            config = self._validate(raw)
            if isinstance(config, CommandResult):
                return config
            settings = None
            if self._record.status is ConnectionStatus.CONNECTED:
                settings = self._tunnel.settings_for(config)
            result = await self._commit(config)
            if result.ok:
                if settings is not None:
                    await self._tunnel.install(settings)
                await self._publish("config")
            return result

    async def set_connected(self, flag: bool) -> None:
        async with self._lock:
            await self._set_status(flag)
            await self._publish("connected" if flag else "disconnected")

    async def connect(self, raw: Any) -> CommandResult:
        """Apply ``raw`` and bring the tunnel up as one command.

        Proxy settings are derived before anything is persisted, so a
        rejected config leaves both status and active config unchanged.
        """
        async with self._lock:
            config = self._validate(raw)
            if isinstance(config, CommandResult):
                return config
            settings = self._tunnel.settings_for(config)
            result = await self._commit(config)
            if not result.ok:
                return result
            await self._tunnel.install(settings)
            await self._set_status(True)
            await self._publish("connected")
            return result

    async def disconnect(self) -> None:
        async with self._lock:
            await self._tunnel.release()
            await self._set_status(False)
            await self._publish("disconnected")

    # ------------------------------------------------------------------
    # Internals, called with the lock held
    # ------------------------------------------------------------------

    def _validate(self, raw: Any) -> ParsedConfig | CommandResult:
        try:
            return parse(raw)
        except ParseFailure as failure:
            log.warn("config rejected", {"kind": failure.kind, "detail": failure.detail})
            return CommandResult.failed(failure)

    async def _commit(self, config: ParsedConfig) -> CommandResult:
        try:
            await self._storage.set(self._key, config.model_dump(mode="json"))
        except StorageError as e:
            log.error("failed to persist config", {"error": e})
            return CommandResult.failed(
                ParseFailure(FailureKind.PERSISTENCE_FAILED, raw=config.raw)
            )

        self._record.active_config = config
        log.info("config applied", {
            "remote": str(config.primary),
            "remotes": len(config.remotes),
            "cipher": config.cipher,
        })
        return CommandResult.success()

    async def _set_status(self, flag: bool) -> None:
        previous = self._record.status
        self._record.status = ConnectionStatus.CONNECTED if flag else ConnectionStatus.DISCONNECTED
        if previous is not self._record.status:
            log.info("status changed", {"from": previous, "to": self._record.status})

    async def _discard(self, failure: ParseFailure) -> None:
        log.error("persisted config unusable, deleting", {
            "kind": failure.kind,
            "detail": failure.detail,
        })
        try:
            await self._storage.delete(self._key)
        except StorageError as e:
            log.error("failed to delete persisted config", {"error": e})

    async def _publish(self, reason: str) -> None:
        snap = self.snapshot()
        await self._bus.publish(
            ConnectionChanged,
            ConnectionChangedProps(
                status=snap.status.value,
                connected=snap.connected,
                config=snap.raw,
                reason=reason,
            ),
        )
