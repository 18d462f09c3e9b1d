"""Connection state records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

from ..ovpn.errors import ParseFailure
from ..ovpn.models import ParsedConfig

PushType = Literal["init", "status"]


class ConnectionStatus(str, Enum):
    """Tunnel status.

    ``CONNECTING`` is part of the vocabulary UI surfaces use while a request
    is in flight; the store itself only moves between ``DISCONNECTED`` and
    ``CONNECTED``.
    """
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class ConnectionRecord:
    """The mutable record owned by ``ConnectionStateStore``."""
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    active_config: Optional[ParsedConfig] = None


@dataclass(frozen=True)
class Snapshot:
    """Immutable copy of a ``ConnectionRecord``."""
    status: ConnectionStatus
    config: Optional[ParsedConfig] = None

    @property
    def connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    @property
    def raw(self) -> Optional[str]:
        return self.config.raw if self.config is not None else None

    def to_message(self, kind: PushType) -> dict[str, object]:
        """Wire form pushed to standing channels."""
        return {"type": kind, "connected": self.connected, "config": self.raw}


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a store command."""
    ok: bool
    failure: Optional[ParseFailure] = field(default=None)

    @classmethod
    def success(cls) -> "CommandResult":
        return cls(ok=True)

    @classmethod
    def failed(cls, failure: ParseFailure) -> "CommandResult":
        return cls(ok=False, failure=failure)
