"""Simulated tunnel collaborator.

No traffic is routed. Engaging the tunnel computes the proxy settings a
browser-level client would install for the active config and keeps them
as the current state; releasing clears them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.config_schema import TunnelConfig
from ..ovpn.models import ParsedConfig
from ..util.log import Log

log = Log.create({"service": "tunnel"})


@dataclass(frozen=True)
class ProxySettings:
    """Fixed-server proxy rule derived from a config's primary remote."""
    scheme: str
    host: str
    port: int
    bypass: tuple[str, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict[str, object]:
        return {
            "scheme": self.scheme,
            "host": self.host,
            "port": self.port,
            "bypass": list(self.bypass),
        }


class SimulatedTunnel:
    """Stub for the external proxy/tunnel capability."""

    def __init__(self, config: Optional[TunnelConfig] = None) -> None:
        self._config = config or TunnelConfig()
        self._active: Optional[ProxySettings] = None

    @property
    def active(self) -> Optional[ProxySettings]:
        return self._active

    def _port(self, token: str) -> int:
        if token.isascii() and token.isdecimal():
            port = int(token)
            if 0 < port < 65536:
                return port
        return self._config.fallback_port

    def settings_for(self, config: ParsedConfig) -> ProxySettings:
        primary = config.primary
        port = self._port(primary.port)
        return ProxySettings(
            scheme=self._config.scheme,
            host=primary.host,
            port=port,
            bypass=tuple(self._config.bypass),
        )

    async def engage(self, config: ParsedConfig) -> ProxySettings:
        return await self.install(self.settings_for(config))

    async def install(self, settings: ProxySettings) -> ProxySettings:
        self._active = settings
        log.info("proxy engaged", settings.as_dict())
        return settings

    async def release(self) -> None:
        if self._active is None:
            return
        log.info("proxy released", {"host": self._active.host})
        self._active = None
