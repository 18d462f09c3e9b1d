"""Connection state, change fan-out and request handling."""

from .broadcaster import Broadcaster
from .channel import Channel, ChannelClosedError, QueueChannel
from .events import ConnectionChanged, ConnectionChangedProps
from .gateway import GatewayResponse, RequestGateway, parse_request
from .models import CommandResult, ConnectionStatus, Snapshot
from .store import ConnectionStateStore
from .tunnel import ProxySettings, SimulatedTunnel

__all__ = [
    "Broadcaster",
    "Channel",
    "ChannelClosedError",
    "CommandResult",
    "ConnectionChanged",
    "ConnectionChangedProps",
    "ConnectionStateStore",
    "ConnectionStatus",
    "GatewayResponse",
    "ProxySettings",
    "QueueChannel",
    "RequestGateway",
    "SimulatedTunnel",
    "Snapshot",
    "parse_request",
]
