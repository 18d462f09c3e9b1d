"""HTTP transport for the ovpnctl control plane.

Example:
    from ovpnctl.runtime import AppContext
    from ovpnctl.server import Server

    info = await Server.start(AppContext(), port=4477)
    print(f"Server running at {info.url}")
    await Server.stop()

API Endpoints:
    GET /health - Health check with connection summary
    POST /v1/requests - Gateway request ({"action": ...})
    POST /v1/connect - Apply a config and connect
    POST /v1/disconnect - Disconnect
    GET /v1/status - Connection status
    PUT /v1/config - Save a config
    GET /v1/config - Active config text
    GET /v1/config/details - Parsed summary of the active config
    GET /v1/events - SSE standing channel
    WS /v1/channel - WebSocket standing channel
"""

from .app import create_app
from .server import Server, ServerInfo

__all__ = [
    "Server",
    "ServerInfo",
    "create_app",
]
