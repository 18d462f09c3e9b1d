"""Bus events published by the connection store."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from ..core.bus import BusEvent


class ConnectionChangedProps(BaseModel):
    """Properties for connection.changed."""
    status: str
    connected: bool
    config: Optional[str] = None
    reason: str


ConnectionChanged = BusEvent.define("connection.changed", ConnectionChangedProps)
