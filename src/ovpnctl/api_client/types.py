from __future__ import annotations

from typing import Literal, TypedDict


class GatewayResult(TypedDict, total=False):
    success: bool
    error: str
    kind: str
    connected: bool
    config: str | None


class PushEvent(TypedDict):
    type: Literal["init", "status"]
    connected: bool
    config: str | None


class HealthResult(TypedDict):
    status: str
    connected: bool
    subscribers: int


class ConfigDetails(TypedDict, total=False):
    configured: bool
    connected: bool
    details: dict[str, object] | None
    proxy: dict[str, object] | None
