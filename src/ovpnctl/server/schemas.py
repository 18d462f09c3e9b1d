"""Pydantic schemas for the FastAPI transport layer."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from ..connection.gateway import ConfigPayload


class ErrorInfo(BaseModel):
    code: str
    message: str
    details: dict[str, object] | list[object] | str | None = None


class ErrorResponse(BaseModel):
    error: ErrorInfo


class HealthResponse(BaseModel):
    status: str = "ok"
    connected: bool
    subscribers: int


class ConfigBody(BaseModel):
    config: ConfigPayload | None = None


class GatewayReply(BaseModel):
    """Documented shape of a gateway response; unset fields are omitted."""
    success: bool
    error: str | None = None
    kind: str | None = None
    connected: bool | None = None
    config: str | None = None


class ProxySettingsResponse(BaseModel):
    scheme: str
    host: str
    port: int
    bypass: list[str]


class ConfigDetailsResponse(BaseModel):
    configured: bool
    connected: bool
    details: dict[str, object] | None = None
    proxy: ProxySettingsResponse | None = None


class PushMessage(BaseModel):
    type: Literal["init", "status"]
    connected: bool
    config: str | None = None
