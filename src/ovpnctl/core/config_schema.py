"""Pydantic models for ovpnctl config files."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: Optional[str] = None
    format: Optional[Literal["kv", "json", "pretty"]] = None
    console: Optional[bool] = None
    file: Optional[bool] = None
    access_log: Optional[bool] = Field(None, alias="accessLog")
    dev_file: Optional[bool] = Field(None, alias="devFile")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class ServerConfig(BaseModel):
    """HTTP transport configuration."""
    port: Optional[int] = None
    hostname: Optional[str] = None
    cors: Optional[List[str]] = None

    model_config = ConfigDict(extra="forbid")


class StorageConfig(BaseModel):
    """Persistence backend selection."""
    backend: Literal["sqlite", "memory"] = "sqlite"
    path: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class TunnelConfig(BaseModel):
    """Settings for the simulated proxy tunnel."""
    scheme: str = "socks5"
    fallback_port: int = Field(1080, alias="fallbackPort")
    bypass: List[str] = Field(default_factory=lambda: ["localhost", "127.0.0.1"])

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("fallback_port")
    @classmethod
    def _port_range(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError("fallbackPort must be between 1 and 65535")
        return value


class Config(BaseModel):
    """Main configuration schema."""
    schema_: Optional[str] = Field(None, alias="$schema")
    log_level: Optional[str] = Field(None, alias="logLevel")
    logging: Optional[LoggingConfig] = None

    server: Optional[ServerConfig] = None
    storage: StorageConfig = Field(default_factory=StorageConfig)
    tunnel: TunnelConfig = Field(default_factory=TunnelConfig)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)
