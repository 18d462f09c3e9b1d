"""Data models for parsed OpenVPN configurations."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AuthMethod(str, Enum):
    """Authentication a config asks the client to supply."""
    USER_PASS = "user-pass"

    @property
    def label(self) -> str:
        return "Username/Password"


class RemoteEndpoint(BaseModel):
    """One candidate server from a ``remote`` directive."""
    host: str
    port: str
    proto: str = "tcp"

    model_config = ConfigDict(frozen=True)

    @field_validator("port", mode="before")
    @classmethod
    def _port_text(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def __str__(self) -> str:
        return f"{self.host}:{self.port} ({self.proto})"


class ParsedConfig(BaseModel):
    """Structured view of a configuration document.

    ``raw`` always holds the original text exactly as submitted; it is what
    gets exported, shown to UI surfaces, and re-parsed when a stored record
    turns out to be unreadable.
    """
    remotes: List[RemoteEndpoint] = Field(min_length=1)
    certificates: Dict[str, str] = Field(default_factory=dict)
    auth_method: Optional[AuthMethod] = None
    cipher: Optional[str] = None
    raw: str

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def primary(self) -> RemoteEndpoint:
        """The display endpoint (first ``remote`` line)."""
        return self.remotes[0]

    @property
    def requires_credentials(self) -> bool:
        return self.auth_method is not None
