"""Failure kinds and exceptions for configuration handling."""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """Closed set of reasons a configuration could not be accepted."""

    INVALID_INPUT = "invalid_input"
    NO_REMOTE_FOUND = "no_remote_found"
    PERSISTENCE_CORRUPT = "persistence_corrupt"
    PERSISTENCE_FAILED = "persistence_failed"


DEFAULT_DETAIL = {
    FailureKind.INVALID_INPUT: "Config must be a string",
    FailureKind.NO_REMOTE_FOUND: "No remote servers found in config",
    FailureKind.PERSISTENCE_CORRUPT: "Stored config is corrupt",
    FailureKind.PERSISTENCE_FAILED: "Failed to save config",
}


class ParseFailure(Exception):
    """A configuration was rejected.

    Attributes:
        kind: Machine-readable failure kind.
        detail: Human-readable reason, suitable for showing to a user.
        raw: The rejected input when it was text, else None.
    """

    def __init__(self, kind: FailureKind, detail: str | None = None, raw: str | None = None):
        self.kind = kind
        self.detail = detail or DEFAULT_DETAIL[kind]
        self.raw = raw
        super().__init__(self.detail)

    def __repr__(self) -> str:
        return f"ParseFailure(kind={self.kind.value!r}, detail={self.detail!r})"


class TransferError(Exception):
    """Raised when a config file cannot be imported or exported."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)
