"""OpenVPN configuration parsing and transfer."""

from .errors import FailureKind, ParseFailure, TransferError
from .models import AuthMethod, ParsedConfig, RemoteEndpoint
from .parser import describe, parse

__all__ = [
    "AuthMethod",
    "FailureKind",
    "ParseFailure",
    "ParsedConfig",
    "RemoteEndpoint",
    "TransferError",
    "describe",
    "parse",
]
