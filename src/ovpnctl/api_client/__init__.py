"""Typed API client for ovpnctl /v1 endpoints."""

from .client import ApiClientError, OvpnctlAPIClient

__all__ = ["ApiClientError", "OvpnctlAPIClient"]
