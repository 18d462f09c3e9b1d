"""Typed factory methods for storage key construction."""

from __future__ import annotations


class StorageKey:
    """Namespace providing the fixed keys used by the control plane."""

    @staticmethod
    def active_config() -> list[str]:
        return ["connection", "active_config"]
