"""Storage exceptions."""

from __future__ import annotations


class StorageError(Exception):
    """Raised when the backing store cannot complete an operation."""


class CorruptRecordError(StorageError):
    """Raised when a stored value cannot be decoded."""

    def __init__(self, key: list[str], reason: str = ""):
        self.key = key
        message = f"Corrupt record: {'/'.join(key)}"
        super().__init__(f"{message} ({reason})" if reason else message)
