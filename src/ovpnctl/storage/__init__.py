"""Durable key/value persistence."""

from typing import Any, Protocol

from .errors import CorruptRecordError, StorageError
from .keys import StorageKey
from .memory import MemoryStorage
from .sqlite import SqliteStorage


class PersistenceAdapter(Protocol):
    """Async key/value store contract used by the connection store."""

    async def get(self, key: list[str]) -> Any: ...

    async def set(self, key: list[str], value: Any) -> None: ...

    async def delete(self, key: list[str]) -> None: ...

    def close(self) -> None: ...


__all__ = [
    "CorruptRecordError",
    "MemoryStorage",
    "PersistenceAdapter",
    "SqliteStorage",
    "StorageError",
    "StorageKey",
]
