"""In-memory storage for tests and ephemeral runs."""

from __future__ import annotations

import copy
from typing import Any

from .sqlite import _decode_key, _encode_key


class MemoryStorage:
    """Same contract as ``SqliteStorage``; nothing survives the process."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    async def get(self, key: list[str]) -> Any:
        value = self._data.get(_encode_key(key))
        return copy.deepcopy(value)

    async def set(self, key: list[str], value: Any) -> None:
        self._data[_encode_key(key)] = copy.deepcopy(value)

    async def delete(self, key: list[str]) -> None:
        self._data.pop(_encode_key(key), None)

    async def keys(self, prefix: list[str]) -> list[list[str]]:
        head = _encode_key(prefix) + "/"
        return [_decode_key(k) for k in sorted(self._data) if k.startswith(head)]

    def close(self) -> None:
        pass
