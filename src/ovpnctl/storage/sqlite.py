"""SQLite-backed key/value storage with WAL mode.

Calls run synchronously on the event loop thread. A threading lock guards
the lazily opened connection.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any, Optional

from ..core.global_paths import GlobalPath
from ..util.log import Log
from .errors import CorruptRecordError, StorageError

log = Log.create({"service": "storage"})

DB_FILENAME = "storage.db"


def _encode_key(key: list[str]) -> str:
    return "/".join(key)


def _decode_key(encoded: str) -> list[str]:
    return encoded.split("/")


class SqliteStorage:
    """Durable JSON values in a single ``kv`` table.

    The database file defaults to ``<data_dir>/storage.db`` and is opened on
    first use.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = str(path) if path is not None else None
        self._db: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        if self._path is None:
            self._path = str(Path(GlobalPath.data()) / DB_FILENAME)
        return self._path

    def _conn(self) -> sqlite3.Connection:
        if self._db is not None:
            return self._db
        with self._lock:
            if self._db is not None:
                return self._db
            target = Path(self.path)
            target.parent.mkdir(parents=True, exist_ok=True)
            try:
                db = sqlite3.connect(str(target))
                db.execute("PRAGMA journal_mode=WAL")
                db.execute("PRAGMA synchronous=NORMAL")
                db.execute("PRAGMA busy_timeout=5000")
                db.execute("""
                    CREATE TABLE IF NOT EXISTS kv (
                        key TEXT PRIMARY KEY,
                        data TEXT NOT NULL
                    )
                """)
                db.commit()
            except sqlite3.Error as e:
                raise StorageError(f"cannot open storage at {target}: {e}") from e
            log.info("storage opened", {"path": str(target)})
            self._db = db
            return db

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    async def get(self, key: list[str]) -> Any:
        """Return the stored JSON value, or None when the key is absent.

        Raises:
            CorruptRecordError: The stored bytes are not valid JSON.
            StorageError: The database could not be read.
        """
        try:
            row = self._conn().execute(
                "SELECT data FROM kv WHERE key = ?",
                (_encode_key(key),),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"read failed for {_encode_key(key)}: {e}") from e
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise CorruptRecordError(key, str(e)) from e

    async def set(self, key: list[str], value: Any) -> None:
        try:
            body = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"value for {_encode_key(key)} is not JSON serializable") from e
        db = self._conn()
        try:
            db.execute(
                "INSERT OR REPLACE INTO kv (key, data) VALUES (?, ?)",
                (_encode_key(key), body),
            )
            db.commit()
        except sqlite3.Error as e:
            raise StorageError(f"write failed for {_encode_key(key)}: {e}") from e

    async def delete(self, key: list[str]) -> None:
        """Delete a value (no error if missing)."""
        db = self._conn()
        try:
            db.execute("DELETE FROM kv WHERE key = ?", (_encode_key(key),))
            db.commit()
        except sqlite3.Error as e:
            raise StorageError(f"delete failed for {_encode_key(key)}: {e}") from e

    async def keys(self, prefix: list[str]) -> list[list[str]]:
        rows = self._conn().execute(
            "SELECT key FROM kv WHERE key LIKE ? ORDER BY key",
            (_encode_key(prefix) + "/%",),
        ).fetchall()
        return [_decode_key(row[0]) for row in rows]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the database connection."""
        if self._db is not None:
            try:
                self._db.close()
            except sqlite3.Error as e:
                log.warn("storage close failed", {"error": str(e)})
            self._db = None
