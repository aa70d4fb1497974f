"""Blob map storage for the Catalog service.

The blob map is a flat ``key -> text`` store standing in for a file tree:
catalog entries live under ``<collection>/<slug>/<slug>.md``.  Writes are
plain overwrites; the last writer wins.
"""
from __future__ import annotations

import sqlite3
import threading
from typing import Protocol, runtime_checkable

from src.shared.db.connection import ConnectionPool
from src.shared.utils import now_iso


@runtime_checkable
class BlobStore(Protocol):
    """Port for the key -> text map used by the catalog repository."""

    def write(self, key: str, text: str) -> None:
        """Create or overwrite the blob stored at *key*."""
        ...

    def read(self, key: str) -> str | None:
        """Return the blob at *key*, or None when absent."""
        ...

    def exists(self, key: str) -> bool:
        ...

    def list(self, prefix: str = "") -> list[str]:
        """Return all keys starting with *prefix*, sorted."""
        ...

    def delete(self, key: str) -> None:
        """Remove *key*; deleting an absent key is a no-op."""
        ...


class InMemoryBlobStore:
    """Dict-backed blob map, used by tests and the ``memory`` backend."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._blobs: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def write(self, key: str, text: str) -> None:
        with self._lock:
            self._blobs[key] = text

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._blobs.get(key)

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._blobs

    def list(self, prefix: str = "") -> list[str]:
        with self._lock:
            keys = [k for k in self._blobs if k.startswith(prefix)]
        return sorted(keys)

    def delete(self, key: str) -> None:
        with self._lock:
            self._blobs.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Return a copy of the whole map."""
        with self._lock:
            return dict(self._blobs)


class SqliteBlobStore:
    """Persists the blob map in the ``blobs`` table.

    Uses the blobs table with columns:
    - key TEXT PRIMARY KEY
    - content TEXT NOT NULL
    - updated_at TEXT NOT NULL DEFAULT (datetime('now'))
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def write(self, key: str, text: str) -> None:
        conn = self._pool.get()
        conn.execute(
            """INSERT INTO blobs (key, content, updated_at) VALUES (?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET
                   content = excluded.content,
                   updated_at = excluded.updated_at""",
            (key, text, now_iso()),
        )
        conn.commit()

    def read(self, key: str) -> str | None:
        conn = self._pool.get()
        row = conn.execute(
            "SELECT content FROM blobs WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return row["content"]

    def exists(self, key: str) -> bool:
        conn = self._pool.get()
        row = conn.execute("SELECT 1 FROM blobs WHERE key = ?", (key,)).fetchone()
        return row is not None

    def list(self, prefix: str = "") -> list[str]:
        # substr() instead of LIKE so '%' and '_' in prefixes match literally
        conn = self._pool.get()
        rows = conn.execute(
            "SELECT key FROM blobs WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        ).fetchall()
        return [row["key"] for row in rows]

    def delete(self, key: str) -> None:
        conn = self._pool.get()
        conn.execute("DELETE FROM blobs WHERE key = ?", (key,))
        conn.commit()

    def ping(self) -> bool:
        """Return True when the backing database answers a trivial query."""
        try:
            self._pool.get().execute("SELECT 1")
        except (sqlite3.Error, OSError):
            return False
        return True
