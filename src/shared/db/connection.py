"""SQLite connection pool with thread-local storage."""
from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

from src.shared.constants import DB_BUSY_TIMEOUT_MS

MEMORY_PATH = ":memory:"


class ConnectionPool:
    """Thread-local SQLite connection pool.

    Each thread gets its own connection, configured with:
    - WAL journal mode (file databases only)
    - busy_timeout=30000 (30 seconds)
    - Row factory for dict-like access

    ``":memory:"`` opens a single shared connection instead, since every
    new in-memory connection would be an empty database.
    """

    def __init__(self, db_path: str | Path, timeout: float = 30.0) -> None:
        self._in_memory = str(db_path) == MEMORY_PATH
        self._db_path = Path(db_path)
        self._timeout = timeout
        self._local = threading.local()
        self._lock = threading.Lock()
        self._connections: list[sqlite3.Connection] = []
        self._shared: sqlite3.Connection | None = None

        if not self._in_memory:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)

    def get(self) -> sqlite3.Connection:
        """Return the connection for the current thread, creating it if needed."""
        if self._in_memory:
            with self._lock:
                if self._shared is None:
                    self._shared = self._connect(check_same_thread=False)
                    self._connections.append(self._shared)
                return self._shared

        conn = getattr(self._local, "connection", None)
        if conn is not None:
            return conn

        conn = self._connect()
        self._local.connection = conn
        with self._lock:
            self._connections.append(conn)
        return conn

    def _connect(self, check_same_thread: bool = True) -> sqlite3.Connection:
        target = MEMORY_PATH if self._in_memory else str(self._db_path)
        conn = sqlite3.connect(
            target,
            timeout=self._timeout,
            check_same_thread=check_same_thread,
        )
        if not self._in_memory:
            conn.execute("PRAGMA journal_mode=WAL")
        conn.execute(f"PRAGMA busy_timeout={DB_BUSY_TIMEOUT_MS}")
        conn.row_factory = sqlite3.Row
        return conn

    def close(self) -> None:
        """Close all connections in the pool."""
        with self._lock:
            for conn in self._connections:
                try:
                    conn.close()
                except (sqlite3.Error, OSError):
                    pass
            self._connections.clear()
            self._shared = None
        self._local.connection = None

    @property
    def db_path(self) -> Path:
        """Return the database file path."""
        return self._db_path

    @property
    def in_memory(self) -> bool:
        return self._in_memory
