"""Database schema initialization for the catalog blob map."""
from __future__ import annotations

from src.shared.db.connection import ConnectionPool


def init_catalog_db(pool: ConnectionPool) -> None:
    """Create the flat key -> text table backing the blob map."""
    conn = pool.get()
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS blobs (
            key TEXT PRIMARY KEY,
            content TEXT NOT NULL,
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );
    """)
    conn.commit()
