"""Database connection pool and schema initialization."""

from src.shared.db.connection import ConnectionPool
from src.shared.db.schema import init_catalog_db

__all__ = [
    "ConnectionPool",
    "init_catalog_db",
]
