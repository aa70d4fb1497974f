"""Construction of the blob store and repository from configuration."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from src.catalog.services.catalog_service import CatalogService
from src.catalog.services.repository import MarkdownCatalogRepository
from src.catalog.storage.blob_store import BlobStore, InMemoryBlobStore, SqliteBlobStore
from src.shared.config import CatalogConfig
from src.shared.db.connection import ConnectionPool
from src.shared.db.schema import init_catalog_db

logger = logging.getLogger("catalog.storage")


@dataclass
class CatalogStorage:
    """Storage handles owned by one running service."""
    blob_store: BlobStore
    repository: MarkdownCatalogRepository
    pool: ConnectionPool | None = None

    def close(self) -> None:
        if self.pool is not None:
            self.pool.close()


def open_storage(config: CatalogConfig) -> CatalogStorage:
    """Open the configured backend and seed it when requested.

    The ``sqlite`` backend stores blobs in ``config.database_path``; the
    ``memory`` backend keeps them in a dict for the process lifetime.
    """
    pool: ConnectionPool | None = None
    blob_store: BlobStore
    if config.storage_backend == "memory":
        blob_store = InMemoryBlobStore()
    else:
        pool = ConnectionPool(config.database_path)
        init_catalog_db(pool)
        blob_store = SqliteBlobStore(pool)

    repository = MarkdownCatalogRepository(blob_store, config.entry_collection)
    if config.seed_on_startup:
        seeded = CatalogService(repository).seed_from_file(config.seed_catalog)
        if seeded:
            logger.info("Loaded seed catalog from %s", config.seed_catalog)

    return CatalogStorage(blob_store=blob_store, repository=repository, pool=pool)
