"""Catalog service FastAPI application."""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.catalog.storage.factory import open_storage
from src.shared.config import CatalogConfig
from src.shared.constants import CATALOG_PORT, CATALOG_SERVICE_NAME, VERSION
from src.shared.errors import register_exception_handlers
from src.shared.logging import TraceIDMiddleware, setup_logging

config = CatalogConfig()
logger = setup_logging(CATALOG_SERVICE_NAME, config.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - initialize and cleanup resources."""
    app.state.start_time = time.time()

    storage = open_storage(config)
    app.state.storage = storage
    app.state.blob_store = storage.blob_store
    app.state.repository = storage.repository

    logger.info(
        "Service started: name=%s version=%s port=%d backend=%s db=%s",
        CATALOG_SERVICE_NAME, VERSION, CATALOG_PORT,
        config.storage_backend, config.database_path,
    )
    yield

    storage.close()
    logger.info("Service stopped: name=%s", CATALOG_SERVICE_NAME)


app = FastAPI(
    title="Catalog Service",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(TraceIDMiddleware)
register_exception_handlers(app)

# Register all routers
from src.catalog.routers.health import router as health_router
from src.catalog.routers.databases import router as databases_router
from src.catalog.routers.interactions import router as interactions_router

app.include_router(health_router)
app.include_router(databases_router)
app.include_router(interactions_router)
