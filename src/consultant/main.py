"""Consultant service FastAPI application."""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.catalog.storage.factory import open_storage
from src.consultant.services.conversation import SessionRegistry
from src.shared.config import ConsultantConfig
from src.shared.constants import CONSULTANT_PORT, CONSULTANT_SERVICE_NAME, VERSION
from src.shared.errors import register_exception_handlers
from src.shared.logging import TraceIDMiddleware, setup_logging

config = ConsultantConfig()
logger = setup_logging(CONSULTANT_SERVICE_NAME, config.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - initialize and cleanup resources."""
    app.state.start_time = time.time()

    storage = open_storage(config)
    app.state.storage = storage
    app.state.blob_store = storage.blob_store
    app.state.repository = storage.repository
    app.state.sessions = SessionRegistry(
        max_alternatives=config.max_alternatives, max_sessions=config.max_sessions
    )
    app.state.max_alternatives = config.max_alternatives
    app.state.response_delay_ms = config.response_delay_ms

    logger.info(
        "Service started: name=%s version=%s port=%d backend=%s db=%s",
        CONSULTANT_SERVICE_NAME, VERSION, CONSULTANT_PORT,
        config.storage_backend, config.database_path,
    )
    yield

    storage.close()
    logger.info("Service stopped: name=%s", CONSULTANT_SERVICE_NAME)


app = FastAPI(
    title="Consultant Service",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(TraceIDMiddleware)
register_exception_handlers(app)

# Register all routers
from src.consultant.routers.health import router as health_router
from src.consultant.routers.consultant import router as consultant_router
from src.consultant.routers.schema import router as schema_router

app.include_router(health_router)
app.include_router(consultant_router)
app.include_router(schema_router)
