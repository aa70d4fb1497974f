"""Health check router for the Catalog service."""
from __future__ import annotations

import asyncio
import time

from fastapi import APIRouter, Request

from src.catalog.storage.blob_store import SqliteBlobStore
from src.shared.constants import CATALOG_SERVICE_NAME, VERSION
from src.shared.models.common import HealthStatus

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def health(request: Request) -> HealthStatus:
    """Health check endpoint returning service status."""

    def _check() -> HealthStatus:
        blob_store = request.app.state.blob_store
        start_time = request.app.state.start_time

        storage_status = "connected"
        if blob_store is None:
            storage_status = "disconnected"
        elif isinstance(blob_store, SqliteBlobStore) and not blob_store.ping():
            storage_status = "disconnected"

        return HealthStatus(
            status="healthy" if storage_status == "connected" else "degraded",
            service_name=CATALOG_SERVICE_NAME,
            version=VERSION,
            storage=storage_status,
            uptime_seconds=time.time() - start_time,
            details={"backend": type(blob_store).__name__ if blob_store else None},
        )

    return await asyncio.to_thread(_check)
