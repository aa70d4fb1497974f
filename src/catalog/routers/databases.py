"""Catalog entry router for the Catalog service."""
from __future__ import annotations

import asyncio

from fastapi import APIRouter, Query, Request, Response

from src.catalog.services.catalog_service import CatalogService
from src.shared.constants import DEFAULT_LISTING_LIMIT
from src.shared.models.catalog import (
    CategorySummary,
    DatabaseCreate,
    DatabaseRecord,
    DatabaseUpdate,
)

router = APIRouter(tags=["databases"])


def _service(request: Request) -> CatalogService:
    return CatalogService(request.app.state.repository)


@router.get("/api/databases")
async def list_databases(
    request: Request,
    category: str | None = Query(default=None, description="Filter by category name"),
) -> list[DatabaseRecord]:
    """List all catalog entries, optionally restricted to one category."""
    service = _service(request)
    if category:
        return await asyncio.to_thread(service.by_category, category)
    return await asyncio.to_thread(service.get_all)


@router.get("/api/databases/search")
async def search_databases(
    request: Request,
    q: str = Query(default="", max_length=200, description="Search term"),
) -> list[DatabaseRecord]:
    service = _service(request)
    return await asyncio.to_thread(service.search, q)


@router.get("/api/databases/newest")
async def newest_databases(
    request: Request,
    limit: int = Query(default=DEFAULT_LISTING_LIMIT, ge=1, le=100),
) -> list[DatabaseRecord]:
    service = _service(request)
    return await asyncio.to_thread(service.newest, limit)


@router.get("/api/databases/popular")
async def popular_databases(
    request: Request,
    limit: int = Query(default=DEFAULT_LISTING_LIMIT, ge=1, le=100),
) -> list[DatabaseRecord]:
    service = _service(request)
    return await asyncio.to_thread(service.most_popular, limit)


@router.get("/api/databases/recent")
async def recently_updated_databases(
    request: Request,
    limit: int = Query(default=DEFAULT_LISTING_LIMIT, ge=1, le=100),
) -> list[DatabaseRecord]:
    service = _service(request)
    return await asyncio.to_thread(service.recently_updated, limit)


@router.get("/api/databases/{slug}")
async def get_database(request: Request, slug: str) -> DatabaseRecord:
    service = _service(request)
    return await asyncio.to_thread(service.get_by_slug, slug)


@router.post("/api/databases", status_code=201)
async def create_database(request: Request, body: DatabaseCreate) -> DatabaseRecord:
    """Add a new entry; the slug is derived from the name."""
    service = _service(request)
    return await asyncio.to_thread(service.add, body)


@router.put("/api/databases/{slug}")
async def update_database(request: Request, slug: str, body: DatabaseUpdate) -> DatabaseRecord:
    """Apply a partial update to an existing entry."""
    service = _service(request)
    return await asyncio.to_thread(service.update, slug, body)


@router.delete("/api/databases/{slug}", status_code=204)
async def delete_database(request: Request, slug: str) -> Response:
    service = _service(request)
    await asyncio.to_thread(service.delete, slug)
    return Response(status_code=204)


@router.get("/api/categories")
async def list_categories(request: Request) -> list[CategorySummary]:
    service = _service(request)
    return await asyncio.to_thread(service.list_categories)
