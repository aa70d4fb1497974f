"""Schema design router for the Consultant service."""
from __future__ import annotations

import asyncio

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from src.catalog.services.catalog_service import CatalogService
from src.consultant.services.schema_generator import (
    analyze_use_case,
    apply_requirements,
    design_schema,
)
from src.shared.errors import UnsupportedTargetError
from src.shared.models.consultant import (
    SchemaRequest,
    SchemaResponse,
    SchemaTarget,
    UseCaseAnalysis,
)

router = APIRouter(prefix="/api/schema", tags=["schema"])


async def _resolve_target(request: Request, body: SchemaRequest) -> SchemaTarget:
    """Use the catalog entry named by ``database_slug`` when given."""
    if not body.database_slug:
        return body.target
    service = CatalogService(request.app.state.repository)
    record = await asyncio.to_thread(service.get_by_slug, body.database_slug)
    return SchemaTarget(name=record.name, type=record.type)


@router.post("/analyze")
async def analyze(body: SchemaRequest) -> UseCaseAnalysis:
    return apply_requirements(analyze_use_case(body.use_case), body.requirements)


@router.post("/generate")
async def generate(request: Request, body: SchemaRequest) -> SchemaResponse:
    """Generate a starter schema with its SQL or collection validators."""
    target = await _resolve_target(request, body)
    return design_schema(body.use_case, target, body.requirements)


@router.post("/sql", response_class=PlainTextResponse)
async def generate_sql(request: Request, body: SchemaRequest) -> PlainTextResponse:
    """The DDL script alone, as a downloadable text file."""
    target = await _resolve_target(request, body)
    if not target.type.is_relational:
        raise UnsupportedTargetError(target.type.value)
    response = design_schema(body.use_case, target, body.requirements)
    return PlainTextResponse(
        response.sql,
        headers={
            "Content-Disposition": f'attachment; filename="{response.database_schema.name}.sql"'
        },
    )
