"""Consultant conversation and recommendation router."""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, Request, Response
from fastapi.responses import PlainTextResponse

from src.catalog.services.catalog_service import CatalogService
from src.consultant.services.conversation import ConsultantSession, SessionRegistry
from src.consultant.services.diagrams import build_architecture_diagram
from src.consultant.services.narrative import export_markdown
from src.consultant.services.recommendation_scorer import generate_recommendations
from src.consultant.services.requirement_extractor import extract_requirements
from src.shared.errors import NoRecommendationError
from src.shared.models.catalog import DatabaseRecord
from src.shared.models.consultant import (
    ArchitectureDiagram,
    ChatReply,
    ExtractRequest,
    MessageRequest,
    RecommendationResult,
    SessionState,
    UserRequirements,
)

router = APIRouter(prefix="/api/consultant", tags=["consultant"])


def _sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def _catalog(request: Request) -> list[DatabaseRecord]:
    return CatalogService(request.app.state.repository).get_all()


def _with_recommendation(session: ConsultantSession) -> RecommendationResult:
    if session.recommendations is None or not session.recommendations.has_match:
        raise NoRecommendationError(session.id)
    return session.recommendations


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


@router.post("/sessions", status_code=201)
async def create_session(request: Request) -> SessionState:
    """Start a conversation; the transcript opens with the welcome message."""
    return _sessions(request).create().state()


@router.get("/sessions/{session_id}")
async def get_session(request: Request, session_id: str) -> SessionState:
    return _sessions(request).get(session_id).state()


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(request: Request, session_id: str) -> Response:
    _sessions(request).delete(session_id)
    return Response(status_code=204)


@router.post("/sessions/{session_id}/reset")
async def reset_session(request: Request, session_id: str) -> SessionState:
    session = _sessions(request).get(session_id)
    session.reset()
    return session.state()


@router.post("/sessions/{session_id}/messages")
async def send_message(request: Request, session_id: str, body: MessageRequest) -> ChatReply:
    """Process one user message and return the consultant's reply."""
    session = _sessions(request).get(session_id)
    catalog = await asyncio.to_thread(_catalog, request)

    delay_ms = request.app.state.response_delay_ms
    if delay_ms:
        await asyncio.sleep(delay_ms / 1000)

    return session.process_message(body.content, catalog)


@router.get("/sessions/{session_id}/report", response_class=PlainTextResponse)
async def get_report(request: Request, session_id: str) -> PlainTextResponse:
    """Markdown report of the session's latest recommendation."""
    session = _sessions(request).get(session_id)
    result = _with_recommendation(session)
    report = export_markdown(result, session.requirements, datetime.now(timezone.utc).date())
    return PlainTextResponse(
        report,
        media_type="text/markdown",
        headers={"Content-Disposition": 'attachment; filename="database-recommendation.md"'},
    )


@router.get("/sessions/{session_id}/diagram")
async def get_diagram(request: Request, session_id: str) -> ArchitectureDiagram:
    session = _sessions(request).get(session_id)
    result = _with_recommendation(session)
    return build_architecture_diagram(result, session.requirements)


# ---------------------------------------------------------------------------
# Stateless helpers
# ---------------------------------------------------------------------------


@router.post("/extract")
async def extract(body: ExtractRequest) -> UserRequirements:
    """Extract requirements from a single piece of text."""
    return extract_requirements(body.text)


@router.post("/recommend")
async def recommend(request: Request, body: UserRequirements) -> RecommendationResult:
    """Rank the catalog for the given requirements."""
    catalog = await asyncio.to_thread(_catalog, request)
    return generate_recommendations(body, catalog, request.app.state.max_alternatives)
