"""Profile, rating, comment and use case router for the Catalog service."""
from __future__ import annotations

import asyncio

from fastapi import APIRouter, Request, Response

from src.catalog.services.catalog_service import CatalogService
from src.catalog.services.interactions import UserInteractionService
from src.shared.models.catalog import (
    Comment,
    CommentRequest,
    Rating,
    RatingRequest,
    RatingSummary,
    UseCaseSubmission,
    UsernameRequest,
    UsernameResponse,
)

router = APIRouter(tags=["interactions"])


def _interactions(request: Request) -> UserInteractionService:
    return UserInteractionService(request.app.state.repository)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/api/profile/username")
async def get_username(request: Request) -> UsernameResponse:
    service = _interactions(request)
    return UsernameResponse(username=await asyncio.to_thread(service.get_username))


@router.put("/api/profile/username")
async def set_username(request: Request, body: UsernameRequest) -> UsernameResponse:
    """Store the GitHub username used to attribute ratings and comments."""
    service = _interactions(request)
    await asyncio.to_thread(service.set_username, body.username)
    return UsernameResponse(username=body.username)


@router.delete("/api/profile/username", status_code=204)
async def clear_username(request: Request) -> Response:
    service = _interactions(request)
    await asyncio.to_thread(service.clear_username)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------


@router.get("/api/databases/{slug}/ratings")
async def get_ratings(request: Request, slug: str) -> RatingSummary:
    service = CatalogService(request.app.state.repository)
    return await asyncio.to_thread(service.get_ratings, slug)


@router.get("/api/databases/{slug}/ratings/me")
async def get_my_rating(request: Request, slug: str) -> Rating | None:
    """The stored user's rating of the entry, or null."""
    service = _interactions(request)
    return await asyncio.to_thread(service.get_user_rating, slug)


@router.post("/api/databases/{slug}/ratings", status_code=201)
async def rate_database(request: Request, slug: str, body: RatingRequest) -> Rating:
    """Add or replace the stored user's rating.

    Responds 401 without writing anything when no username is stored.
    """
    service = _interactions(request)
    return await asyncio.to_thread(
        service.add_or_update_rating, slug, body.rating, body.comment
    )


# ---------------------------------------------------------------------------
# Comments and use cases
# ---------------------------------------------------------------------------


@router.get("/api/databases/{slug}/comments")
async def get_comments(request: Request, slug: str) -> list[Comment]:
    service = CatalogService(request.app.state.repository)
    return await asyncio.to_thread(service.get_comments, slug)


@router.post("/api/databases/{slug}/comments", status_code=201)
async def comment_on_database(request: Request, slug: str, body: CommentRequest) -> Comment:
    service = _interactions(request)
    return await asyncio.to_thread(service.add_comment, slug, body.content)


@router.post("/api/databases/{slug}/use-cases", status_code=201)
async def submit_use_case(request: Request, slug: str, body: UseCaseSubmission) -> Comment:
    """Submit a use case; it is stored as a formatted comment."""
    service = _interactions(request)
    return await asyncio.to_thread(
        service.submit_use_case, slug, body.title, body.description
    )
