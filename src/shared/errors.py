"""Custom exception classes and FastAPI exception handlers.

Every error carries the HTTP status it maps to; the handler registered by
:func:`register_exception_handlers` renders it as ``{"detail": ...}``.
Services raise the catalog and consultant specific subclasses so callers
outside HTTP (the MCP server, the CLI) can match on them too.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.requests import Request

logger = logging.getLogger("shared.errors")


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str, status_code: int = 500) -> None:
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class ValidationError(AppError):
    """Validation error (422)."""

    def __init__(self, detail: str = "Validation error") -> None:
        super().__init__(detail=detail, status_code=422)


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(detail=detail, status_code=404)


class ConflictError(AppError):
    """Conflict error (409)."""

    def __init__(self, detail: str = "Conflict") -> None:
        super().__init__(detail=detail, status_code=409)


class ParsingError(AppError):
    """Stored markdown or seed data could not be parsed (400)."""

    def __init__(self, detail: str = "Parsing error") -> None:
        super().__init__(detail=detail, status_code=400)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class DatabaseNotFoundError(NotFoundError):
    """Catalog entry not found (404)."""

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(detail=f"Database {slug} not found")


class DuplicateDatabaseError(ConflictError):
    """A catalog entry with this slug already exists (409)."""

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(detail=f"Database {slug} already exists")


class UsernameRequiredError(AppError):
    """No GitHub username stored for a rating or comment (401)."""

    def __init__(
        self,
        detail: str = "GitHub username required. Please set your username first.",
    ) -> None:
        super().__init__(detail=detail, status_code=401)


# ---------------------------------------------------------------------------
# Consultant
# ---------------------------------------------------------------------------


class SessionNotFoundError(NotFoundError):
    """No consultant session with this id (404)."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(detail=f"Session {session_id} not found")


class NoRecommendationError(NotFoundError):
    """The session has not produced a matching recommendation yet (404)."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(detail=f"Session {session_id} has no recommendation yet")


class UnsupportedTargetError(ValidationError):
    """SQL output was requested for a non-relational target (422)."""

    def __init__(self, database_type: str) -> None:
        self.database_type = database_type
        super().__init__(
            detail=f"SQL scripts are only generated for relational targets, not {database_type}"
        )


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers with a FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        level = logging.ERROR if exc.status_code >= 500 else logging.INFO
        logger.log(
            level, "%s %s failed with %d: %s",
            request.method, request.url.path, exc.status_code, exc.detail,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )
