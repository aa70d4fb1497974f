"""User interactions: GitHub username, ratings, comments and use cases.

There is no authentication. The caller identifies itself by a GitHub
username kept in the blob map; every write requires it and fails with
``UsernameRequiredError`` before touching storage when it is absent.
"""
from __future__ import annotations

import logging

from src.catalog.services.repository import MarkdownCatalogRepository
from src.shared.constants import USERNAME_KEY
from src.shared.errors import UsernameRequiredError, ValidationError
from src.shared.models.catalog import Comment, Rating

logger = logging.getLogger("catalog.interactions")


def format_use_case_submission(title: str, description: str) -> str:
    """Render a use case submission as comment text."""
    return "\n".join([
        "**Use Case Submission**",
        f"**Title:** {' '.join(title.split())}",
        f"**Description:** {description.strip()}",
    ])


class UserInteractionService:
    """Ratings and comments attributed to the stored GitHub username."""

    def __init__(self, repository: MarkdownCatalogRepository) -> None:
        self._repo = repository
        self._blobs = repository.blob_store

    # ------------------------------------------------------------------
    # Username
    # ------------------------------------------------------------------

    def get_username(self) -> str | None:
        value = self._blobs.read(USERNAME_KEY)
        if value is None or not value.strip():
            return None
        return value.strip()

    def set_username(self, username: str) -> None:
        self._blobs.write(USERNAME_KEY, username.strip())
        logger.info("GitHub username set", extra={"username": username.strip()})

    def clear_username(self) -> None:
        self._blobs.delete(USERNAME_KEY)

    def _require_username(self) -> str:
        username = self.get_username()
        if username is None:
            raise UsernameRequiredError()
        return username

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    def add_or_update_rating(self, slug: str, rating: int, comment: str | None = None) -> Rating:
        """Rate *slug* as the stored user, replacing that user's earlier rating."""
        username = self._require_username()
        entry = Rating(username=username, rating=rating, comment=comment or None)
        self._repo.add_rating(slug, entry)
        return entry

    def get_user_rating(self, slug: str) -> Rating | None:
        """The stored user's rating of *slug*, or None."""
        username = self.get_username()
        if username is None:
            return None
        entry = self._repo.load(slug)
        if entry is None:
            return None
        return next((r for r in entry.ratings if r.username == username), None)

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def add_comment(self, slug: str, content: str) -> Comment:
        username = self._require_username()
        if not content.strip():
            raise ValidationError("Comment content must not be empty")
        comment = Comment(username=username, content=content.strip())
        self._repo.add_comment(slug, comment)
        return comment

    def submit_use_case(self, slug: str, title: str, description: str) -> Comment:
        """Store a use case proposal as a specially formatted comment."""
        self._require_username()
        return self.add_comment(slug, format_use_case_submission(title, description))
