"""Markdown-backed repository of catalog entries."""
from __future__ import annotations

import logging

from src.catalog.services.markdown_codec import parse_entry, serialize_entry
from src.catalog.storage.blob_store import BlobStore
from src.shared.constants import ENTRY_COLLECTION, ENTRY_SUFFIX
from src.shared.errors import DatabaseNotFoundError, ParsingError
from src.shared.models.catalog import Comment, MarkdownDatabaseEntry, Rating
from src.shared.utils import now_iso

logger = logging.getLogger("catalog.repository")


class MarkdownCatalogRepository:
    """Stores one markdown document per entry in a :class:`BlobStore`.

    Keys have the form ``<collection>/<slug>/<slug>.md``.
    """

    def __init__(self, blob_store: BlobStore, collection: str = ENTRY_COLLECTION) -> None:
        self._blobs = blob_store
        self._collection = collection.strip("/")

    @property
    def blob_store(self) -> BlobStore:
        return self._blobs

    def entry_key(self, slug: str) -> str:
        return f"{self._collection}/{slug}/{slug}{ENTRY_SUFFIX}"

    def exists(self, slug: str) -> bool:
        return self._blobs.exists(self.entry_key(slug))

    def save(self, entry: MarkdownDatabaseEntry) -> None:
        """Serialize *entry* and overwrite its blob."""
        self._blobs.write(self.entry_key(entry.slug), serialize_entry(entry))
        logger.debug("Saved entry", extra={"slug": entry.slug})

    def load(self, slug: str) -> MarkdownDatabaseEntry | None:
        """Load a single entry.

        Returns:
            The parsed entry, or None if no blob exists for *slug*.

        Raises:
            ParsingError: If the stored document is malformed.
        """
        content = self._blobs.read(self.entry_key(slug))
        if content is None:
            return None
        return parse_entry(content)

    def list_all(self) -> list[MarkdownDatabaseEntry]:
        """Load every entry in key order, skipping unparseable documents."""
        entries: list[MarkdownDatabaseEntry] = []
        for key in self._blobs.list(f"{self._collection}/"):
            if not key.endswith(ENTRY_SUFFIX):
                continue
            content = self._blobs.read(key)
            if content is None:
                continue
            try:
                entries.append(parse_entry(content))
            except ParsingError as exc:
                logger.warning("Skipping malformed entry: %s", exc.detail, extra={"key": key})
        return entries

    def delete(self, slug: str) -> None:
        """Remove the entry for *slug*.

        Raises:
            DatabaseNotFoundError: If no such entry exists.
        """
        key = self.entry_key(slug)
        if not self._blobs.exists(key):
            raise DatabaseNotFoundError(slug)
        self._blobs.delete(key)
        logger.info("Deleted entry", extra={"slug": slug})

    def _require(self, slug: str) -> MarkdownDatabaseEntry:
        entry = self.load(slug)
        if entry is None:
            raise DatabaseNotFoundError(slug)
        return entry

    def add_rating(self, slug: str, rating: Rating) -> MarkdownDatabaseEntry:
        """Add *rating*, replacing any earlier rating by the same user."""
        entry = self._require(slug)
        ratings = [r for r in entry.ratings if r.username != rating.username]
        ratings.append(rating)
        updated = entry.model_copy(update={"ratings": ratings, "updated_at": now_iso()})
        self.save(updated)
        logger.info("Stored rating", extra={"slug": slug, "username": rating.username})
        return updated

    def add_comment(self, slug: str, comment: Comment) -> MarkdownDatabaseEntry:
        """Append *comment* to the entry's comments."""
        entry = self._require(slug)
        updated = entry.model_copy(
            update={"comments": [*entry.comments, comment], "updated_at": now_iso()}
        )
        self.save(updated)
        logger.info("Stored comment", extra={"slug": slug, "username": comment.username})
        return updated
