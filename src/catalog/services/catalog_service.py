"""Catalog queries and mutations over the markdown repository."""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from src.catalog.services.repository import MarkdownCatalogRepository
from src.shared.constants import DEFAULT_LISTING_LIMIT
from src.shared.errors import (
    DatabaseNotFoundError,
    DuplicateDatabaseError,
    ParsingError,
    ValidationError,
)
from src.shared.models.catalog import (
    CategorySummary,
    Comment,
    DatabaseCreate,
    DatabaseRecord,
    DatabaseUpdate,
    MarkdownDatabaseEntry,
    RatingSummary,
)
from src.shared.utils import create_slug, now_iso

logger = logging.getLogger("catalog.service")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _timestamp(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def load_seed_records(path: str | Path) -> list[DatabaseRecord]:
    """Read the packaged seed catalog.

    The file is a YAML mapping with a ``databases`` list; each item is
    validated as a :class:`DatabaseRecord`.

    Raises:
        ParsingError: If the file is not valid YAML or an item is invalid.
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        document = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ParsingError(f"Invalid seed catalog {path}: {exc}") from exc

    items = document.get("databases", []) if isinstance(document, dict) else None
    if not isinstance(items, list):
        raise ParsingError(f"Seed catalog {path} must contain a 'databases' list")

    records: list[DatabaseRecord] = []
    for item in items:
        try:
            records.append(DatabaseRecord.model_validate(item))
        except PydanticValidationError as exc:
            raise ParsingError(f"Invalid seed entry in {path}: {exc.errors()[0]['msg']}") from exc
    return records


class CatalogService:
    """Read and write access to catalog records."""

    def __init__(self, repository: MarkdownCatalogRepository) -> None:
        self._repo = repository

    @property
    def repository(self) -> MarkdownCatalogRepository:
        return self._repo

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def seed(self, records: list[DatabaseRecord]) -> int:
        """Store *records* if the catalog is empty.

        Returns:
            The number of entries written (0 when entries already exist).
        """
        if self._repo.list_all():
            return 0
        for record in records:
            self._repo.save(MarkdownDatabaseEntry.from_record(record))
        logger.info("Seeded catalog with %d entries", len(records))
        return len(records)

    def seed_from_file(self, path: str | Path) -> int:
        return self.seed(load_seed_records(path))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_all(self) -> list[DatabaseRecord]:
        return [entry.to_record() for entry in self._repo.list_all()]

    def get_entry(self, slug: str) -> MarkdownDatabaseEntry:
        entry = self._repo.load(slug)
        if entry is None:
            raise DatabaseNotFoundError(slug)
        return entry

    def get_by_slug(self, slug: str) -> DatabaseRecord:
        return self.get_entry(slug).to_record()

    def by_category(self, category: str) -> list[DatabaseRecord]:
        return [r for r in self.get_all() if r.category == category]

    def list_categories(self) -> list[CategorySummary]:
        """Category names with entry counts, ordered by name."""
        counts = Counter(record.category for record in self.get_all())
        return [CategorySummary(name=name, count=counts[name]) for name in sorted(counts)]

    def search(self, query: str) -> list[DatabaseRecord]:
        """Case-insensitive substring search.

        Matches name, description, category, type, features and use cases.
        A blank query returns every record.
        """
        term = query.strip().lower()
        records = self.get_all()
        if not term:
            return records

        def _matches(record: DatabaseRecord) -> bool:
            haystack = [
                record.name,
                record.description,
                record.category,
                record.type.value,
                *record.features,
                *record.use_cases,
            ]
            return any(term in value.lower() for value in haystack)

        return [record for record in records if _matches(record)]

    def newest(self, limit: int = DEFAULT_LISTING_LIMIT) -> list[DatabaseRecord]:
        records = sorted(self.get_all(), key=lambda r: _timestamp(r.created_at), reverse=True)
        return records[:limit]

    def most_popular(self, limit: int = DEFAULT_LISTING_LIMIT) -> list[DatabaseRecord]:
        records = sorted(self.get_all(), key=lambda r: r.popularity, reverse=True)
        return records[:limit]

    def recently_updated(self, limit: int = DEFAULT_LISTING_LIMIT) -> list[DatabaseRecord]:
        records = sorted(self.get_all(), key=lambda r: _timestamp(r.updated_at), reverse=True)
        return records[:limit]

    def get_ratings(self, slug: str) -> RatingSummary:
        ratings = self.get_entry(slug).ratings
        if not ratings:
            return RatingSummary()
        average = sum(r.rating for r in ratings) / len(ratings)
        return RatingSummary(average_rating=average, total_ratings=len(ratings), ratings=ratings)

    def get_comments(self, slug: str) -> list[Comment]:
        return self.get_entry(slug).comments

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, payload: DatabaseCreate) -> DatabaseRecord:
        """Create a new entry; the slug is derived from the name.

        Raises:
            DuplicateDatabaseError: If an entry with the same slug already exists.
        """
        slug = create_slug(payload.name)
        if not slug:
            raise ValidationError(f"Cannot derive a slug from name {payload.name!r}")
        if self._repo.exists(slug):
            raise DuplicateDatabaseError(slug)

        now = now_iso()
        record = DatabaseRecord.model_validate(
            {**payload.model_dump(), "slug": slug, "created_at": now, "updated_at": now}
        )
        self._repo.save(MarkdownDatabaseEntry.from_record(record))
        logger.info("Added database", extra={"slug": slug})
        return record

    def update(self, slug: str, changes: DatabaseUpdate) -> DatabaseRecord:
        """Apply the set fields of *changes* and bump ``updated_at``.

        The slug never changes, even when the name does.
        """
        entry = self.get_entry(slug)
        data = entry.model_dump()
        data.update(
            (field, value)
            for field, value in changes.model_dump(exclude_unset=True).items()
            if value is not None
        )
        data["updated_at"] = now_iso()
        updated = MarkdownDatabaseEntry.model_validate(data)
        self._repo.save(updated)
        logger.info("Updated database", extra={"slug": slug})
        return updated.to_record()

    def delete(self, slug: str) -> None:
        self._repo.delete(slug)
