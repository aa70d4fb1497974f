"""Shared test fixtures for the database consultant test suite."""
from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

from src.catalog.services.catalog_service import CatalogService
from src.catalog.services.repository import MarkdownCatalogRepository
from src.catalog.storage.blob_store import InMemoryBlobStore
from src.shared.db.connection import ConnectionPool
from src.shared.models.catalog import (
    Comment,
    DatabaseRecord,
    DatabaseType,
    License,
    MarkdownDatabaseEntry,
    Rating,
    UseCaseDetail,
)
from src.shared.models.consultant import (
    Budget,
    LoadLevel,
    ProjectType,
    TeamSize,
    UserRequirements,
)


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def connection_pool(tmp_db_path: Path) -> Generator[ConnectionPool, None, None]:
    """Provide a ConnectionPool with a temporary database."""
    pool = ConnectionPool(tmp_db_path)
    yield pool
    pool.close()


# ---------------------------------------------------------------------------
# Catalog records
# ---------------------------------------------------------------------------


@pytest.fixture
def postgres_record() -> DatabaseRecord:
    return DatabaseRecord(
        name="PostgreSQL",
        description="Advanced open source relational database.",
        category="Relational",
        type=DatabaseType.SQL,
        license=License.OPEN_SOURCE,
        cloud_offering=True,
        self_hosted=True,
        features=["ACID Transactions", "High Availability", "JSON Support"],
        use_cases=["Web Applications", "Analytics"],
        popularity=95,
        created_at="2024-01-01T00:00:00+00:00",
        updated_at="2024-03-01T00:00:00+00:00",
    )


@pytest.fixture
def mongodb_record() -> DatabaseRecord:
    return DatabaseRecord(
        name="MongoDB",
        description="Document database with flexible schemas.",
        category="Document",
        type=DatabaseType.NOSQL,
        license=License.HYBRID,
        cloud_offering=True,
        self_hosted=True,
        features=["Horizontal Scaling", "Sharding", "High Availability"],
        use_cases=["Content Management", "Mobile Apps"],
        popularity=90,
        created_at="2024-02-01T00:00:00+00:00",
        updated_at="2024-02-15T00:00:00+00:00",
    )


@pytest.fixture
def redis_record() -> DatabaseRecord:
    return DatabaseRecord(
        name="Redis",
        description="In-memory data store used as cache and message broker.",
        category="In-Memory",
        type=DatabaseType.KEY_VALUE,
        license=License.HYBRID,
        cloud_offering=True,
        self_hosted=True,
        features=["High Performance", "Pub/Sub"],
        use_cases=["Caching", "Session Storage"],
        popularity=85,
        created_at="2024-03-01T00:00:00+00:00",
        updated_at="2024-01-10T00:00:00+00:00",
    )


@pytest.fixture
def dynamodb_record() -> DatabaseRecord:
    return DatabaseRecord(
        name="Amazon DynamoDB",
        description="Fully managed key-value and document database.",
        category="Key-Value",
        type=DatabaseType.NOSQL,
        license=License.COMMERCIAL,
        cloud_offering=True,
        self_hosted=False,
        features=["Horizontal Scaling", "High Availability"],
        use_cases=["Serverless Applications"],
        popularity=80,
        created_at="2023-12-01T00:00:00+00:00",
        updated_at="2023-12-01T00:00:00+00:00",
    )


@pytest.fixture
def sample_records(
    postgres_record: DatabaseRecord,
    mongodb_record: DatabaseRecord,
    redis_record: DatabaseRecord,
    dynamodb_record: DatabaseRecord,
) -> list[DatabaseRecord]:
    return [postgres_record, mongodb_record, redis_record, dynamodb_record]


@pytest.fixture
def full_entry(postgres_record: DatabaseRecord) -> MarkdownDatabaseEntry:
    """An entry exercising every markdown section."""
    entry = MarkdownDatabaseEntry.from_record(postgres_record)
    return entry.model_copy(update={
        "short_description": "The world's most advanced open source database.",
        "website_url": "https://www.postgresql.org",
        "documentation_url": "https://www.postgresql.org/docs/",
        "github_url": "https://github.com/postgres/postgres",
        "languages": ["Python", "Java"],
        "pros": ["Mature", "Extensible"],
        "cons": ["Vertical scaling limits"],
        "tagline": "Reliable: proven since 1996",
        "architecture": "Client-server",
        "query_languages": ["SQL"],
        "replication_support": True,
        "latest_version": "16.2",
        "not_recommended_for": ["Key-value caching"],
        "use_case_details": [
            UseCaseDetail(
                title="Online store",
                description="Orders and inventory in one transactional store.",
                industry="Retail",
                company_size="Medium",
                technical_requirements=["ACID"],
                benefits=["Consistency"],
                challenges=["Sharding"],
            )
        ],
        "ratings": [
            Rating(username="octocat", rating=5, comment="Rock solid.",
                   date="2024-05-01T10:00:00+00:00"),
            Rating(username="hubot", rating=3, date="2024-05-02T10:00:00+00:00"),
        ],
        "comments": [
            Comment(username="octocat", content="Great docs.\nLine two.",
                    date="2024-05-03T10:00:00+00:00"),
        ],
    })


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def repository(blob_store: InMemoryBlobStore) -> MarkdownCatalogRepository:
    return MarkdownCatalogRepository(blob_store)


@pytest.fixture
def seeded_service(
    repository: MarkdownCatalogRepository, sample_records: list[DatabaseRecord]
) -> CatalogService:
    service = CatalogService(repository)
    service.seed(sample_records)
    return service


# ---------------------------------------------------------------------------
# Requirements
# ---------------------------------------------------------------------------


@pytest.fixture
def ecommerce_requirements() -> UserRequirements:
    return UserRequirements(
        project_type=ProjectType.ECOMMERCE_PLATFORM,
        expected_load=LoadLevel.HIGH,
        budget=Budget.LIMITED,
        team=TeamSize.SMALL,
    )
