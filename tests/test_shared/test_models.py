"""Tests for shared Pydantic models."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.shared.models.catalog import (
    Comment,
    DatabaseRecord,
    DatabaseType,
    DatabaseUpdate,
    License,
    MarkdownDatabaseEntry,
    Rating,
    UseCaseDetail,
    UsernameRequest,
)
from src.shared.models.common import HealthStatus
from src.shared.models.consultant import (
    ChatMessage,
    RecommendationResult,
    SchemaTarget,
    UserRequirements,
)


class TestDatabaseRecord:
    def test_slug_derived_from_name(self):
        record = DatabaseRecord(name="Amazon DynamoDB", category="Key-Value", type=DatabaseType.NOSQL)
        assert record.slug == "amazon-dynamodb"
        assert record.id == "amazon-dynamodb"

    def test_explicit_slug_kept(self):
        record = DatabaseRecord(name="Postgres", slug="postgresql", category="Relational",
                                type=DatabaseType.SQL)
        assert record.slug == "postgresql"
        assert record.id == "postgresql"

    def test_defaults(self):
        record = DatabaseRecord(name="X", category="Other", type=DatabaseType.OTHER)
        assert record.license == License.UNKNOWN
        assert record.popularity == 50
        assert record.features == []
        assert record.created_at

    def test_popularity_bounds(self):
        with pytest.raises(ValidationError):
            DatabaseRecord(name="X", category="Other", type=DatabaseType.OTHER, popularity=101)

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            DatabaseRecord(name="X", category="Other", type="Spreadsheet")


class TestDatabaseType:
    def test_relational_types(self):
        assert DatabaseType.SQL.is_relational
        assert DatabaseType.NEWSQL.is_relational
        assert not DatabaseType.NOSQL.is_relational
        assert not DatabaseType.GRAPH.is_relational


class TestMarkdownDatabaseEntry:
    def test_from_record_defaults_metadata(self, postgres_record: DatabaseRecord):
        entry = MarkdownDatabaseEntry.from_record(postgres_record)
        assert entry.official_description == postgres_record.description
        assert entry.data_model == "SQL"
        assert entry.on_premise_support is True
        assert entry.ratings == []

    def test_to_record_round_trip(self, postgres_record: DatabaseRecord):
        entry = MarkdownDatabaseEntry.from_record(postgres_record)
        assert entry.to_record().model_dump() == postgres_record.model_dump()


class TestInteractions:
    def test_rating_bounds(self):
        with pytest.raises(ValidationError):
            Rating(username="octocat", rating=0)
        with pytest.raises(ValidationError):
            Rating(username="octocat", rating=6)

    def test_comment_requires_content(self):
        with pytest.raises(ValidationError):
            Comment(username="octocat", content="")

    def test_username_pattern(self):
        assert UsernameRequest(username="octo-cat").username == "octo-cat"
        with pytest.raises(ValidationError):
            UsernameRequest(username="-bad")
        with pytest.raises(ValidationError):
            UsernameRequest(username="has space")


class TestUseCaseDetail:
    def test_title_stripped(self):
        assert UseCaseDetail(title="  Session store ").title == "Session store"

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError):
            UseCaseDetail(title="   ")


class TestDatabaseUpdate:
    def test_unset_fields_excluded(self):
        update = DatabaseUpdate(popularity=70)
        assert update.model_dump(exclude_unset=True) == {"popularity": 70}


class TestConsultantModels:
    def test_requirements_empty_by_default(self):
        req = UserRequirements()
        assert req.project_type is None
        assert req.performance == []

    def test_empty_result_has_no_match(self):
        assert RecommendationResult().has_match is False

    def test_chat_message_role(self):
        assert ChatMessage(role="user", content="hi").id
        with pytest.raises(ValidationError):
            ChatMessage(role="system", content="hi")

    def test_schema_target_default(self):
        target = SchemaTarget()
        assert target.name == "PostgreSQL"
        assert target.type == DatabaseType.SQL


class TestHealthStatus:
    def test_valid(self):
        status = HealthStatus(service_name="catalog", version="1.0.0", uptime_seconds=1.5)
        assert status.status == "healthy"
        assert status.storage == "connected"

    def test_invalid_status(self):
        with pytest.raises(ValidationError):
            HealthStatus(status="broken", service_name="catalog", version="1.0.0",
                         uptime_seconds=0)
