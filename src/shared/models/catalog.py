"""Catalog Pydantic v2 data models."""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from src.shared.constants import DEFAULT_POPULARITY
from src.shared.utils import create_slug, now_iso


class DatabaseType(str, Enum):
    """Data model family of a catalogued database."""
    SQL = "SQL"
    NOSQL = "NoSQL"
    NEWSQL = "NewSQL"
    GRAPH = "Graph"
    TIME_SERIES = "Time Series"
    KEY_VALUE = "Key-Value"
    DOCUMENT = "Document"
    VECTOR = "Vector"
    OTHER = "Other"

    @property
    def is_relational(self) -> bool:
        return self in (DatabaseType.SQL, DatabaseType.NEWSQL)


class License(str, Enum):
    """Licensing model of a catalogued database."""
    OPEN_SOURCE = "Open Source"
    COMMERCIAL = "Commercial"
    HYBRID = "Hybrid"
    UNKNOWN = "Unknown"


class UseCaseDetail(BaseModel):
    """A worked use case attached to a catalog entry."""
    title: str = Field(..., min_length=1)
    description: str = ""
    industry: str | None = None
    company_size: str | None = None
    technical_requirements: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    challenges: list[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @model_validator(mode="before")
    @classmethod
    def _strip_title(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("title"), str):
            data = {**data, "title": data["title"].strip()}
        return data


class Rating(BaseModel):
    """A single user's star rating of a database."""
    username: str = Field(..., min_length=1)
    email: str | None = None
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = None
    date: str = Field(default_factory=now_iso)
    experience: str | None = None
    use_case: str | None = None
    company_size: str | None = None
    industry: str | None = None

    model_config = {"from_attributes": True}


class Comment(BaseModel):
    """A user comment on a database."""
    username: str = Field(..., min_length=1)
    email: str | None = None
    content: str = Field(..., min_length=1)
    date: str = Field(default_factory=now_iso)
    experience: str | None = None
    use_case: str | None = None
    helpful: int = Field(default=0, ge=0)

    model_config = {"from_attributes": True}


class DatabaseFields(BaseModel):
    """Editable descriptive fields of a catalog record."""
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    short_description: str = ""
    logo_url: str = ""
    website_url: str = ""
    documentation_url: str = ""
    github_url: str = ""
    category: str = Field(..., min_length=1)
    type: DatabaseType
    license: License = License.UNKNOWN
    cloud_offering: bool = False
    self_hosted: bool = False
    features: list[str] = Field(default_factory=list)
    use_cases: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    popularity: int = Field(default=DEFAULT_POPULARITY, ge=0, le=100)
    stars: int = Field(default=0, ge=0)
    tagline: str = ""
    key_strength: str = ""
    not_recommended_for: list[str] = Field(default_factory=list)
    use_case_details: list[UseCaseDetail] = Field(default_factory=list)
    contributors: str = ""

    model_config = {"from_attributes": True}


class DatabaseRecord(DatabaseFields):
    """A catalogued database product.

    ``id`` always equals ``slug``; the slug is derived from the name when
    it is not supplied.
    """
    id: str = ""
    slug: str = ""
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)

    @model_validator(mode="after")
    def _derive_identity(self) -> "DatabaseRecord":
        if not self.slug:
            self.slug = create_slug(self.name)
        self.id = self.slug
        return self


class MarkdownDatabaseEntry(DatabaseRecord):
    """A catalog record plus the metadata and interactions stored with it."""
    official_description: str = ""
    architecture: str = ""
    data_model: str = ""
    query_languages: list[str] = Field(default_factory=list)
    indexing_support: list[str] = Field(default_factory=list)
    replication_support: bool = False
    sharding_support: bool = False
    backup_options: list[str] = Field(default_factory=list)
    security_features: list[str] = Field(default_factory=list)
    performance_characteristics: list[str] = Field(default_factory=list)
    scalability_options: list[str] = Field(default_factory=list)
    community_size: str = ""
    enterprise_support: bool = False
    cloud_providers: list[str] = Field(default_factory=list)
    on_premise_support: bool = False
    api_support: list[str] = Field(default_factory=list)
    integrations: list[str] = Field(default_factory=list)
    development_status: str = ""
    latest_version: str = ""
    release_frequency: str = ""
    maintenance_status: str = ""
    ratings: list[Rating] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: DatabaseRecord) -> "MarkdownDatabaseEntry":
        """Wrap a plain record, defaulting the extended metadata from it."""
        data = record.model_dump(exclude={"id"})
        data.setdefault("official_description", record.description)
        data.setdefault("data_model", record.type.value)
        data.setdefault("on_premise_support", record.self_hosted)
        data.setdefault("development_status", "Active")
        data.setdefault("maintenance_status", "Maintained")
        return cls.model_validate(data)

    def to_record(self) -> DatabaseRecord:
        """Project back to the plain catalog record."""
        return DatabaseRecord.model_validate(
            self.model_dump(include=set(DatabaseRecord.model_fields))
        )


class DatabaseCreate(DatabaseFields):
    """Request body for adding a catalog entry."""


class DatabaseUpdate(BaseModel):
    """Partial update of a catalog entry; unset fields are left untouched."""
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    short_description: str | None = None
    logo_url: str | None = None
    website_url: str | None = None
    documentation_url: str | None = None
    github_url: str | None = None
    category: str | None = None
    type: DatabaseType | None = None
    license: License | None = None
    cloud_offering: bool | None = None
    self_hosted: bool | None = None
    features: list[str] | None = None
    use_cases: list[str] | None = None
    languages: list[str] | None = None
    pros: list[str] | None = None
    cons: list[str] | None = None
    popularity: int | None = Field(default=None, ge=0, le=100)
    stars: int | None = Field(default=None, ge=0)
    tagline: str | None = None
    key_strength: str | None = None
    not_recommended_for: list[str] | None = None
    use_case_details: list[UseCaseDetail] | None = None
    contributors: str | None = None


class CategorySummary(BaseModel):
    """A category name with the number of entries in it."""
    name: str
    count: int = Field(..., ge=0)


class RatingSummary(BaseModel):
    """Aggregate of all ratings on one entry."""
    average_rating: float = Field(default=0.0, ge=0, le=5)
    total_ratings: int = Field(default=0, ge=0)
    ratings: list[Rating] = Field(default_factory=list)


class RatingRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = None


class CommentRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=10_000)


class UseCaseSubmission(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5_000)


class UsernameRequest(BaseModel):
    username: str = Field(..., pattern=r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,38})$")


class UsernameResponse(BaseModel):
    username: str | None = None
