"""Consultant service Pydantic v2 data models."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from src.shared.models.catalog import DatabaseRecord, DatabaseType


# ---------------------------------------------------------------------------
# Requirements
# ---------------------------------------------------------------------------


class ProjectType(str, Enum):
    WEB_APPLICATION = "web application"
    MOBILE_APPLICATION = "mobile application"
    ANALYTICS_PLATFORM = "analytics platform"
    IOT_APPLICATION = "IoT application"
    ECOMMERCE_PLATFORM = "e-commerce platform"


class LoadLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Budget(str, Enum):
    LIMITED = "limited"
    ENTERPRISE = "enterprise"


class TeamSize(str, Enum):
    SOLO = "solo"
    SMALL = "small"
    LARGE = "large"


class PerformanceNeed(str, Enum):
    HIGH_PERFORMANCE = "high performance"
    REAL_TIME = "real-time"
    SCALABILITY = "scalability"


class UserRequirements(BaseModel):
    """Structured facts accumulated from a consultant conversation."""
    project_type: ProjectType | None = None
    expected_load: LoadLevel | None = None
    budget: Budget | None = None
    team: TeamSize | None = None
    performance: list[PerformanceNeed] = Field(default_factory=list)

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


class Recommendation(BaseModel):
    """A scored catalog record with the reasons behind its score."""
    database: DatabaseRecord
    score: int = Field(..., ge=0)
    reasons: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    use_case_match: str = ""

    model_config = {"from_attributes": True}


class ArchitecturePlan(BaseModel):
    pattern: str
    components: list[str] = Field(default_factory=list)
    scaling_strategy: str
    backup_strategy: str


class ImplementationPlan(BaseModel):
    steps: list[str] = Field(default_factory=list)
    considerations: list[str] = Field(default_factory=list)
    timeline: str


class CostEstimate(BaseModel):
    development: str
    operational: str
    scaling: str


class RecommendationResult(BaseModel):
    """Ranked recommendations; ``primary`` is None on an insufficient match."""
    primary: Recommendation | None = None
    alternatives: list[Recommendation] = Field(default_factory=list)
    architecture: ArchitecturePlan | None = None
    implementation: ImplementationPlan | None = None
    costs: CostEstimate | None = None

    @property
    def has_match(self) -> bool:
        return self.primary is not None


# ---------------------------------------------------------------------------
# Diagrams
# ---------------------------------------------------------------------------


class DiagramNode(BaseModel):
    id: str
    name: str
    x: int = Field(..., ge=0, le=100)
    y: int = Field(..., ge=0, le=100)


class DiagramEdge(BaseModel):
    source: str
    target: str
    label: str


class ArchitectureDiagram(BaseModel):
    nodes: list[DiagramNode] = Field(default_factory=list)
    edges: list[DiagramEdge] = Field(default_factory=list)
    mermaid: str = ""


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------


class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: str = Field(..., pattern=r"^(user|assistant)$")
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=10_000)


class ChatReply(BaseModel):
    message: ChatMessage
    requirements: UserRequirements
    recommendations: RecommendationResult | None = None


class SessionState(BaseModel):
    id: str
    requirements: UserRequirements
    messages: list[ChatMessage] = Field(default_factory=list)
    recommendations: RecommendationResult | None = None


class ExtractRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=10_000)


# ---------------------------------------------------------------------------
# Schema design
# ---------------------------------------------------------------------------


class RelationshipType(str, Enum):
    ONE_TO_ONE = "ONE_TO_ONE"
    ONE_TO_MANY = "ONE_TO_MANY"
    MANY_TO_MANY = "MANY_TO_MANY"


class ColumnDefinition(BaseModel):
    name: str
    type: str
    nullable: bool = True
    default_value: str | None = None
    description: str | None = None
    length: int | None = None
    precision: int | None = None
    scale: int | None = None


class IndexDefinition(BaseModel):
    name: str
    columns: list[str] = Field(..., min_length=1)
    unique: bool = False
    type: str | None = None


class TableSchema(BaseModel):
    name: str
    columns: list[ColumnDefinition] = Field(default_factory=list)
    primary_key: list[str] = Field(default_factory=list)
    indexes: list[IndexDefinition] = Field(default_factory=list)


class RelationshipDefinition(BaseModel):
    id: str
    from_table: str
    from_column: str
    to_table: str
    to_column: str
    type: RelationshipType
    name: str = ""


class ViewDefinition(BaseModel):
    name: str
    query: str
    description: str = ""


class ParameterDefinition(BaseModel):
    name: str
    type: str
    default_value: str | None = None


class FunctionDefinition(BaseModel):
    name: str
    parameters: list[ParameterDefinition] = Field(default_factory=list)
    return_type: str
    body: str
    language: str


class DatabaseSchema(BaseModel):
    name: str
    tables: list[TableSchema] = Field(default_factory=list)
    relationships: list[RelationshipDefinition] = Field(default_factory=list)
    views: list[ViewDefinition] = Field(default_factory=list)
    functions: list[FunctionDefinition] = Field(default_factory=list)


class UseCaseAnalysis(BaseModel):
    entities: list[str] = Field(default_factory=list)
    relationships: list[str] = Field(default_factory=list)
    business_rules: list[str] = Field(default_factory=list)
    data_flow: list[str] = Field(default_factory=list)
    scaling_considerations: list[str] = Field(default_factory=list)


class SchemaTarget(BaseModel):
    """The database a schema is generated for."""
    name: str = "PostgreSQL"
    type: DatabaseType = DatabaseType.SQL


class SchemaRequest(BaseModel):
    use_case: str = Field(..., min_length=1, max_length=10_000)
    database_slug: str | None = None
    target: SchemaTarget = Field(default_factory=SchemaTarget)
    requirements: UserRequirements | None = None


class SchemaResponse(BaseModel):
    pattern: str
    target: SchemaTarget
    database_schema: DatabaseSchema
    analysis: UseCaseAnalysis
    sql: str
    document_schema: dict | None = None
    er_diagram: str
