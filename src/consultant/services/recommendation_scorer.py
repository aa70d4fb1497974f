"""Rule-based scoring of catalog records against project requirements.

Every record is scored in isolation by five independent rules (project
type, load, budget, team, performance).  Each rule walks a constant table
of award groups: within a group the first matching award applies, and the
awards of all groups add up.  Totals are sums of non-negative deltas, so
the order in which rules run never changes a record's score.

The weights and phrases below are configuration data; they are not
derived from anything and should be edited as tables.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from src.shared.constants import MAX_ALTERNATIVES
from src.shared.models.catalog import DatabaseRecord, DatabaseType, License
from src.shared.models.consultant import (
    ArchitecturePlan,
    Budget,
    CostEstimate,
    ImplementationPlan,
    LoadLevel,
    PerformanceNeed,
    ProjectType,
    Recommendation,
    RecommendationResult,
    TeamSize,
    UserRequirements,
)

logger = logging.getLogger("consultant.scorer")

Predicate = Callable[[DatabaseRecord], bool]


@dataclass(frozen=True)
class Award:
    """Points granted when ``applies`` holds for a record."""
    applies: Predicate
    score: int
    reason: str = ""
    warning: str = ""
    use_case: str = ""


@dataclass
class RuleOutcome:
    """Result of one scoring rule for one record."""
    score: int = 0
    reasons: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    use_case: str = ""


# ---------------------------------------------------------------------------
# Record predicates
# ---------------------------------------------------------------------------


def _always(record: DatabaseRecord) -> bool:
    return True


def _is_type(db_type: DatabaseType) -> Predicate:
    return lambda record: record.type == db_type


def _in_category(*categories: str) -> Predicate:
    return lambda record: record.category in categories


def _has_feature(*features: str) -> Predicate:
    return lambda record: any(f in record.features for f in features)


def _licensed(*licenses: License) -> Predicate:
    return lambda record: record.license in licenses


def _any_of(*predicates: Predicate) -> Predicate:
    return lambda record: any(p(record) for p in predicates)


def _is_cloud(record: DatabaseRecord) -> bool:
    return record.cloud_offering


def _is_document_nosql(record: DatabaseRecord) -> bool:
    return record.type == DatabaseType.NOSQL and record.category == "Document"


_is_sql = _is_type(DatabaseType.SQL)
_is_nosql = _is_type(DatabaseType.NOSQL)
_is_in_memory = _in_category("In-Memory")

# ---------------------------------------------------------------------------
# Award tables
# ---------------------------------------------------------------------------

AwardGroups = list[list[Award]]

PROJECT_TYPE_AWARDS: dict[ProjectType, AwardGroups] = {
    ProjectType.WEB_APPLICATION: [[
        Award(_is_sql, 30, "Excellent for web applications with structured data",
              use_case="Web Applications"),
        Award(_is_document_nosql, 25, "Great for web apps with flexible data models",
              use_case="Web Applications"),
    ]],
    ProjectType.MOBILE_APPLICATION: [
        [Award(_is_nosql, 30, "NoSQL databases are ideal for mobile apps",
               use_case="Mobile Apps")],
        [Award(_is_cloud, 10, "Cloud offering simplifies mobile backend")],
    ],
    ProjectType.ANALYTICS_PLATFORM: [[
        Award(_in_category("Analytics", "Time Series"), 40,
              "Optimized for analytical workloads", use_case="Analytics"),
        Award(_is_sql, 20, "SQL databases support complex analytical queries",
              use_case="Analytics"),
    ]],
    ProjectType.IOT_APPLICATION: [[
        Award(_in_category("Time Series"), 40, "Perfect for IoT sensor data",
              use_case="IoT Applications"),
        Award(_is_nosql, 25, "Handles high-volume IoT data well",
              use_case="IoT Applications"),
    ]],
    ProjectType.ECOMMERCE_PLATFORM: [[
        Award(_is_sql, 35, "ACID compliance crucial for e-commerce transactions",
              use_case="E-commerce"),
        Award(_is_document_nosql, 25, "Flexible schema good for product catalogs",
              use_case="Catalog Management"),
    ]],
}

LOAD_AWARDS: dict[LoadLevel, AwardGroups] = {
    LoadLevel.LOW: [[
        Award(_always, 20, "Suitable for low-traffic applications"),
    ]],
    LoadLevel.MEDIUM: [[
        Award(_has_feature("High Availability", "Horizontal Scaling"), 25,
              "Built-in scaling features for medium load"),
        Award(_always, 15, warning="May need optimization for medium load"),
    ]],
    LoadLevel.HIGH: [[
        Award(_has_feature("Horizontal Scaling", "Sharding"), 30,
              "Excellent horizontal scaling capabilities"),
        Award(_is_sql, 10,
              warning="May require read replicas and careful optimization for high load"),
        Award(_always, 5, warning="Scaling strategy needs careful planning"),
    ]],
}

BUDGET_AWARDS: dict[Budget, AwardGroups] = {
    Budget.LIMITED: [[
        Award(_licensed(License.OPEN_SOURCE), 30, "Open source with no licensing costs"),
        Award(_licensed(License.HYBRID), 15, "Free tier available",
              warning="May need paid features for production"),
        Award(_always, 0, warning="Commercial licensing may be expensive"),
    ]],
    Budget.ENTERPRISE: [[
        Award(_licensed(License.COMMERCIAL, License.HYBRID), 25,
              "Enterprise support and features available"),
        Award(_always, 20, "Open source with enterprise support options"),
    ]],
}

TEAM_AWARDS: dict[TeamSize, AwardGroups] = {
    TeamSize.SOLO: [
        [Award(_is_cloud, 20, "Managed service reduces operational overhead")],
        [Award(_is_nosql, 15, "Simpler to get started than complex SQL setups")],
    ],
    TeamSize.SMALL: [[
        Award(_always, 15, "Good balance of features and complexity"),
    ]],
    TeamSize.LARGE: [
        [Award(_licensed(License.COMMERCIAL, License.HYBRID), 20,
               "Enterprise features and support for large teams")],
        [Award(_always, 10, "Can handle complex enterprise requirements")],
    ],
}

PERFORMANCE_AWARDS: dict[PerformanceNeed, AwardGroups] = {
    PerformanceNeed.HIGH_PERFORMANCE: [[
        Award(_any_of(_is_in_memory, _has_feature("High Performance")), 25,
              "Optimized for high performance"),
    ]],
    PerformanceNeed.REAL_TIME: [[
        Award(_in_category("In-Memory", "Time Series"), 30,
              "Excellent for real-time applications"),
    ]],
    PerformanceNeed.SCALABILITY: [[
        Award(_has_feature("Horizontal Scaling"), 25, "Built for horizontal scaling"),
    ]],
}


def _apply(groups: AwardGroups, record: DatabaseRecord, outcome: RuleOutcome) -> RuleOutcome:
    for group in groups:
        award = next((a for a in group if a.applies(record)), None)
        if award is None:
            continue
        outcome.score += award.score
        if award.reason:
            outcome.reasons.append(award.reason)
        if award.warning:
            outcome.warnings.append(award.warning)
        if award.use_case:
            outcome.use_case = award.use_case
    return outcome


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def score_project_type(record: DatabaseRecord, requirements: UserRequirements) -> RuleOutcome:
    if requirements.project_type is None:
        return RuleOutcome()
    return _apply(PROJECT_TYPE_AWARDS[requirements.project_type], record, RuleOutcome())


def score_load(record: DatabaseRecord, requirements: UserRequirements) -> RuleOutcome:
    if requirements.expected_load is None:
        return RuleOutcome()
    return _apply(LOAD_AWARDS[requirements.expected_load], record, RuleOutcome())


def score_budget(record: DatabaseRecord, requirements: UserRequirements) -> RuleOutcome:
    if requirements.budget is None:
        return RuleOutcome()
    return _apply(BUDGET_AWARDS[requirements.budget], record, RuleOutcome())


def score_team(record: DatabaseRecord, requirements: UserRequirements) -> RuleOutcome:
    if requirements.team is None:
        return RuleOutcome()
    return _apply(TEAM_AWARDS[requirements.team], record, RuleOutcome())


def score_performance(record: DatabaseRecord, requirements: UserRequirements) -> RuleOutcome:
    outcome = RuleOutcome()
    for need in requirements.performance:
        _apply(PERFORMANCE_AWARDS[need], record, outcome)
    return outcome


ScoringRule = Callable[[DatabaseRecord, UserRequirements], RuleOutcome]

SCORING_RULES: tuple[ScoringRule, ...] = (
    score_project_type,
    score_load,
    score_budget,
    score_team,
    score_performance,
)


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def score_database(
    record: DatabaseRecord,
    requirements: UserRequirements,
    rules: Sequence[ScoringRule] = SCORING_RULES,
) -> Recommendation:
    """Score one record; reasons and warnings keep their first occurrence."""
    score = 0
    reasons: list[str] = []
    warnings: list[str] = []
    use_case = ""
    for rule in rules:
        outcome = rule(record, requirements)
        score += outcome.score
        reasons.extend(outcome.reasons)
        warnings.extend(outcome.warnings)
        use_case = use_case or outcome.use_case
    return Recommendation(
        database=record,
        score=score,
        reasons=_unique(reasons),
        warnings=_unique(warnings),
        use_case_match=use_case,
    )


# ---------------------------------------------------------------------------
# Plans derived from the primary recommendation
# ---------------------------------------------------------------------------

ARCHITECTURE_PATTERNS: dict[ProjectType, str] = {
    ProjectType.WEB_APPLICATION: "Three-tier architecture with load balancer",
    ProjectType.MOBILE_APPLICATION: "API-first architecture with CDN",
    ProjectType.ANALYTICS_PLATFORM: "Data lake architecture with ETL pipeline",
    ProjectType.IOT_APPLICATION: "Event-driven architecture with message queues",
    ProjectType.ECOMMERCE_PLATFORM: "Microservices architecture with CQRS",
}

BASE_COMPONENTS: tuple[str, ...] = ("Application Server", "Database", "Cache Layer")


def build_architecture(primary: Recommendation, requirements: UserRequirements) -> ArchitecturePlan:
    project_type = requirements.project_type or ProjectType.WEB_APPLICATION
    components = list(BASE_COMPONENTS)
    if requirements.expected_load == LoadLevel.HIGH:
        components += ["Load Balancer", "Read Replicas"]
    if requirements.project_type == ProjectType.ANALYTICS_PLATFORM:
        components += ["Data Warehouse", "ETL Pipeline"]

    if requirements.expected_load != LoadLevel.HIGH:
        scaling = "Start with single instance, scale as needed"
    elif "Horizontal Scaling" in primary.database.features:
        scaling = "Horizontal scaling with sharding"
    else:
        scaling = "Vertical scaling with read replicas"

    if primary.database.cloud_offering:
        backup = "Automated cloud backups with point-in-time recovery"
    else:
        backup = "Regular automated backups with offsite storage"

    return ArchitecturePlan(
        pattern=ARCHITECTURE_PATTERNS[project_type],
        components=components,
        scaling_strategy=scaling,
        backup_strategy=backup,
    )


def estimate_timeline(requirements: UserRequirements) -> str:
    base_weeks = {TeamSize.SOLO: 4, TeamSize.SMALL: 2}.get(requirements.team, 1)
    complexity = 2 if requirements.expected_load == LoadLevel.HIGH else 1
    weeks = base_weeks * complexity
    return f"{weeks}-{weeks + 2} weeks for initial implementation"


def build_implementation(primary: Recommendation, requirements: UserRequirements) -> ImplementationPlan:
    steps = [
        "Set up development environment",
        f"Install and configure {primary.database.name}",
        "Design database schema",
        "Implement data access layer",
        "Set up monitoring and logging",
    ]
    if requirements.expected_load == LoadLevel.HIGH:
        steps += ["Configure load balancing", "Set up read replicas"]

    considerations = [
        "Plan for data migration strategy",
        "Implement proper indexing",
        "Set up backup and recovery procedures",
    ]
    if primary.database.type == DatabaseType.NOSQL:
        considerations.append("Design for eventual consistency")

    return ImplementationPlan(
        steps=steps,
        considerations=considerations,
        timeline=estimate_timeline(requirements),
    )


def estimate_costs(primary: Recommendation, requirements: UserRequirements) -> CostEstimate:
    development = {TeamSize.SOLO: "Low", TeamSize.SMALL: "Medium"}.get(requirements.team, "High")

    high_load = requirements.expected_load == LoadLevel.HIGH
    if primary.database.license == License.COMMERCIAL:
        operational = "High"
    elif primary.database.cloud_offering and high_load:
        operational = "Medium-High"
    else:
        operational = "Low"

    return CostEstimate(
        development=development,
        operational=operational,
        scaling="High" if high_load else "Low-Medium",
    )


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def generate_recommendations(
    requirements: UserRequirements,
    catalog: Sequence[DatabaseRecord],
    max_alternatives: int = MAX_ALTERNATIVES,
) -> RecommendationResult:
    """Rank *catalog* for *requirements*.

    Records scoring 0 are dropped.  Ties keep catalog order.  When nothing
    scores, the result has no primary, no alternatives and no plans.
    """
    scored = [score_database(record, requirements) for record in catalog]
    ranked = sorted(
        (rec for rec in scored if rec.score > 0),
        key=lambda rec: rec.score,
        reverse=True,
    )
    if not ranked:
        logger.info("No catalog record matched the requirements (catalog size %d)", len(catalog))
        return RecommendationResult()

    primary = ranked[0]
    logger.debug("Primary recommendation %s with score %d", primary.database.slug, primary.score)
    return RecommendationResult(
        primary=primary,
        alternatives=ranked[1:1 + max_alternatives],
        architecture=build_architecture(primary, requirements),
        implementation=build_implementation(primary, requirements),
        costs=estimate_costs(primary, requirements),
    )
