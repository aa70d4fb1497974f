"""Tests for rule-based recommendation scoring."""
from __future__ import annotations

import pytest

from src.consultant.services.recommendation_scorer import (
    SCORING_RULES,
    build_architecture,
    build_implementation,
    estimate_costs,
    estimate_timeline,
    generate_recommendations,
    score_budget,
    score_database,
    score_load,
    score_performance,
    score_project_type,
    score_team,
)
from src.shared.models.consultant import (
    Budget,
    LoadLevel,
    PerformanceNeed,
    ProjectType,
    TeamSize,
    UserRequirements,
)


def _req(**kwargs) -> UserRequirements:
    return UserRequirements(**kwargs)


class TestProjectTypeRule:
    def test_ecommerce_prefers_sql(self, postgres_record, mongodb_record, redis_record):
        req = _req(project_type=ProjectType.ECOMMERCE_PLATFORM)
        assert score_project_type(postgres_record, req).score == 35
        assert score_project_type(mongodb_record, req).score == 25
        assert score_project_type(redis_record, req).score == 0

    def test_ecommerce_use_case_labels(self, postgres_record, mongodb_record):
        req = _req(project_type=ProjectType.ECOMMERCE_PLATFORM)
        assert score_project_type(postgres_record, req).use_case == "E-commerce"
        assert score_project_type(mongodb_record, req).use_case == "Catalog Management"

    def test_document_requires_nosql_document(self, dynamodb_record):
        # NoSQL but not in the Document category
        req = _req(project_type=ProjectType.WEB_APPLICATION)
        assert score_project_type(dynamodb_record, req).score == 0

    def test_mobile_awards_add_up(self, mongodb_record, redis_record):
        req = _req(project_type=ProjectType.MOBILE_APPLICATION)
        outcome = score_project_type(mongodb_record, req)
        assert outcome.score == 40
        assert len(outcome.reasons) == 2
        assert score_project_type(redis_record, req).score == 10

    def test_analytics_sql_fallback(self, postgres_record):
        req = _req(project_type=ProjectType.ANALYTICS_PLATFORM)
        assert score_project_type(postgres_record, req).score == 20

    def test_iot_nosql(self, mongodb_record):
        req = _req(project_type=ProjectType.IOT_APPLICATION)
        assert score_project_type(mongodb_record, req).score == 25

    def test_unset(self, postgres_record):
        assert score_project_type(postgres_record, _req()).score == 0


class TestLoadRule:
    def test_low_always(self, redis_record):
        assert score_load(redis_record, _req(expected_load=LoadLevel.LOW)).score == 20

    def test_medium(self, postgres_record, redis_record):
        req = _req(expected_load=LoadLevel.MEDIUM)
        assert score_load(postgres_record, req).score == 25
        outcome = score_load(redis_record, req)
        assert outcome.score == 15
        assert outcome.warnings == ["May need optimization for medium load"]

    def test_high(self, postgres_record, mongodb_record, redis_record):
        req = _req(expected_load=LoadLevel.HIGH)
        assert score_load(mongodb_record, req).score == 30
        sql = score_load(postgres_record, req)
        assert sql.score == 10
        assert sql.reasons == []
        assert len(sql.warnings) == 1
        assert score_load(redis_record, req).score == 5


class TestBudgetRule:
    def test_limited(self, postgres_record, mongodb_record, dynamodb_record):
        req = _req(budget=Budget.LIMITED)
        assert score_budget(postgres_record, req).score == 30
        assert score_budget(mongodb_record, req).score == 15
        commercial = score_budget(dynamodb_record, req)
        assert commercial.score == 0
        assert commercial.warnings == ["Commercial licensing may be expensive"]

    def test_enterprise(self, postgres_record, dynamodb_record):
        req = _req(budget=Budget.ENTERPRISE)
        assert score_budget(dynamodb_record, req).score == 25
        assert score_budget(postgres_record, req).score == 20


class TestTeamRule:
    def test_solo(self, dynamodb_record, postgres_record):
        req = _req(team=TeamSize.SOLO)
        assert score_team(dynamodb_record, req).score == 35
        assert score_team(postgres_record, req).score == 20

    def test_small(self, redis_record):
        assert score_team(redis_record, _req(team=TeamSize.SMALL)).score == 15

    def test_large(self, postgres_record, mongodb_record):
        req = _req(team=TeamSize.LARGE)
        assert score_team(postgres_record, req).score == 10
        assert score_team(mongodb_record, req).score == 30


class TestPerformanceRule:
    def test_needs_accumulate(self, redis_record):
        req = _req(performance=[PerformanceNeed.HIGH_PERFORMANCE, PerformanceNeed.REAL_TIME])
        assert score_performance(redis_record, req).score == 55

    def test_scalability(self, mongodb_record, postgres_record):
        req = _req(performance=[PerformanceNeed.SCALABILITY])
        assert score_performance(mongodb_record, req).score == 25
        assert score_performance(postgres_record, req).score == 0


class TestScoreDatabase:
    def test_ecommerce_totals(self, sample_records, ecommerce_requirements):
        scores = {r.slug: score_database(r, ecommerce_requirements).score for r in sample_records}
        assert scores == {"postgresql": 90, "mongodb": 85, "redis": 35, "amazon-dynamodb": 45}

    def test_rule_order_does_not_matter(self, sample_records, ecommerce_requirements):
        for record in sample_records:
            forward = score_database(record, ecommerce_requirements)
            backward = score_database(record, ecommerce_requirements, tuple(reversed(SCORING_RULES)))
            assert forward.score == backward.score
            assert set(forward.reasons) == set(backward.reasons)

    def test_reasons_deduplicated(self, redis_record):
        req = _req(expected_load=LoadLevel.LOW)
        rec = score_database(redis_record, req, rules=(score_load, score_load))
        assert rec.score == 40
        assert rec.reasons == ["Suitable for low-traffic applications"]

    def test_use_case_match(self, postgres_record, ecommerce_requirements):
        assert score_database(postgres_record, ecommerce_requirements).use_case_match == "E-commerce"


class TestGenerateRecommendations:
    def test_ranking(self, sample_records, ecommerce_requirements):
        result = generate_recommendations(ecommerce_requirements, sample_records)
        assert result.primary.database.slug == "postgresql"
        assert [a.database.slug for a in result.alternatives] == ["mongodb", "amazon-dynamodb", "redis"]

    def test_open_source_sql_beats_commercial_nosql(
        self, postgres_record, dynamodb_record, ecommerce_requirements
    ):
        result = generate_recommendations(ecommerce_requirements, [dynamodb_record, postgres_record])
        assert result.primary.database.slug == "postgresql"

    def test_max_alternatives(self, sample_records, ecommerce_requirements):
        result = generate_recommendations(ecommerce_requirements, sample_records, max_alternatives=1)
        assert len(result.alternatives) == 1

    def test_ties_keep_catalog_order(self, postgres_record, ecommerce_requirements):
        twin = postgres_record.model_copy(update={"name": "MySQL", "slug": "mysql", "id": "mysql"})
        result = generate_recommendations(ecommerce_requirements, [twin, postgres_record])
        assert result.primary.database.slug == "mysql"

    def test_empty_catalog(self, ecommerce_requirements):
        result = generate_recommendations(ecommerce_requirements, [])
        assert result.has_match is False
        assert result.alternatives == []
        assert result.architecture is None

    def test_nothing_scores(self, sample_records):
        result = generate_recommendations(UserRequirements(), sample_records)
        assert result.primary is None
        assert result.costs is None

    def test_zero_scores_dropped(self, redis_record, postgres_record):
        req = _req(project_type=ProjectType.ECOMMERCE_PLATFORM)
        result = generate_recommendations(req, [redis_record, postgres_record])
        assert result.primary.database.slug == "postgresql"
        assert result.alternatives == []

    def test_plans_attached(self, sample_records, ecommerce_requirements):
        result = generate_recommendations(ecommerce_requirements, sample_records)
        assert result.architecture.pattern == "Microservices architecture with CQRS"
        assert result.implementation.timeline == "4-6 weeks for initial implementation"
        assert result.costs.development == "Medium"


class TestPlans:
    @pytest.fixture
    def primary(self, postgres_record, ecommerce_requirements):
        return score_database(postgres_record, ecommerce_requirements)

    def test_architecture_high_load(self, primary, ecommerce_requirements):
        plan = build_architecture(primary, ecommerce_requirements)
        assert plan.components == [
            "Application Server", "Database", "Cache Layer", "Load Balancer", "Read Replicas",
        ]
        assert plan.scaling_strategy == "Vertical scaling with read replicas"
        assert plan.backup_strategy == "Automated cloud backups with point-in-time recovery"

    def test_architecture_horizontal(self, mongodb_record, ecommerce_requirements):
        primary = score_database(mongodb_record, ecommerce_requirements)
        plan = build_architecture(primary, ecommerce_requirements)
        assert plan.scaling_strategy == "Horizontal scaling with sharding"

    def test_architecture_patterns(self, primary):
        iot = build_architecture(primary, _req(project_type=ProjectType.IOT_APPLICATION))
        assert iot.pattern == "Event-driven architecture with message queues"
        analytics = build_architecture(primary, _req(project_type=ProjectType.ANALYTICS_PLATFORM))
        assert analytics.components[-2:] == ["Data Warehouse", "ETL Pipeline"]
        assert analytics.scaling_strategy == "Start with single instance, scale as needed"

    @pytest.mark.parametrize(
        "team, load, expected",
        [
            (TeamSize.SOLO, LoadLevel.LOW, "4-6 weeks for initial implementation"),
            (TeamSize.SOLO, LoadLevel.HIGH, "8-10 weeks for initial implementation"),
            (TeamSize.SMALL, LoadLevel.MEDIUM, "2-4 weeks for initial implementation"),
            (TeamSize.LARGE, LoadLevel.HIGH, "2-4 weeks for initial implementation"),
            (None, None, "1-3 weeks for initial implementation"),
        ],
    )
    def test_timeline(self, team, load, expected):
        assert estimate_timeline(_req(team=team, expected_load=load)) == expected

    def test_implementation_nosql_consideration(self, mongodb_record, ecommerce_requirements):
        primary = score_database(mongodb_record, ecommerce_requirements)
        plan = build_implementation(primary, ecommerce_requirements)
        assert "Design for eventual consistency" in plan.considerations
        assert plan.steps[1] == "Install and configure MongoDB"
        assert plan.steps[-2:] == ["Configure load balancing", "Set up read replicas"]

    def test_costs(self, primary, dynamodb_record, ecommerce_requirements):
        costs = estimate_costs(primary, ecommerce_requirements)
        assert (costs.development, costs.operational, costs.scaling) == ("Medium", "Medium-High", "High")
        commercial = score_database(dynamodb_record, ecommerce_requirements)
        assert estimate_costs(commercial, _req(team=TeamSize.SOLO)).operational == "High"
        assert estimate_costs(primary, _req(team=TeamSize.SOLO)).development == "Low"
        assert estimate_costs(primary, _req()).scaling == "Low-Medium"
