"""Keyword-based extraction of project requirements from free text.

Each topic has an ordered list of ``(keywords, value)`` rules tested as
case-insensitive substrings; the first matching rule wins.  Performance
needs accumulate instead.  There is no tokenization or negation handling,
so "app" also matches inside "approach".
"""
from __future__ import annotations

from src.shared.models.consultant import (
    Budget,
    LoadLevel,
    PerformanceNeed,
    ProjectType,
    TeamSize,
    UserRequirements,
)

# ---------------------------------------------------------------------------
# Keyword tables
# ---------------------------------------------------------------------------

PROJECT_TYPE_RULES: list[tuple[tuple[str, ...], ProjectType]] = [
    (("web app", "website"), ProjectType.WEB_APPLICATION),
    (("mobile", "app"), ProjectType.MOBILE_APPLICATION),
    (("analytics", "dashboard"), ProjectType.ANALYTICS_PLATFORM),
    (("iot", "sensor"), ProjectType.IOT_APPLICATION),
    (("ecommerce", "e-commerce"), ProjectType.ECOMMERCE_PLATFORM),
]

LOAD_RULES: list[tuple[tuple[str, ...], LoadLevel]] = [
    (("high load", "millions"), LoadLevel.HIGH),
    (("medium", "thousands"), LoadLevel.MEDIUM),
    (("low", "small"), LoadLevel.LOW),
]

BUDGET_RULES: list[tuple[tuple[str, ...], Budget]] = [
    (("budget", "cost", "cheap"), Budget.LIMITED),
    (("enterprise", "unlimited budget"), Budget.ENTERPRISE),
]

TEAM_RULES: list[tuple[tuple[str, ...], TeamSize]] = [
    (("solo", "one person"), TeamSize.SOLO),
    (("small team", "startup"), TeamSize.SMALL),
    (("large team", "enterprise"), TeamSize.LARGE),
]

PERFORMANCE_RULES: list[tuple[tuple[str, ...], PerformanceNeed]] = [
    (("fast", "performance"), PerformanceNeed.HIGH_PERFORMANCE),
    (("real-time", "realtime"), PerformanceNeed.REAL_TIME),
    (("scale", "scaling"), PerformanceNeed.SCALABILITY),
]

# Labels reported by missing_information(), in question order.
MISSING_PROJECT_TYPE = "project type"
MISSING_EXPECTED_LOAD = "expected load"
MISSING_BUDGET = "budget constraints"
MISSING_TEAM = "team size"


def _first_match(text: str, rules):
    for keywords, value in rules:
        if any(keyword in text for keyword in keywords):
            return value
    return None


def extract_requirements(text: str) -> UserRequirements:
    """Extract a partial requirements record from one user utterance."""
    lowered = text.lower()
    return UserRequirements(
        project_type=_first_match(lowered, PROJECT_TYPE_RULES),
        expected_load=_first_match(lowered, LOAD_RULES),
        budget=_first_match(lowered, BUDGET_RULES),
        team=_first_match(lowered, TEAM_RULES),
        performance=[
            need
            for keywords, need in PERFORMANCE_RULES
            if any(keyword in lowered for keyword in keywords)
        ],
    )


def merge_requirements(current: UserRequirements, update: UserRequirements) -> UserRequirements:
    """Return *current* with every non-empty field of *update* applied.

    A non-empty performance list replaces the previous one.
    """
    merged = current.model_dump()
    for field, value in update.model_dump().items():
        if value:
            merged[field] = value
    return UserRequirements.model_validate(merged)


def missing_information(requirements: UserRequirements) -> list[str]:
    missing: list[str] = []
    if requirements.project_type is None:
        missing.append(MISSING_PROJECT_TYPE)
    if requirements.expected_load is None:
        missing.append(MISSING_EXPECTED_LOAD)
    if requirements.budget is None:
        missing.append(MISSING_BUDGET)
    if requirements.team is None:
        missing.append(MISSING_TEAM)
    return missing


def has_enough_information(requirements: UserRequirements) -> bool:
    return requirements.project_type is not None and requirements.expected_load is not None
