"""Text rendering of consultant answers and the recommendation report."""
from __future__ import annotations

from datetime import date

from src.consultant.services.requirement_extractor import (
    MISSING_BUDGET,
    MISSING_EXPECTED_LOAD,
    MISSING_PROJECT_TYPE,
    MISSING_TEAM,
)
from src.shared.models.consultant import RecommendationResult, UserRequirements

WELCOME_MESSAGE = (
    "👋 Hi! I'm your database consultant. I'll help you find the right "
    "database solution for your project.\n\n"
    "To get started, tell me about your project:\n"
    "• What type of application are you building?\n"
    "• What's your expected user load?\n"
    "• Do you have any specific requirements?"
)

FOLLOW_UP_QUESTIONS: dict[str, tuple[str, ...]] = {
    MISSING_PROJECT_TYPE: (
        "What type of application are you building? (e.g., web app, mobile app, "
        "analytics dashboard, IoT system)",
        "Could you describe your project? Is it a web application, mobile app, "
        "or something else?",
    ),
    MISSING_EXPECTED_LOAD: (
        "What's your expected user load? (e.g., hundreds, thousands, millions of users)",
        "How many users do you expect to have? This helps me recommend the right "
        "scaling approach.",
    ),
    MISSING_BUDGET: (
        "Do you have any budget constraints? Are you looking for open-source "
        "solutions or is enterprise licensing okay?",
        "What's your budget situation? Are you cost-conscious or do you have "
        "enterprise-level funding?",
    ),
    MISSING_TEAM: (
        "How large is your development team? Are you a solo developer or part of "
        "a larger team?",
        "What's your team size? This affects the complexity of solutions I can "
        "recommend.",
    ),
}

DEFAULT_FOLLOW_UP = "Could you provide more details about your requirements?"

NEED_MORE_INFORMATION = (
    "I need a bit more information to provide the best recommendation. "
    "Could you tell me more about your specific requirements?"
)


def _value(item) -> str:
    return item.value if item is not None else "Not specified"


def generate_follow_up_question(
    requirements: UserRequirements,
    missing: list[str],
    variant: int = 0,
) -> str:
    """Ask about the first missing topic.

    *variant* picks one of the phrasings for that topic (taken modulo the
    number available), so repeated turns can vary the wording.
    """
    if missing:
        questions = FOLLOW_UP_QUESTIONS.get(missing[0], (DEFAULT_FOLLOW_UP,))
    else:
        questions = (DEFAULT_FOLLOW_UP,)
    question = questions[variant % len(questions)]

    context = ""
    if requirements.project_type is not None:
        context += f"\n\nI understand you're building a {requirements.project_type.value}."
    if requirements.expected_load is not None:
        context += f" You mentioned {requirements.expected_load.value} load."
    return question + context


def format_insufficient_match(requirements: UserRequirements) -> str:
    """Reply used when no catalog record scored above zero."""
    lines = [
        "🤔 **No Strong Match Yet**",
        "",
        "None of the databases in the catalog matched your requirements well enough "
        "to recommend one.",
        "",
        "**What I know so far:**",
        f"• Project type: {_value(requirements.project_type)}",
        f"• Expected load: {_value(requirements.expected_load)}",
        f"• Budget: {_value(requirements.budget)}",
        f"• Team size: {_value(requirements.team)}",
        "",
        "Try describing your data, workload or constraints in more detail.",
    ]
    return "\n".join(lines)


def format_chat_response(result: RecommendationResult) -> str:
    """Chat reply presenting the primary recommendation."""
    primary = result.primary
    if primary is None:
        return NEED_MORE_INFORMATION

    lines = [
        "🎯 **Perfect Match Found!**",
        "",
        f"I recommend **{primary.database.name}** for your project.",
        "",
        "**Why it's perfect for you:**",
    ]
    lines += [f"✅ {reason}" for reason in primary.reasons]

    if primary.warnings:
        lines += ["", "**Things to consider:**"]
        lines += [f"⚠️ {warning}" for warning in primary.warnings]

    lines.append("")
    if result.architecture is not None:
        lines.append(f"**Architecture Pattern:** {result.architecture.pattern}")
    if result.implementation is not None:
        lines.append(f"**Estimated Timeline:** {result.implementation.timeline}")

    if result.alternatives:
        lines += ["", "**Alternative Options:**"]
        for alt in result.alternatives[:2]:
            reason = alt.reasons[0] if alt.reasons else "Good alternative choice"
            lines.append(f"• {alt.database.name} - {reason}")

    lines += [
        "",
        "Request the architecture diagram or the full report for detailed "
        "implementation guidance! 📊",
    ]
    return "\n".join(lines)


def export_markdown(
    result: RecommendationResult,
    requirements: UserRequirements,
    generated_on: date,
) -> str:
    """Render the full recommendation report as Markdown.

    The report date is passed in so identical input renders identical text.
    """
    lines = [
        "# Database Recommendation Report",
        "",
        f"Generated on: {generated_on.isoformat()}",
        "",
        "## Project Requirements",
        "",
        f"- **Project Type:** {_value(requirements.project_type)}",
        f"- **Expected Load:** {_value(requirements.expected_load)}",
        f"- **Budget:** {_value(requirements.budget)}",
        f"- **Team Size:** {_value(requirements.team)}",
    ]
    if requirements.performance:
        needs = ", ".join(need.value for need in requirements.performance)
        lines.append(f"- **Performance Requirements:** {needs}")

    primary = result.primary
    if primary is None:
        lines += [
            "",
            "## Primary Recommendation",
            "",
            "No database in the catalog matched these requirements.",
        ]
    else:
        lines += [
            "",
            f"## Primary Recommendation: {primary.database.name}",
            "",
            primary.database.description,
            "",
            "### Why This Database?",
            "",
        ]
        lines += [f"- {reason}" for reason in primary.reasons]
        if primary.warnings:
            lines += ["", "### Considerations", ""]
            lines += [f"- {warning}" for warning in primary.warnings]

    if result.architecture is not None:
        arch = result.architecture
        lines += ["", "## Architecture", "", f"**Pattern:** {arch.pattern}", "", "**Components:**"]
        lines += [f"- {component}" for component in arch.components]
        lines += [
            "",
            f"**Scaling Strategy:** {arch.scaling_strategy}",
            f"**Backup Strategy:** {arch.backup_strategy}",
        ]

    if result.implementation is not None:
        lines += ["", "## Implementation Plan", ""]
        lines += [f"{index}. {step}" for index, step in enumerate(result.implementation.steps, 1)]
        lines += ["", f"**Timeline:** {result.implementation.timeline}"]

    if result.costs is not None:
        lines += [
            "",
            "## Cost Estimates",
            "",
            f"- **Development:** {result.costs.development}",
            f"- **Operational:** {result.costs.operational}",
            f"- **Scaling:** {result.costs.scaling}",
        ]

    if result.alternatives:
        lines += ["", "## Alternative Options", ""]
        for alt in result.alternatives:
            lines.append(f"### {alt.database.name}")
            lines.append(alt.reasons[0] if alt.reasons else "Alternative option")
            lines.append("")

    lines += ["", "---", "*Generated by Database Consultant*"]
    return "\n".join(lines) + "\n"
