"""Markdown serialization of catalog entries.

An entry is stored as a YAML frontmatter block holding every scalar field,
followed by ``## Section`` blocks for text, list and interaction data::

    ---
    name: PostgreSQL
    slug: postgresql
    ...
    ---

    ## Description
    Free text.

    ## Features
    - ACID Transactions
    - JSON Support

    ## Ratings
    User: octocat
    Rating: 5
    Date: 2024-05-01T10:00:00+00:00
    Comment:
    Solid choice.

Every known section maps to exactly one model field through the tables
below, and the parsed result is validated by ``MarkdownDatabaseEntry``.
Header lines of a rating, comment or detailed use case end at a marker
line (``Comment:``, ``Content:``, ``Description:``); everything after it
is free text, even when it looks like a header.  Malformed frontmatter
or interaction blocks raise ``ParsingError``.
Sections that are absent parse as empty values; unknown sections are
logged and ignored.

Limitations: a line starting with ``## `` inside a text field starts a new
section, a line starting with ``### `` inside a use case description starts
a new use case, and blank lines inside comments are collapsed on write.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable

import yaml
from pydantic import ValidationError as PydanticValidationError

from src.shared.errors import ParsingError
from src.shared.models.catalog import (
    Comment,
    MarkdownDatabaseEntry,
    Rating,
    UseCaseDetail,
)

logger = logging.getLogger("catalog.markdown")

# ---------------------------------------------------------------------------
# Section tables
# ---------------------------------------------------------------------------

# Scalar fields written to the frontmatter, in output order.
FRONTMATTER_FIELDS: tuple[str, ...] = (
    "name",
    "slug",
    "category",
    "type",
    "license",
    "cloud_offering",
    "self_hosted",
    "popularity",
    "stars",
    "created_at",
    "updated_at",
    "tagline",
    "key_strength",
    "contributors",
    "official_description",
    "architecture",
    "data_model",
    "replication_support",
    "sharding_support",
    "enterprise_support",
    "on_premise_support",
    "development_status",
    "latest_version",
    "maintenance_status",
    "community_size",
    "release_frequency",
)

TEXT_SECTIONS: dict[str, str] = {
    "Description": "description",
    "Short Description": "short_description",
}

LINK_LABELS: dict[str, str] = {
    "Website": "website_url",
    "Documentation": "documentation_url",
    "GitHub": "github_url",
    "Logo": "logo_url",
}

LIST_SECTIONS: dict[str, str] = {
    "Features": "features",
    "Query Languages": "query_languages",
    "Indexing Support": "indexing_support",
    "Security Features": "security_features",
    "Performance Characteristics": "performance_characteristics",
    "Scalability Options": "scalability_options",
    "Backup Options": "backup_options",
    "Use Cases": "use_cases",
    "Supported Languages": "languages",
    "Cloud Providers": "cloud_providers",
    "API Support": "api_support",
    "Integrations": "integrations",
    "Pros": "pros",
    "Cons": "cons",
    "Not Recommended For": "not_recommended_for",
}

# Rendered for human readers only; the values live in the frontmatter.
DISPLAY_ONLY_SECTIONS: frozenset[str] = frozenset(
    {"Technical Specifications", "Community & Support"}
)

# Label -> field for the "Key: value" header lines of interaction blocks.
_RATING_LABELS: dict[str, str] = {
    "User": "username",
    "Email": "email",
    "Rating": "rating",
    "Date": "date",
    "Experience": "experience",
    "Use Case": "use_case",
    "Company Size": "company_size",
    "Industry": "industry",
}

_COMMENT_LABELS: dict[str, str] = {
    "User": "username",
    "Email": "email",
    "Date": "date",
    "Experience": "experience",
    "Use Case": "use_case",
    "Helpful": "helpful",
}

_DETAIL_LABELS: dict[str, str] = {
    "Industry": "industry",
    "Company Size": "company_size",
}

_DETAIL_BULLETS: dict[str, str] = {
    "- Requirement: ": "technical_requirements",
    "- Benefit: ": "benefits",
    "- Challenge: ": "challenges",
}

# Marker lines that end the header of a block.
RATING_TEXT_MARKER = "Comment:"
COMMENT_TEXT_MARKER = "Content:"
DETAIL_TEXT_MARKER = "Description:"

_FRONTMATTER_RE = re.compile(r"\A---\n(.*?)\n---[ \t]*(?:\n(.*))?\Z", re.DOTALL)
_BLANK_RUN_RE = re.compile(r"\n\s*\n+")


# ===================================================================
# Serialization
# ===================================================================


def serialize_entry(entry: MarkdownDatabaseEntry) -> str:
    """Render *entry* as a markdown document."""
    data = entry.model_dump(mode="json")
    frontmatter = {name: data[name] for name in FRONTMATTER_FIELDS}
    front_text = yaml.safe_dump(
        frontmatter, sort_keys=False, allow_unicode=True, default_flow_style=False
    ).rstrip("\n")

    sections: list[tuple[str, list[str]]] = [
        ("Description", _text_lines(entry.description)),
        ("Short Description", _text_lines(entry.short_description)),
        ("Links", [
            f"{label}: {data[field]}"
            for label, field in LINK_LABELS.items()
            if data[field]
        ]),
        ("Technical Specifications", _technical_lines(entry)),
    ]
    for title in (
        "Features",
        "Query Languages",
        "Indexing Support",
        "Security Features",
        "Performance Characteristics",
        "Scalability Options",
        "Backup Options",
        "Use Cases",
    ):
        sections.append((title, _bullet_lines(data[LIST_SECTIONS[title]])))

    sections.append(("Detailed Use Cases", _detail_lines(entry.use_case_details)))

    for title in ("Supported Languages", "Cloud Providers", "API Support", "Integrations"):
        sections.append((title, _bullet_lines(data[LIST_SECTIONS[title]])))

    sections.append(("Community & Support", [
        f"**Community Size:** {entry.community_size or 'Not specified'}",
        f"**Release Frequency:** {entry.release_frequency or 'Not specified'}",
    ]))

    for title in ("Pros", "Cons", "Not Recommended For"):
        sections.append((title, _bullet_lines(data[LIST_SECTIONS[title]])))

    sections.append(("Ratings", _blocks([_rating_lines(r) for r in entry.ratings])))
    sections.append(("Comments", _blocks([_comment_lines(c) for c in entry.comments])))

    parts = ["---", front_text, "---"]
    for title, lines in sections:
        parts.append("")
        parts.append(f"## {title}")
        parts.extend(lines)
    return "\n".join(parts) + "\n"


def _text_lines(text: str) -> list[str]:
    text = text.strip()
    return text.split("\n") if text else []


def _single_line(value: str) -> str:
    return " ".join(value.split())


def _bullet_lines(items: list[str]) -> list[str]:
    return [f"- {_single_line(item)}" for item in items if item.strip()]


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _technical_lines(entry: MarkdownDatabaseEntry) -> list[str]:
    return [
        f"**Architecture:** {entry.architecture or 'Not specified'}",
        f"**Data Model:** {entry.data_model or 'Not specified'}",
        f"**Replication Support:** {_yes_no(entry.replication_support)}",
        f"**Sharding Support:** {_yes_no(entry.sharding_support)}",
        f"**Enterprise Support:** {_yes_no(entry.enterprise_support)}",
        f"**Latest Version:** {entry.latest_version or 'Not specified'}",
        f"**Development Status:** {entry.development_status or 'Not specified'}",
        f"**Maintenance Status:** {entry.maintenance_status or 'Not specified'}",
    ]


def _detail_lines(details: list[UseCaseDetail]) -> list[str]:
    blocks: list[list[str]] = []
    for detail in details:
        lines = [f"### {_single_line(detail.title)}"]
        if detail.industry:
            lines.append(f"Industry: {_single_line(detail.industry)}")
        if detail.company_size:
            lines.append(f"Company Size: {_single_line(detail.company_size)}")
        for prefix, field in _DETAIL_BULLETS.items():
            lines.extend(f"{prefix}{_single_line(v)}" for v in getattr(detail, field))
        if detail.description.strip():
            lines.append(DETAIL_TEXT_MARKER)
            lines.extend(_collapse(detail.description).split("\n"))
        blocks.append(lines)
    return _blocks(blocks)


def _rating_lines(rating: Rating) -> list[str]:
    lines = [f"User: {rating.username}"]
    if rating.email:
        lines.append(f"Email: {rating.email}")
    lines.append(f"Rating: {rating.rating}")
    lines.append(f"Date: {rating.date}")
    for label in ("Experience", "Use Case", "Company Size", "Industry"):
        value = getattr(rating, _RATING_LABELS[label])
        if value:
            lines.append(f"{label}: {_single_line(value)}")
    if rating.comment and rating.comment.strip():
        lines.append(RATING_TEXT_MARKER)
        lines.extend(_collapse(rating.comment).split("\n"))
    return lines


def _comment_lines(comment: Comment) -> list[str]:
    lines = [f"User: {comment.username}"]
    if comment.email:
        lines.append(f"Email: {comment.email}")
    lines.append(f"Date: {comment.date}")
    if comment.experience:
        lines.append(f"Experience: {_single_line(comment.experience)}")
    if comment.use_case:
        lines.append(f"Use Case: {_single_line(comment.use_case)}")
    if comment.helpful:
        lines.append(f"Helpful: {comment.helpful}")
    lines.append(COMMENT_TEXT_MARKER)
    lines.extend(_collapse(comment.content).split("\n"))
    return lines


def _collapse(text: str) -> str:
    """Strip *text* and fold blank-line runs into single newlines."""
    return _BLANK_RUN_RE.sub("\n", text.strip())


def _blocks(blocks: list[list[str]]) -> list[str]:
    lines: list[str] = []
    for index, block in enumerate(blocks):
        if index:
            lines.append("")
        lines.extend(block)
    return lines


# ===================================================================
# Parsing
# ===================================================================


def parse_entry(content: str) -> MarkdownDatabaseEntry:
    """Parse a markdown document produced by :func:`serialize_entry`.

    Raises:
        ParsingError: If the frontmatter is missing or invalid, an
            interaction block lacks required lines, or the assembled
            entry fails model validation.
    """
    content = content.replace("\r\n", "\n")
    match = _FRONTMATTER_RE.match(content)
    if not match:
        raise ParsingError("Invalid markdown format: missing frontmatter")

    data = _parse_frontmatter(match.group(1))
    sections = _split_sections(match.group(2) or "")

    for title, lines in sections.items():
        if title in TEXT_SECTIONS:
            data[TEXT_SECTIONS[title]] = "\n".join(lines).strip()
        elif title in LIST_SECTIONS:
            data[LIST_SECTIONS[title]] = _parse_bullets(title, lines)
        elif title == "Links":
            data.update(_parse_links(lines))
        elif title == "Detailed Use Cases":
            data["use_case_details"] = _parse_details(lines)
        elif title == "Ratings":
            data["ratings"] = _parse_blocks(
                lines, _RATING_LABELS, RATING_TEXT_MARKER, "comment", Rating
            )
        elif title == "Comments":
            data["comments"] = _parse_blocks(
                lines, _COMMENT_LABELS, COMMENT_TEXT_MARKER, "content", Comment
            )
        elif title not in DISPLAY_ONLY_SECTIONS:
            logger.warning("Ignoring unknown section %r", title)

    try:
        return MarkdownDatabaseEntry.model_validate(data)
    except PydanticValidationError as exc:
        raise ParsingError(f"Invalid database entry: {exc.errors()[0]['msg']}") from exc


def _parse_frontmatter(text: str) -> dict[str, Any]:
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ParsingError(f"Invalid frontmatter: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ParsingError("Invalid frontmatter: expected a mapping")

    unknown = sorted(set(loaded) - set(FRONTMATTER_FIELDS))
    if unknown:
        logger.warning("Ignoring unknown frontmatter keys: %s", ", ".join(map(str, unknown)))
    return {key: value for key, value in loaded.items() if key in FRONTMATTER_FIELDS}


def _split_sections(body: str) -> dict[str, list[str]]:
    sections: dict[str, list[str]] = {}
    current: list[str] | None = None
    for line in body.split("\n"):
        if line.startswith("## "):
            current = []
            sections[line[3:].strip()] = current
        elif current is not None:
            current.append(line)
        elif line.strip():
            raise ParsingError("Content found before the first section heading")
    return sections


def _parse_bullets(title: str, lines: list[str]) -> list[str]:
    items: list[str] = []
    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        if not stripped.startswith("- "):
            raise ParsingError(f"Section {title!r} contains a non-list line: {stripped!r}")
        item = stripped[2:].strip()
        if item:
            items.append(item)
    return items


def _parse_links(lines: list[str]) -> dict[str, str]:
    links: dict[str, str] = {}
    for line in lines:
        label, sep, value = line.partition(":")
        if sep and label.strip() in LINK_LABELS:
            links[LINK_LABELS[label.strip()]] = value.strip()
    return links


def _split_blocks(lines: list[str]) -> list[list[str]]:
    blocks: list[list[str]] = []
    current: list[str] = []
    for line in lines:
        if line.strip():
            current.append(line.rstrip())
        elif current:
            blocks.append(current)
            current = []
    if current:
        blocks.append(current)
    return blocks


def _parse_blocks(
    lines: list[str],
    labels: dict[str, str],
    marker: str,
    text_field: str,
    model: Callable[..., Any],
) -> list[Any]:
    """Parse blank-line separated interaction blocks.

    Leading ``Label: value`` lines with a known label fill the matching
    fields.  The free text follows the *marker* line; blocks written
    without one start their text at the first line that is not a header.
    """
    parsed: list[Any] = []
    for block in _split_blocks(lines):
        fields: dict[str, Any] = {}
        text_start = len(block)
        for index, line in enumerate(block):
            if line == marker:
                text_start = index + 1
                break
            label, sep, value = line.partition(": ")
            if not sep or label not in labels or labels[label] in fields:
                text_start = index
                break
            fields[labels[label]] = value.strip()
        if "username" not in fields:
            raise ParsingError(f"Interaction block without a User line: {block[0]!r}")
        text = "\n".join(block[text_start:]).strip()
        if text:
            fields[text_field] = text
        try:
            parsed.append(model(**fields))
        except PydanticValidationError as exc:
            raise ParsingError(
                f"Invalid entry for user {fields['username']!r}: {exc.errors()[0]['msg']}"
            ) from exc
    return parsed


def _parse_details(lines: list[str]) -> list[UseCaseDetail]:
    details: list[UseCaseDetail] = []
    current: dict[str, Any] | None = None
    description: list[str] = []
    in_description = False

    def _flush() -> None:
        if current is None:
            return
        current["description"] = "\n".join(description).strip()
        try:
            details.append(UseCaseDetail(**current))
        except PydanticValidationError as exc:
            raise ParsingError(
                f"Invalid detailed use case {current['title']!r}: {exc.errors()[0]['msg']}"
            ) from exc

    for raw in lines:
        line = raw.rstrip()
        if not line.strip():
            continue
        if line.startswith("### ") or line == "###":
            _flush()
            current = {"title": line[3:].strip()}
            description = []
            in_description = False
            for field in _DETAIL_BULLETS.values():
                current[field] = []
            continue
        if current is None:
            raise ParsingError("Detailed use case content before a '### ' title")
        if in_description:
            description.append(line)
            continue
        if line == DETAIL_TEXT_MARKER:
            in_description = True
            continue
        bullet = next((p for p in _DETAIL_BULLETS if line.startswith(p)), None)
        label, sep, value = line.partition(": ")
        if bullet is not None:
            current[_DETAIL_BULLETS[bullet]].append(line[len(bullet):].strip())
        elif sep and label in _DETAIL_LABELS:
            current[_DETAIL_LABELS[label]] = value.strip()
        else:
            description.append(line)
    _flush()
    return details
