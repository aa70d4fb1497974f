"""MCP server for the Consultant service.

Exposes database recommendation, catalog search and schema generation as
MCP tools over stdio transport.  Tools read the same catalog as the HTTP
services.

Environment variables (typically set via .mcp.json):
    DATABASE_PATH    -- Path to the SQLite database file.
    STORAGE_BACKEND  -- ``sqlite`` (default) or ``memory``.
    SEED_ON_STARTUP  -- Seed an empty catalog from the packaged YAML file.

Usage:
    python -m src.consultant.mcp_server
"""
from __future__ import annotations

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from src.catalog.services.catalog_service import CatalogService
from src.catalog.storage.factory import open_storage
from src.consultant.services.recommendation_scorer import generate_recommendations
from src.consultant.services.requirement_extractor import extract_requirements
from src.consultant.services.narrative import format_chat_response, format_insufficient_match
from src.consultant.services.schema_generator import design_schema
from src.shared.config import ConsultantConfig
from src.shared.errors import AppError
from src.shared.models.catalog import DatabaseType
from src.shared.models.consultant import SchemaTarget

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = logging.getLogger("consultant.mcp")

# ---------------------------------------------------------------------------
# Module-level initialisation
# ---------------------------------------------------------------------------

config = ConsultantConfig()
storage = open_storage(config)
catalog_service = CatalogService(storage.repository)

# ---------------------------------------------------------------------------
# MCP server
# ---------------------------------------------------------------------------

mcp = FastMCP("Consultant")


@mcp.tool()
def recommend_database(description: str) -> dict[str, Any]:
    """Recommend a database for a project described in free text.

    Args:
        description: Project description, e.g. "an e-commerce platform for
                     millions of users on a limited budget".

    Returns:
        A dictionary containing:
          - requirements: The requirements extracted from the description.
          - recommendations: Primary pick, alternatives and plans.
          - summary: A human-readable answer.
    """
    try:
        requirements = extract_requirements(description)
        result = generate_recommendations(
            requirements, catalog_service.get_all(), config.max_alternatives
        )
        summary = (
            format_chat_response(result)
            if result.has_match
            else format_insufficient_match(requirements)
        )
        return {
            "requirements": requirements.model_dump(mode="json"),
            "recommendations": result.model_dump(mode="json"),
            "summary": summary,
        }
    except AppError as exc:
        logger.warning("Recommendation failed: %s", exc)
        return {"error": str(exc)}
    # Top-level handler: broad catch intentional
    except Exception as exc:
        logger.exception("Unexpected error during recommendation")
        return {"error": str(exc)}


@mcp.tool()
def search_databases(query: str) -> list[dict[str, Any]]:
    """Search the catalog by name, description, category, type, features and use cases.

    Args:
        query: Case-insensitive search term.

    Returns:
        Matching catalog records.
    """
    try:
        return [record.model_dump(mode="json") for record in catalog_service.search(query)]
    except AppError as exc:
        logger.warning("Catalog search failed: %s", exc)
        return [{"error": str(exc)}]
    # Top-level handler: broad catch intentional
    except Exception as exc:
        logger.exception("Unexpected error during catalog search")
        return [{"error": str(exc)}]


@mcp.tool()
def generate_schema(
    use_case: str,
    database: str = "PostgreSQL",
    database_type: str = DatabaseType.SQL.value,
) -> dict[str, Any]:
    """Generate a starter schema for a use case.

    Args:
        use_case: Description of the application, e.g. "online shop".
        database: Target database name or catalog slug.
        database_type: Target type (SQL, NoSQL, NewSQL, ...), used when
                       *database* is not a catalog slug.

    Returns:
        The schema, use case analysis, SQL script or collection validators,
        and a Mermaid ER diagram.
    """
    valid_types = {member.value for member in DatabaseType}
    if database_type not in valid_types:
        return {"error": f"Unknown database type: {database_type}"}

    try:
        if catalog_service.repository.exists(database):
            record = catalog_service.get_by_slug(database)
            target = SchemaTarget(name=record.name, type=record.type)
        else:
            target = SchemaTarget(name=database, type=DatabaseType(database_type))
        return design_schema(use_case, target).model_dump(mode="json")
    except AppError as exc:
        logger.warning("Schema generation failed: %s", exc)
        return {"error": str(exc)}
    # Top-level handler: broad catch intentional
    except Exception as exc:
        logger.exception("Unexpected error during schema generation")
        return {"error": str(exc)}


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    mcp.run()
