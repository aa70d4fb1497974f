"""Command-line interface for the database consultant.

Commands::

    db-consultant chat        Interactive consultation in the terminal
    db-consultant recommend   One-shot recommendation for a description
    db-consultant search      Search the catalog
    db-consultant schema      Generate a starter schema

The CLI reads the same catalog as the HTTP services, configured through
the ``ConsultantConfig`` environment variables.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer

from src.catalog.services.catalog_service import CatalogService
from src.catalog.storage.factory import CatalogStorage, open_storage
from src.consultant import display
from src.consultant.services.conversation import ConsultantSession
from src.consultant.services.narrative import (
    WELCOME_MESSAGE,
    export_markdown,
    format_chat_response,
    format_insufficient_match,
)
from src.consultant.services.recommendation_scorer import generate_recommendations
from src.consultant.services.requirement_extractor import extract_requirements
from src.consultant.services.schema_generator import design_schema
from src.shared.config import ConsultantConfig
from src.shared.constants import VERSION
from src.shared.errors import AppError, UnsupportedTargetError
from src.shared.models.catalog import DatabaseType
from src.shared.models.consultant import SchemaTarget

logger = logging.getLogger("consultant.cli")

EXIT_WORDS = frozenset({"exit", "quit", "bye"})

app = typer.Typer(
    name="db-consultant",
    help="Rule-based database recommendations and starter schemas.",
    no_args_is_help=True,
)


def _open_storage() -> CatalogStorage:
    return open_storage(ConsultantConfig())


def _write_report(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    display.print_reply(f"Report written to {path}")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"db-consultant {VERSION}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Database consultant command-line interface."""


@app.command()
def chat(
    report: Optional[Path] = typer.Option(
        None, "--report", help="Write the Markdown report here when the chat ends.",
    ),
) -> None:
    """Describe your project turn by turn until a recommendation emerges."""
    storage = _open_storage()
    try:
        catalog = CatalogService(storage.repository).get_all()
        session = ConsultantSession(max_alternatives=ConsultantConfig().max_alternatives)
        display.print_welcome(WELCOME_MESSAGE)

        while True:
            text = typer.prompt("You", default="", show_default=False)
            if text.strip().lower() in EXIT_WORDS:
                break
            if not text.strip():
                continue
            reply = session.process_message(text, catalog)
            display.print_reply(reply.message.content)

        result = session.recommendations
        if report is not None and result is not None and result.has_match:
            today = datetime.now(timezone.utc).date()
            _write_report(report, export_markdown(result, session.requirements, today))
    finally:
        storage.close()


@app.command()
def recommend(
    description: str = typer.Argument(..., help="Free-text project description."),
    report: Optional[Path] = typer.Option(
        None, "--report", help="Also write the Markdown report to this file.",
    ),
) -> None:
    """Recommend a database for a project description."""
    storage = _open_storage()
    try:
        requirements = extract_requirements(description)
        catalog = CatalogService(storage.repository).get_all()
        result = generate_recommendations(requirements, catalog, ConsultantConfig().max_alternatives)
    finally:
        storage.close()

    display.print_requirements(requirements)
    display.print_ranking(result)
    if result.has_match:
        display.print_reply(format_chat_response(result))
        if report is not None:
            today = datetime.now(timezone.utc).date()
            _write_report(report, export_markdown(result, requirements, today))
    else:
        display.print_reply(format_insufficient_match(requirements))


@app.command()
def search(query: str = typer.Argument("", help="Search term; empty lists everything.")) -> None:
    """Search the catalog by name, category, type, features and use cases."""
    storage = _open_storage()
    try:
        records = CatalogService(storage.repository).search(query)
    finally:
        storage.close()
    display.print_records(records)


@app.command()
def schema(
    use_case: str = typer.Argument(..., help="Description of the application."),
    database: str = typer.Option("PostgreSQL", "--database", "-d",
                                 help="Target database name or catalog slug."),
    database_type: str = typer.Option(DatabaseType.SQL.value, "--type", "-t",
                                      help="Target type when --database is not a catalog slug."),
    sql: bool = typer.Option(False, "--sql", help="Print only the SQL script."),
) -> None:
    """Generate a starter schema for a use case."""
    valid_types = [member.value for member in DatabaseType]
    if database_type not in valid_types:
        display.print_error(
            f"Unknown database type: {database_type} (expected one of {', '.join(valid_types)})"
        )
        raise typer.Exit(code=2)

    storage = _open_storage()
    try:
        service = CatalogService(storage.repository)
        if storage.repository.exists(database):
            record = service.get_by_slug(database)
            target = SchemaTarget(name=record.name, type=record.type)
        else:
            target = SchemaTarget(name=database, type=DatabaseType(database_type))
    except AppError as exc:
        display.print_error(exc.detail)
        raise typer.Exit(code=1)
    finally:
        storage.close()

    response = design_schema(use_case, target)
    if sql:
        if not target.type.is_relational:
            display.print_error(UnsupportedTargetError(target.type.value).detail)
            raise typer.Exit(code=1)
        typer.echo(response.sql, nl=False)
        return

    display.print_schema_summary(response)


if __name__ == "__main__":
    app()
