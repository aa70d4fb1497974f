"""Rich-based terminal display for the consultant CLI.

All functions print through the module-level ``_console`` so formatting
is consistent across a session.  Free text produced by the narrative
formatter is printed with markup disabled.
"""
from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.shared.models.catalog import DatabaseRecord
from src.shared.models.consultant import RecommendationResult, SchemaResponse, UserRequirements

_console = Console()


def _value(item) -> str:
    return item.value if item is not None else "-"


def print_welcome(message: str) -> None:
    _console.print(
        Panel(Text(message), title="[bold]Database Consultant[/bold]", border_style="blue", expand=False)
    )


def print_reply(content: str) -> None:
    """Print one assistant turn."""
    _console.print(Text("Consultant", style="bold cyan"))
    _console.print(content, markup=False, highlight=False, emoji=False)
    _console.print()


def print_requirements(requirements: UserRequirements) -> None:
    table = Table(title="Requirements", show_header=True, header_style="bold magenta")
    table.add_column("Topic", style="cyan")
    table.add_column("Value")
    table.add_row("Project type", _value(requirements.project_type))
    table.add_row("Expected load", _value(requirements.expected_load))
    table.add_row("Budget", _value(requirements.budget))
    table.add_row("Team size", _value(requirements.team))
    needs = ", ".join(need.value for need in requirements.performance) or "-"
    table.add_row("Performance", needs)
    _console.print(table)


def print_ranking(result: RecommendationResult) -> None:
    """Print the primary pick and alternatives with their scores."""
    if result.primary is None:
        _console.print("[yellow]No database in the catalog matched these requirements.[/yellow]")
        return

    table = Table(title="Recommendations", show_header=True, header_style="bold magenta")
    table.add_column("Rank", justify="right")
    table.add_column("Database", style="cyan")
    table.add_column("Type")
    table.add_column("License")
    table.add_column("Score", justify="right", style="green")
    for rank, rec in enumerate([result.primary, *result.alternatives], 1):
        db = rec.database
        table.add_row(str(rank), db.name, db.type.value, db.license.value, str(rec.score))
    _console.print(table)

    if result.primary.warnings:
        for warning in result.primary.warnings:
            _console.print(Text(f"! {warning}", style="yellow"))


def print_records(records: list[DatabaseRecord]) -> None:
    if not records:
        _console.print("[dim]No matching databases.[/dim]")
        return
    table = Table(title=f"Catalog ({len(records)})", show_header=True, header_style="bold magenta")
    table.add_column("Slug", style="cyan")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Type")
    table.add_column("Popularity", justify="right")
    for record in records:
        table.add_row(record.slug, record.name, record.category, record.type.value, str(record.popularity))
    _console.print(table)


def print_schema_summary(response: SchemaResponse) -> None:
    """Print the generated tables and the analysis highlights."""
    schema = response.database_schema
    header = Text()
    header.append("Pattern: ", style="bold")
    header.append(f"{response.pattern}\n", style="cyan")
    header.append("Target: ", style="bold")
    header.append(f"{response.target.name} ({response.target.type.value})", style="green")
    _console.print(Panel(header, title=f"[bold]{schema.name}[/bold]", border_style="blue", expand=False))

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Table", style="cyan")
    table.add_column("Columns", justify="right")
    table.add_column("Primary key")
    table.add_column("Indexes", justify="right")
    for t in schema.tables:
        table.add_row(t.name, str(len(t.columns)), ", ".join(t.primary_key), str(len(t.indexes)))
    _console.print(table)

    for item in response.analysis.scaling_considerations:
        _console.print(Text(f"* {item}", style="yellow"))


def print_error(message: str) -> None:
    _console.print(Panel(Text(message), title="[bold red]Error[/bold red]", border_style="red", expand=False))
