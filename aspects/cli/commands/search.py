"""``aspects search`` — query the registry."""

from __future__ import annotations

import typer
from rich.table import Table

from aspects.cli.context import CliContext, console, fail
from aspects.core.errors import ApiError


def search_cmd(
    query: str = typer.Argument(None, help="Search text; omit to browse."),
    category: str = typer.Option(None, "--category", "-c", help="Filter by category."),
    trust: str = typer.Option(None, "--trust", "-t", help="verified or community."),
    limit: int = typer.Option(20, "--limit", "-l", help="Maximum results."),
    offset: int = typer.Option(0, "--offset", help="Skip this many results."),
) -> None:
    """Search the registry by name, tagline, or category."""
    ctx = CliContext()
    try:
        response = ctx.client.search(
            query=query, category=category, trust=trust, limit=limit, offset=offset
        )
    except ApiError as exc:
        fail(f"Search failed: {exc.message}")

    if not response.results:
        console.print("[dim]No aspects found.[/dim]")
        return

    table = Table(title=f"Search results ({response.total})")
    table.add_column("Name", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Tagline")
    table.add_column("Trust")

    for result in response.results:
        name = f"{result.publisher}/{result.name}" if result.publisher else result.name
        table.add_row(name, result.version, result.tagline, result.trust)

    console.print(table)
    shown = offset + len(response.results)
    if response.total > shown:
        console.print(f"[dim]{response.total - shown} more; use --offset {shown}[/dim]")
