"""``aspects list`` — show installed aspects across scopes."""

from __future__ import annotations

import typer
from rich.table import Table

from aspects.cli.context import CliContext, console
from aspects.core.state_store import aggregate_installed
from aspects.models.records import Scope

_TRUST_STYLE = {
    "verified": "green",
    "community": "blue",
    "source_repo": "magenta",
    "local": "yellow",
    "anonymous": "dim",
}


def list_cmd(
    global_: bool = typer.Option(False, "--global", "-g", help="Only global installs."),
    project: bool = typer.Option(False, "--project", "-p", help="Only project installs."),
) -> None:
    """List installed aspects; local installs whose source changed are flagged."""
    ctx = CliContext()
    stores = ctx.stores()
    if global_ and not project:
        stores = [s for s in stores if s.scope is Scope.GLOBAL]
    elif project and not global_:
        stores = [s for s in stores if s.scope is Scope.PROJECT]

    listings = aggregate_installed(stores, validator=ctx.validator)
    if not listings:
        console.print("[dim]No aspects installed.[/dim]")
        console.print("Run [bold]aspects add <name>[/bold] to install one.")
        return

    table = Table(title="Installed Aspects")
    table.add_column("Name", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Source")
    table.add_column("Trust")
    table.add_column("Scope")
    table.add_column("Status")

    for listing in listings:
        record = listing.record
        trust = record.trust.value
        status = "[yellow]modified[/yellow]" if listing.modified else ""
        table.add_row(
            record.name,
            record.version,
            record.source.value,
            f"[{_TRUST_STYLE[trust]}]{trust}[/{_TRUST_STYLE[trust]}]",
            ", ".join(scope.value for scope in listing.scopes),
            status,
        )

    console.print(table)
