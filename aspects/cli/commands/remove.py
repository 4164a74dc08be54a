"""``aspects remove`` — uninstall an aspect from one or both scopes."""

from __future__ import annotations

import typer

from aspects.cli.context import CliContext, console, fail
from aspects.models.records import Scope


def remove_cmd(
    name: str = typer.Argument(..., help="Aspect name to remove."),
    global_: bool = typer.Option(False, "--global", "-g", help="Remove from ~/.aspects only."),
    project: bool = typer.Option(False, "--project", "-p", help="Remove from the project only."),
) -> None:
    """Remove an installed aspect.

    Without a scope flag the aspect is removed from every scope it is
    installed in.
    """
    ctx = CliContext()
    stores = ctx.stores()
    if global_ and not project:
        stores = [s for s in stores if s.scope is Scope.GLOBAL]
    elif project and not global_:
        stores = [s for s in stores if s.scope is Scope.PROJECT]

    removed = []
    for store in stores:
        record = ctx.installer(store.scope).uninstall(name)
        if record is not None:
            removed.append((store.scope, record))

    if not removed:
        where = ""
        if global_ and not project:
            where = " globally"
        elif project and not global_:
            where = " in this project"
        fail(f'Aspect "{name}" is not installed{where}')

    for scope, record in removed:
        console.print(
            f"[green]✓[/green] Removed [cyan]{record.name}[/cyan]@{record.version} "
            f"[dim]({scope.value})[/dim]"
        )
