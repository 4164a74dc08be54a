"""``aspects init`` — mark the current directory as a project."""

from __future__ import annotations

from pathlib import Path

import typer

from aspects.cli.context import console
from aspects.core.scope import PROJECT_DIR_NAME
from aspects.core.state_store import StateStore
from aspects.models.records import Scope


def init_cmd(
    path: Path = typer.Argument(Path("."), help="Project directory."),
) -> None:
    """Create a ``.aspects/`` directory so installs default to project scope."""
    root = path.resolve()
    aspects_dir = root / PROJECT_DIR_NAME
    if aspects_dir.is_dir():
        console.print(f"[yellow]![/yellow] {PROJECT_DIR_NAME}/ already exists in {root}")
        return

    StateStore(Scope.PROJECT, aspects_dir).read()
    console.print(f"[green]✓[/green] Initialized {PROJECT_DIR_NAME}/ in [dim]{root}[/dim]")
    console.print("  Now [bold]aspects add <name>[/bold] installs into this project.")
