"""``aspects add`` — install one or more aspects.

Each specifier is installed independently; a failure is reported and the
remaining specifiers still run.  The exit status is 1 if any failed.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from aspects.cli.context import CliContext, console, fail
from aspects.core.installer import InstallOutcome
from aspects.core.scope import PROJECT_DIR_NAME
from aspects.models.records import Scope


def add_cmd(
    specs: list[str] = typer.Argument(
        ...,
        help="Specifiers: name, name@version, publisher/name, hash:<digest>, "
        "github:owner/repo[@ref], or ./path",
    ),
    global_: bool = typer.Option(False, "--global", "-g", help="Install into ~/.aspects."),
    project: bool = typer.Option(False, "--project", "-p", help="Install into the project."),
    force: bool = typer.Option(False, "--force", "-f", help="Reinstall even if present."),
) -> None:
    """Install aspects from the registry, a content hash, GitHub, or a local path."""
    if global_ and project:
        fail("--global and --project are mutually exclusive")

    ctx = CliContext()
    scope = ctx.scope(global_=global_, project=project)
    if scope is Scope.PROJECT and ctx.project_root is None:
        # --project outside a project initializes one in the cwd.
        (Path.cwd() / PROJECT_DIR_NAME).mkdir(parents=True, exist_ok=True)
        ctx.project_root = Path.cwd()

    outcomes = ctx.installer(scope).install_many(specs, force=force)
    for outcome in outcomes:
        _print_outcome(outcome, scope)

    failed = [o for o in outcomes if not o.ok]
    if len(outcomes) > 1:
        console.print(
            f"\n{len(outcomes) - len(failed)} succeeded, {len(failed)} failed"
        )
    if failed:
        raise typer.Exit(code=1)


def _print_outcome(outcome: InstallOutcome, scope: Scope) -> None:
    spec = escape(outcome.specifier)
    if not outcome.ok:
        console.print(f"[red]✗[/red] {spec}: {escape(outcome.error or '')}")
        return

    record = outcome.record
    label = f"[cyan]{record.name}[/cyan]@{record.version}"
    if outcome.already_installed:
        console.print(f"[dim]•[/dim] {label} already installed [dim]({scope.value})[/dim]")
    else:
        console.print(
            f"[green]✓[/green] Installed {label} "
            f"[dim]({record.source.value}, {record.trust.value}, {scope.value})[/dim]"
        )
    if outcome.aspect is not None and not outcome.already_installed:
        console.print(f"  [italic]{escape(outcome.aspect.tagline)}[/italic]")
    for warning in outcome.warnings:
        console.print(f"  [yellow]![/yellow] {escape(warning)}")
