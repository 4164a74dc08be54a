"""``aspects validate`` — check an aspect file before sharing or publishing."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from aspects.cli.context import CliContext, console, fail
from aspects.core.artifact_loader import read_local_aspect
from aspects.core.errors import NotFoundError, SchemaValidationError
from aspects.core.schema import basic_checks, security_checks, strict_checks


def validate_cmd(
    path: Path = typer.Argument(Path("."), help="Aspect directory or file."),
    strict: bool = typer.Option(False, "--strict", help="Apply publishing conventions."),
    security: bool = typer.Option(False, "--security", help="Scan the prompt for injection patterns."),
) -> None:
    """Validate an aspect against the schema and optional extra checks."""
    ctx = CliContext()
    try:
        report, _, file_path = read_local_aspect(path, ctx.validator)
    except NotFoundError as exc:
        fail(exc.message)
    except SchemaValidationError as exc:
        console.print(f"[red]✗[/red] Invalid aspect: {escape(str(path))}")
        for error in exc.errors:
            console.print(f"  [red]•[/red] {escape(error)}")
        raise typer.Exit(code=1)

    aspect = report.aspect
    console.print(f"[green]✓[/green] Valid {file_path.name} (schema v{aspect.schema_version})")
    console.print(f"  Name:    {aspect.name}")
    console.print(f"  Version: {aspect.version}")
    for warning in report.warnings:
        console.print(f"  [yellow]![/yellow] {escape(warning)}")

    checks = basic_checks(aspect)
    if strict:
        checks += strict_checks(aspect)
    if security:
        checks += security_checks(aspect)

    console.print("\nChecks:")
    for check in checks:
        mark = "[green]✓[/green]" if check.passed else "[red]✗[/red]"
        suffix = f" [dim]({escape(check.message)})[/dim]" if check.message else ""
        console.print(f"  {mark} {escape(check.label)}{suffix}")

    if not all(check.passed for check in checks):
        console.print("\n[yellow]Some checks failed. Review the issues above.[/yellow]")
        raise typer.Exit(code=1)
