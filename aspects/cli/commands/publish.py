"""``aspects publish`` / ``aspects unpublish`` — named registry releases.

Both require a stored login token; the client refuses before touching the
network when there is none.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from aspects.cli.context import CliContext, console, fail
from aspects.core.artifact_loader import read_local_aspect
from aspects.core.errors import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    SchemaValidationError,
)
from aspects.core.hasher import canonical_json_bytes

_CONFLICT_HINTS = {
    "version_exists": "Bump the version in your aspect file and try again.",
    "name_taken": "Choose a different name, or publish under your own handle.",
    "already_exists": "This content is already published.",
    "handle_taken": "That handle belongs to another account.",
    "handle_reserved": "That handle is reserved.",
}


def publish_cmd(
    path: Path = typer.Argument(Path("."), help="Aspect directory or file."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate without uploading."),
) -> None:
    """Publish an aspect to the registry under your account."""
    ctx = CliContext()
    try:
        report, _, file_path = read_local_aspect(path, ctx.validator)
    except (NotFoundError, SchemaValidationError) as exc:
        fail(str(exc))

    aspect = report.aspect
    size = len(canonical_json_bytes(aspect.to_document()))
    if size > ctx.settings.max_artifact_size_bytes:
        fail(f"Aspect too large: {size} bytes ({ctx.settings.max_artifact_size_bytes} byte limit)")

    console.print(f"[bold]{escape(aspect.display_name)}[/bold] [dim]({aspect.name}@{aspect.version})[/dim]")
    if dry_run:
        console.print(f"[dim]Dry run: {file_path} is valid, {size} bytes. Nothing uploaded.[/dim]")
        return

    try:
        result = ctx.client.publish(aspect)
    except AuthError as exc:
        fail(exc.message)
    except ConflictError as exc:
        hint = _CONFLICT_HINTS.get(exc.error_code or "", "")
        fail(f"{exc.message} {hint}".strip())
    except ApiError as exc:
        fail(f"Publish failed: {exc.message}")

    console.print(f"[green]✓[/green] Published [cyan]{result.name}[/cyan]@{result.version}")
    if result.url:
        console.print(f"  {result.url}")
    console.print(f"  Install with: [bold]aspects add {result.name}@{result.version}[/bold]")


def unpublish_cmd(
    target: str = typer.Argument(..., help="name@version to remove from the registry."),
) -> None:
    """Remove a published version from the registry."""
    name, sep, version = target.rpartition("@")
    if not sep or not name or not version:
        fail("Specify the version to unpublish, e.g. my-aspect@1.0.0")

    ctx = CliContext()
    try:
        message = ctx.client.unpublish(name, version)
    except ApiError as exc:
        fail(exc.message)
    console.print(f"[green]✓[/green] {escape(message)}")
