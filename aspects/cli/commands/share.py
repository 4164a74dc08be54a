"""``aspects share`` — publish anonymously by content hash.

No account is needed: the registry stores the content under its digest and
anyone can install it with ``aspects add hash:<digest>``.  Uploading the
same content twice returns the same digest.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from aspects.cli.context import CliContext, console, fail
from aspects.core.artifact_loader import read_local_aspect
from aspects.core.errors import ApiError, NotFoundError, SchemaValidationError
from aspects.core.hasher import canonical_json_bytes, content_digest


def share_cmd(
    target: str = typer.Argument(..., help="Installed aspect name, or a path starting with . or /"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compute the digest without uploading."),
) -> None:
    """Share an aspect anonymously by content hash."""
    ctx = CliContext()
    if target.startswith((".", "/")):
        try:
            report, _, _ = read_local_aspect(Path(target), ctx.validator)
        except (NotFoundError, SchemaValidationError) as exc:
            fail(str(exc))
        aspect = report.aspect
    else:
        aspect = None
        for store in ctx.stores():
            record = store.get(target)
            if record is not None:
                aspect = ctx.installer(store.scope).load_installed(record)
                if aspect is not None:
                    console.print(f"Found [cyan]{target}[/cyan] [dim]({store.scope.value})[/dim]")
                    break
        if aspect is None:
            fail(
                f'Aspect "{target}" is not installed or cannot be read. '
                "To share from a path, use: aspects share ./path/to/aspect.json"
            )

    size = len(canonical_json_bytes(aspect.to_document()))
    limit = ctx.settings.max_artifact_size_bytes
    if size > limit:
        fail(f"Aspect too large: {size} bytes ({limit} byte limit)")

    console.print(f"\n  [bold]{escape(aspect.display_name)}[/bold] [dim]({aspect.name}@{aspect.version})[/dim]")
    console.print(f"  [italic]{escape(aspect.tagline)}[/italic]")
    console.print(f"  Size    {size / 1024:.1f} KB")

    if dry_run:
        console.print(f"  Digest  {content_digest(aspect)} [dim](local sha256)[/dim]")
        console.print("\n[dim]Dry run: nothing uploaded.[/dim]")
        return

    try:
        result = ctx.client.publish_anonymous(aspect)
    except ApiError as exc:
        fail(f"Share failed: {exc.message}")

    status = "Already shared" if result.existing else "Shared"
    console.print(f"\n[green]✓[/green] {status}")
    console.print(f"  Hash     {result.digest}")
    console.print(f"  Install  [bold]aspects add hash:{result.digest}[/bold]")
