"""``aspects update`` — move registry installs to their latest version.

Local and source-repo installs are skipped: local ones track their source
already, and source-repo ones are updated by re-adding the ref.
"""

from __future__ import annotations

import typer
from rich.markup import escape

from aspects.cli.context import CliContext, console, fail
from aspects.core.errors import ApiError, AspectsError
from aspects.models.records import InstallSource, TrustLevel
from aspects.models.specifiers import RegistrySpecifier


def update_cmd(
    name: str = typer.Argument(None, help="Aspect to update; all registry installs if omitted."),
    check: bool = typer.Option(False, "--check", "-c", help="Only report available updates."),
) -> None:
    """Update installed aspects to the latest registry version."""
    ctx = CliContext()
    targets = [
        (store, record)
        for store in ctx.stores()
        for record in store.list()
        if name is None or record.name == name
    ]
    if name is not None and not targets:
        fail(f'Aspect "{name}" is not installed')
    if not targets:
        console.print("[dim]No aspects installed.[/dim]")
        return

    available = updated = failed = 0
    for store, record in targets:
        label = f"[cyan]{record.name}[/cyan] [dim]({store.scope.value})[/dim]"
        if record.source is InstallSource.LOCAL:
            console.print(f"  {label}: local install, skipping")
            continue
        if record.source is InstallSource.SOURCE_REPO:
            console.print(
                f"  {label}: source install, run 'aspects add {record.specifier}' to update"
            )
            continue
        if record.trust is TrustLevel.ANONYMOUS:
            console.print(f"  {label}: installed by hash, skipping")
            continue

        try:
            entry = ctx.client.lookup(record.name)
        except ApiError as exc:
            console.print(f"  {label}: failed to check registry ({escape(exc.message)})")
            failed += 1
            continue
        if entry is None:
            console.print(f"  {label}: not found in registry")
            continue
        if entry.latest == record.version:
            console.print(f"  {label}: up to date ({record.version})")
            continue

        available += 1
        if check:
            console.print(
                f"  {label}: {record.version} → {entry.latest} [yellow]update available[/yellow]"
            )
            continue

        spec = RegistrySpecifier(
            raw=f"{record.name}@{entry.latest}", name=record.name, version=entry.latest
        )
        try:
            ctx.installer(store.scope).install(spec)
        except AspectsError as exc:
            console.print(
                f"  {label}: {record.version} → {entry.latest} [red]✗[/red] {escape(str(exc))}"
            )
            failed += 1
            continue
        console.print(f"  {label}: {record.version} → {entry.latest} [green]✓[/green]")
        updated += 1

    console.print()
    if check:
        if available:
            console.print(f"{available} update(s) available. Run without --check to install.")
        else:
            console.print("[green]All aspects up to date[/green]")
    elif updated:
        console.print(f"[green]Updated {updated} aspect(s)[/green]")
    elif not failed:
        console.print("[green]All aspects up to date[/green]")
    if failed:
        raise typer.Exit(code=1)
