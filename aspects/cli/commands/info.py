"""``aspects info`` — details for an installed or registry aspect."""

from __future__ import annotations

import typer
from rich.markup import escape
from rich.panel import Panel

from aspects.cli.context import CliContext, console, fail
from aspects.core.errors import ApiError, SpecifierParseError
from aspects.core.specifier_parser import parse_specifier
from aspects.models.specifiers import RegistrySpecifier


def info_cmd(
    name: str = typer.Argument(..., help="Aspect name (optionally publisher/name)."),
) -> None:
    """Show an aspect's metadata, installed scopes, and registry versions."""
    try:
        spec = parse_specifier(name)
    except SpecifierParseError as exc:
        fail(str(exc))
    if not isinstance(spec, RegistrySpecifier):
        fail("info takes an aspect name, e.g. 'alaric' or 'morphist/alaric'")

    ctx = CliContext()
    lines: list[str] = []

    installed = []
    for store in ctx.stores():
        record = store.get(spec.name)
        if record is not None:
            installed.append((store, record))

    aspect = None
    for store, record in installed:
        aspect = aspect or ctx.installer(store.scope).load_installed(record)
        lines.append(
            f"[bold]Installed:[/bold] {record.version} [dim]({store.scope.value}, "
            f"{record.source.value}, {record.trust.value})[/dim]"
        )

    try:
        entry = ctx.client.lookup(spec.qualified_name)
    except ApiError as exc:
        entry = None
        lines.append(f"[yellow]Registry unavailable:[/yellow] {escape(exc.message)}")

    if entry is not None:
        meta = entry.metadata
        lines.append(f"[bold]Latest:[/bold]    {entry.latest}")
        lines.append(f"[bold]Versions:[/bold]  {', '.join(entry.versions)}")
        lines.append(f"[bold]Trust:[/bold]     {meta.trust}")
        if meta.publisher:
            lines.append(f"[bold]Publisher:[/bold] {meta.publisher}")
        if meta.category:
            lines.append(f"[bold]Category:[/bold]  {meta.category}")

    if not installed and entry is None:
        fail(f'Aspect "{spec.qualified_name}" is not installed and not in the registry')

    title = spec.qualified_name
    tagline = entry.metadata.tagline if entry is not None else ""
    if aspect is not None:
        title = f"{aspect.display_name} ({aspect.name})"
        tagline = aspect.tagline
    if tagline:
        lines.insert(0, f"[italic]{escape(tagline)}[/italic]\n")

    console.print(Panel("\n".join(lines), title=f"[bold]{escape(title)}[/bold]", border_style="cyan"))
