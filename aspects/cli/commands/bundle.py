"""``aspects bundle`` — write several aspects into one JSON file.

Aspects are picked by name, by a find query, or both, from the installed
set (default) or from the registry (``--registry``).  A name that cannot be
loaded is reported and skipped; the bundle is written from the rest.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.markup import escape

from aspects.cli.context import CliContext, console, fail
from aspects.core.errors import AspectsError
from aspects.core.finder import (
    FindCandidate,
    QueryParseError,
    installed_aspects,
    parse_query,
)
from aspects.models.aspect import Aspect
from aspects.models.bundle import AspectBundle
from aspects.models.records import Scope


def bundle_cmd(
    names: list[str] = typer.Argument(None, help="Aspect names to bundle."),
    output: Path = typer.Option(Path("bundle.json"), "--output", "-o", help="Output file."),
    find: str = typer.Option(
        None, "--find", "-f", help='Also bundle query matches, e.g. "tag:fantasy --not tag:evil".'
    ),
    registry: bool = typer.Option(
        False, "--registry", "-r", help="Take aspects from the registry."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be bundled."),
) -> None:
    """Bundle aspects into a single JSON file."""
    query = None
    if find:
        try:
            query = parse_query(find)
        except QueryParseError as exc:
            fail(str(exc))
    if not names and query is None:
        fail("Name at least one aspect or pass --find")

    ctx = CliContext()
    installers = [ctx.installer(store.scope) for store in ctx.stores()]
    bundle = AspectBundle()

    if registry:
        loaded = _load_from_registry(ctx, names or [])
    else:
        installed = {aspect.name: aspect for _, aspect in installed_aspects(installers)}
        loaded = []
        for name in names or []:
            if name in installed:
                loaded.append(installed[name])
            else:
                console.print(f"[red]✗[/red] {escape(name)}: not installed")
    bundle = bundle.with_aspects(loaded)

    if query is not None:
        if registry:
            try:
                index = ctx.client.fetch_index()
            except AspectsError as exc:
                fail(f"Could not reach the registry: {exc}")
            matched = [
                name
                for name, entry in sorted(index.aspects.items())
                if query.matches(FindCandidate.from_index_entry(name, entry))
                and name not in bundle.names
            ]
            matches = _load_from_registry(ctx, matched)
        else:
            matches = [
                aspect
                for _, aspect in installed_aspects(installers)
                if query.matches(FindCandidate.from_aspect(aspect))
            ]
        console.print(f"[dim]{len(matches)} aspect(s) match '{escape(find)}'[/dim]")
        bundle = bundle.with_aspects(matches)

    if not bundle.aspects:
        fail("No aspects to bundle")

    if dry_run:
        console.print(f"Would bundle {len(bundle.aspects)} aspect(s):")
        for aspect in bundle.aspects:
            console.print(f"  • [cyan]{escape(aspect.name)}[/cyan] - {escape(aspect.tagline)}")
        return

    document = json.dumps(bundle.to_document(), indent=2, ensure_ascii=False)
    output.write_text(document + "\n", encoding="utf-8")
    for aspect in bundle.aspects:
        console.print(f"  • [cyan]{escape(aspect.name)}[/cyan]")
    console.print(
        f"[green]✓[/green] Created {escape(str(output))} with {len(bundle.aspects)} aspect(s)"
    )


def _load_from_registry(ctx: CliContext, names: list[str]) -> list[Aspect]:
    fetcher = ctx.installer(Scope.GLOBAL)
    loaded = []
    for name in names:
        try:
            loaded.append(fetcher.fetch(name))
        except AspectsError as exc:
            console.print(f"[red]✗[/red] {escape(name)}: {escape(str(exc))}")
    return loaded
