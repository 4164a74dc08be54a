"""``aspects find`` — filter installed and published aspects by metadata.

Unlike ``search``, which asks the registry's search endpoint, ``find``
matches locally against the registry index and the installed aspects.
"""

from __future__ import annotations

import typer
from rich.markup import escape

from aspects.cli.context import CliContext, console, fail
from aspects.core.errors import ApiError
from aspects.core.finder import (
    FindHit,
    FindQuery,
    QueryClause,
    QueryField,
    QueryOperator,
    QueryParseError,
    find_aspects,
    installed_aspects,
    parse_clause,
)

_USAGE = """\
Usage: aspects find <query>

Examples:
  aspects find wizard                      # by name
  aspects find -n wizard -t fantasy        # name AND tag
  aspects find -n wizard --or -t mentor    # name OR tag
  aspects find -n wizard --not tag:evil    # exclude a tag
  aspects find -a wizard --deep            # all fields, including the prompt"""


def find_cmd(
    query: str = typer.Argument(None, help="Matches name or display name."),
    name: str = typer.Option(None, "--name", "-n", help="Match by name."),
    tag: str = typer.Option(None, "--tag", "-t", help="Match by tag."),
    category: str = typer.Option(None, "--category", "-c", help="Match by category."),
    publisher: str = typer.Option(None, "--publisher", help="Match by publisher."),
    all_: str = typer.Option(None, "--all", "-a", help="Match any common field."),
    deep: bool = typer.Option(False, "--deep", help="Also search prompts and modes."),
    or_: bool = typer.Option(False, "--or", "-o", help="Any filter may match instead of all."),
    not_: list[str] = typer.Option(None, "--not", help="Exclude field:value (repeatable)."),
    local: bool = typer.Option(False, "--local", help="Only installed aspects."),
    registry: bool = typer.Option(False, "--registry", help="Only the registry."),
) -> None:
    """Find aspects with field filters and and/or/not operators."""
    if local and registry:
        fail("--local and --registry are mutually exclusive")

    operator = QueryOperator.OR if or_ else QueryOperator.AND
    clauses = [
        QueryClause(field=field, value=value, operator=operator)
        for field, value in (
            (QueryField.NAME, query),
            (QueryField.NAME, name),
            (QueryField.TAG, tag),
            (QueryField.CATEGORY, category),
            (QueryField.PUBLISHER, publisher),
            (QueryField.ALL, all_),
        )
        if value
    ]
    try:
        clauses.extend(parse_clause(text, QueryOperator.NOT) for text in not_ or [])
    except QueryParseError as exc:
        fail(str(exc))
    find_query = FindQuery(clauses=tuple(clauses), deep=deep)

    if not find_query.has_criteria:
        console.print(_USAGE)
        return

    ctx = CliContext()
    local_aspects = installed_aspects(ctx.installer(store.scope) for store in ctx.stores())

    index = None
    if not local:
        try:
            index = ctx.client.fetch_index()
        except ApiError as exc:
            if registry:
                fail(f"Could not reach the registry: {exc.message}")
            console.print(
                "[dim](Could not reach the registry, showing installed aspects only)[/dim]"
            )

    hits = find_aspects(find_query, local_aspects, index, include_local=not registry)

    if not hits:
        console.print("[dim]No aspects found matching your search.[/dim]")
        return

    console.print(f"Found {len(hits)} aspect{'' if len(hits) == 1 else 's'}\n")
    registry_hits = [h for h in hits if h.source == "registry"]
    local_hits = [h for h in hits if h.source == "local"]
    if registry_hits:
        console.print("[bold]Registry:[/bold]")
        for hit in registry_hits:
            _print_hit(hit)
    if local_hits:
        if registry_hits:
            console.print()
        console.print("[bold]Installed:[/bold]")
        for hit in local_hits:
            _print_hit(hit)


def _print_hit(hit: FindHit) -> None:
    candidate = hit.candidate
    badges = ""
    if hit.source == "registry" and hit.installed:
        badges += " [green]✓ installed[/green]"
    if hit.trust == "verified":
        badges += " [green]verified[/green]"
    if hit.scope is not None:
        badges += f" [dim]({hit.scope.value})[/dim]"
    console.print(f"  [cyan]{escape(candidate.name)}[/cyan]@{escape(candidate.version)}{badges}")
    if candidate.tagline:
        console.print(f"    [italic]{escape(candidate.tagline)}[/italic]")
    meta = []
    if candidate.category:
        meta.append(f"Category: {candidate.category}")
    if candidate.tags:
        meta.append(f"Tags: {', '.join(candidate.tags)}")
    if meta:
        console.print(f"    [dim]{escape(' | '.join(meta))}[/dim]")
