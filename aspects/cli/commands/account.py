"""Account and registry settings: ``whoami``, ``logout``, ``config``."""

from __future__ import annotations

import typer

from aspects.cli.context import REGISTRY_URL_SETTING, CliContext, console
from aspects.config import DEFAULT_REGISTRY_URL
from aspects.core.credentials import CredentialStore


def whoami_cmd() -> None:
    """Show the logged-in account."""
    ctx = CliContext()
    store = CredentialStore(ctx.settings.home)
    tokens = store.load()
    if tokens is None:
        console.print("Not logged in.")
        raise typer.Exit(code=1)
    if store.is_expired(tokens):
        console.print(f"Session for [cyan]{tokens.username}[/cyan] has expired.")
        raise typer.Exit(code=1)
    console.print(f"Logged in as [cyan]{tokens.username}[/cyan]")


def logout_cmd() -> None:
    """Forget the stored login token."""
    ctx = CliContext()
    if CredentialStore(ctx.settings.home).clear():
        console.print("[green]✓[/green] Logged out")
    else:
        console.print("Not logged in.")


def config_cmd(
    registry_url: str = typer.Option(
        None, "--registry-url", help="Set the registry API base URL."
    ),
    reset: bool = typer.Option(False, "--reset", help="Revert to the default registry."),
) -> None:
    """Show or change the registry URL stored in the global settings."""
    ctx = CliContext()
    if reset:
        ctx.global_store.set_setting(REGISTRY_URL_SETTING, None)
    elif registry_url:
        ctx.global_store.set_setting(REGISTRY_URL_SETTING, registry_url.rstrip("/"))

    stored = ctx.global_store.get_setting(REGISTRY_URL_SETTING)
    effective = ctx.settings.effective_registry_url(stored)
    origin = (
        "ASPECTS_REGISTRY_URL" if ctx.settings.registry_url
        else "settings" if stored
        else "default"
    )
    console.print(f"Registry: {effective} [dim]({origin})[/dim]")
    if effective != DEFAULT_REGISTRY_URL:
        console.print(f"[dim]Default:  {DEFAULT_REGISTRY_URL}[/dim]")
    console.print(f"Home:     {ctx.settings.home}")
