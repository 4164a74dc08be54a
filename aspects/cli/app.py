"""Main Typer application — imports and registers all CLI commands.

Entry point: ``aspects`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import typer

from aspects import __version__
from aspects.cli.commands.account import config_cmd, logout_cmd, whoami_cmd
from aspects.cli.commands.add import add_cmd
from aspects.cli.commands.bundle import bundle_cmd
from aspects.cli.commands.find import find_cmd
from aspects.cli.commands.info import info_cmd
from aspects.cli.commands.init import init_cmd
from aspects.cli.commands.list_cmd import list_cmd
from aspects.cli.commands.publish import publish_cmd, unpublish_cmd
from aspects.cli.commands.remove import remove_cmd
from aspects.cli.commands.search import search_cmd
from aspects.cli.commands.share import share_cmd
from aspects.cli.commands.update import update_cmd
from aspects.cli.commands.validate import validate_cmd
from aspects.config import AspectsSettings
from aspects.log import configure_logging

app = typer.Typer(
    name="aspects",
    help="Aspects: install, share, and publish personality aspects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="add", help="Install aspects by name, hash, GitHub repo, or path.")(add_cmd)
app.command(name="install", help="Alias for 'add'.", hidden=True)(add_cmd)
app.command(name="remove", help="Remove an installed aspect.")(remove_cmd)
app.command(name="list", help="List installed aspects.")(list_cmd)
app.command(name="search", help="Search the registry.")(search_cmd)
app.command(name="find", help="Find installed or published aspects with filters.")(find_cmd)
app.command(name="info", help="Show details for an aspect.")(info_cmd)
app.command(name="update", help="Update registry installs to their latest version.")(update_cmd)
app.command(name="init", help="Initialize a project for local installs.")(init_cmd)
app.command(name="validate", help="Validate an aspect file.")(validate_cmd)
app.command(name="bundle", help="Bundle several aspects into one JSON file.")(bundle_cmd)
app.command(name="publish", help="Publish an aspect under your account.")(publish_cmd)
app.command(name="unpublish", help="Remove a published version.")(unpublish_cmd)
app.command(name="share", help="Share an aspect anonymously by content hash.")(share_cmd)
app.command(name="whoami", help="Show the logged-in account.")(whoami_cmd)
app.command(name="logout", help="Forget the stored login token.")(logout_cmd)
app.command(name="config", help="Show or set the registry URL.")(config_cmd)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"aspects {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version."
    ),
) -> None:
    """Install, share, and publish personality aspects."""
    configure_logging(AspectsSettings().log_level, verbose=verbose)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
