"""Wiring shared by CLI commands: settings, scopes, stores, client."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from aspects.config import AspectsSettings
from aspects.core.installer import Installer
from aspects.core.registry_client import RegistryClient
from aspects.core.schema import AspectSchemaValidator
from aspects.core.scope import discover_project_root, resolve_scope, scope_dir
from aspects.core.state_store import StateStore
from aspects.models.records import Scope

console = Console()
err_console = Console(stderr=True)

REGISTRY_URL_SETTING = "registryUrl"


class CliContext:
    """Everything a command needs, built once per invocation."""

    def __init__(self, settings: AspectsSettings | None = None, cwd: Path | None = None) -> None:
        self.settings = settings or AspectsSettings()
        self.project_root = discover_project_root(cwd, home=self.settings.home)
        self.global_store = StateStore(Scope.GLOBAL, self.settings.home)
        self.validator = AspectSchemaValidator()
        self._client: RegistryClient | None = None

    @property
    def project_store(self) -> StateStore | None:
        if self.project_root is None:
            return None
        return StateStore(Scope.PROJECT, scope_dir(Scope.PROJECT, self.settings.home, self.project_root))

    @property
    def client(self) -> RegistryClient:
        if self._client is None:
            stored = self.global_store.get_setting(REGISTRY_URL_SETTING)
            self._client = RegistryClient(
                self.settings, base_url=self.settings.effective_registry_url(stored)
            )
        return self._client

    def scope(self, global_: bool = False, project: bool = False) -> Scope:
        explicit = Scope.GLOBAL if global_ else Scope.PROJECT if project else None
        return resolve_scope(explicit, self.project_root)

    def store(self, scope: Scope) -> StateStore:
        return StateStore(scope, scope_dir(scope, self.settings.home, self.project_root))

    def stores(self) -> list[StateStore]:
        """All scopes that exist here, project first."""
        project = self.project_store
        return [project, self.global_store] if project is not None else [self.global_store]

    def installer(self, scope: Scope) -> Installer:
        return Installer(self.client, self.store(scope), self.validator, self.settings)


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    err_console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)

