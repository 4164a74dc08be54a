"""Installed-record models and the per-scope state document."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

STATE_SCHEMA_VERSION = 1


class Scope(str, Enum):
    """Where an aspect is installed.

    * ``project`` — ``<project root>/.aspects``, discovered from the cwd.
    * ``global`` — the user-wide home directory (``~/.aspects``).
    """

    PROJECT = "project"
    GLOBAL = "global"

    @property
    def rank(self) -> int:
        """Display order: project scope sorts before global."""
        return 0 if self is Scope.PROJECT else 1


class InstallSource(str, Enum):
    REGISTRY = "registry"
    SOURCE_REPO = "source_repo"
    LOCAL = "local"


class TrustLevel(str, Enum):
    """Provenance classification.

    Derived from the install source and registry metadata, never from the
    aspect's own fields and never set by the user.
    """

    VERIFIED = "verified"
    COMMUNITY = "community"
    SOURCE_REPO = "source_repo"
    LOCAL = "local"
    ANONYMOUS = "anonymous"


class InstalledRecord(BaseModel):
    """One installed aspect in one scope.

    ``content_digest`` is the identity used for idempotency checks and for
    drift detection on local installs.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    content_digest: str
    registry_digest: str | None = None  # as reported by the server, verbatim
    source: InstallSource
    trust: TrustLevel
    publisher: str | None = None
    source_ref: str | None = None
    local_path: str | None = None
    specifier: str = ""
    installed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class StateDocument(BaseModel):
    """The JSON document persisted at ``<scope dir>/config.json``."""

    model_config = ConfigDict(frozen=True)

    schema_version: int = STATE_SCHEMA_VERSION
    installed: dict[str, InstalledRecord] = Field(default_factory=dict)
    settings: dict[str, Any] = Field(default_factory=dict)


class InstalledListing(BaseModel):
    """A record as shown across scopes.

    The same content installed in several scopes appears once, with every
    scope attached (project first).
    """

    model_config = ConfigDict(frozen=True)

    record: InstalledRecord
    scopes: tuple[Scope, ...]
    modified: bool = False

    @property
    def name(self) -> str:
        return self.record.name
