"""Install specifiers — the typed form of what the user asked to install.

A specifier is a tagged union discriminated on ``kind``.  Consumers dispatch
with an ``isinstance`` chain ending in ``assert_never`` so that adding a
variant is a type error until every consumer handles it.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SOURCE_REF = "main"
MIN_DIGEST_LENGTH = 16


class SpecifierKind(str, Enum):
    REGISTRY = "registry"
    HASH = "hash"
    SOURCE_REPO = "source_repo"
    LOCAL = "local"


class _SpecifierBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    raw: str = ""  # the user's original input


class RegistrySpecifier(_SpecifierBase):
    """``[@][publisher/]name[@version]``."""

    kind: Literal[SpecifierKind.REGISTRY] = SpecifierKind.REGISTRY
    name: str
    publisher: str | None = None
    version: str | None = None

    @property
    def qualified_name(self) -> str:
        """``publisher/name`` when a publisher was given, else ``name``."""
        return f"{self.publisher}/{self.name}" if self.publisher else self.name

    @property
    def target_version(self) -> str:
        return self.version or "latest"


class HashSpecifier(_SpecifierBase):
    """``hash:<digest>`` or ``blake3:<digest>``."""

    kind: Literal[SpecifierKind.HASH] = SpecifierKind.HASH
    digest: str = Field(min_length=MIN_DIGEST_LENGTH)


class SourceRepoSpecifier(_SpecifierBase):
    """``github:owner/repo[@ref]``."""

    kind: Literal[SpecifierKind.SOURCE_REPO] = SpecifierKind.SOURCE_REPO
    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    ref: str = DEFAULT_SOURCE_REF

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


class LocalSpecifier(_SpecifierBase):
    """A filesystem path, absolute by the time it is constructed."""

    kind: Literal[SpecifierKind.LOCAL] = SpecifierKind.LOCAL
    path: str


InstallSpecifier = Annotated[
    Union[RegistrySpecifier, HashSpecifier, SourceRepoSpecifier, LocalSpecifier],
    Field(discriminator="kind"),
]
