"""Registry payload models (index, detail, version content, search).

Payloads arrive in camelCase; the models expose snake_case and tolerate
fields they do not know about.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class IndexVersion(_Payload):
    """One published version.

    The static index carries a content ``url``; the API carries the digest
    (``blake3`` on the wire) and the aspect body inline.
    """

    published: str | None = None
    url: str | None = None
    digest: str | None = Field(default=None, alias="blake3")
    size: int | None = None
    aspect: dict[str, Any] | None = None


class IndexMetadata(_Payload):
    display_name: str = ""
    tagline: str = ""
    category: str | None = None
    tags: list[str] | None = None
    publisher: str | None = None
    trust: str = "community"


class RegistryIndexEntry(_Payload):
    latest: str
    versions: dict[str, IndexVersion] = Field(default_factory=dict)
    metadata: IndexMetadata = Field(default_factory=IndexMetadata)

    @property
    def is_verified(self) -> bool:
        return self.metadata.trust == "verified"


class RegistryIndex(_Payload):
    version: int = 1
    updated: str = ""
    total: int | None = None
    aspects: dict[str, RegistryIndexEntry] = Field(default_factory=dict)


class AspectDetail(_Payload):
    """Response of ``GET /aspects/{name}``."""

    name: str
    publisher: str | None = None
    latest: str
    trust: str = "community"
    display_name: str = ""
    tagline: str = ""
    category: str | None = None
    tags: list[str] | None = None
    versions: dict[str, IndexVersion] = Field(default_factory=dict)

    def to_index_entry(self) -> RegistryIndexEntry:
        return RegistryIndexEntry(
            latest=self.latest,
            versions=self.versions,
            metadata=IndexMetadata(
                display_name=self.display_name,
                tagline=self.tagline,
                category=self.category,
                tags=self.tags,
                publisher=self.publisher,
                trust=self.trust,
            ),
        )


class VersionContent(_Payload):
    """Response of ``GET /aspects/{name}/{version}`` and ``GET /aspects/blob/{hash}``."""

    name: str
    version: str
    content: dict[str, Any]
    digest: str | None = Field(default=None, alias="blake3")
    size: int | None = None
    published_at: str | None = None


class SearchResult(_Payload):
    name: str
    display_name: str = ""
    tagline: str = ""
    category: str | None = None
    publisher: str | None = None
    version: str = ""
    trust: str = "community"
    downloads: int | None = None


class SearchResponse(_Payload):
    total: int = 0
    results: list[SearchResult] = Field(default_factory=list)


class Category(_Payload):
    id: str
    name: str = ""
    description: str = ""


class PublishResult(_Payload):
    ok: bool = True
    name: str
    version: str
    url: str | None = None
    digest: str | None = Field(default=None, alias="blake3")


class BlobResult(_Payload):
    """Response of an anonymous ``POST /aspects/blob``."""

    digest: str = Field(alias="blake3")
    size: int | None = None
    url: str | None = None
    existing: bool = False


class RegistryStats(_Payload):
    total_aspects: int = 0
    total_downloads: int = 0
    weekly_downloads: int = 0
    top_aspects: list[dict[str, Any]] = Field(default_factory=list)
    by_category: dict[str, int] = Field(default_factory=dict)
