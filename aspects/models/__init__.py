"""Aspects data models — all Pydantic v2, all frozen (immutable)."""

from aspects.models.aspect import (
    ASPECT_FILENAME,
    LEGACY_ASPECT_FILENAME,
    Aspect,
    AspectMode,
    AspectResources,
    VoiceHints,
)
from aspects.models.bundle import BUNDLE_VERSION, AspectBundle
from aspects.models.records import (
    InstalledListing,
    InstalledRecord,
    InstallSource,
    Scope,
    StateDocument,
    TrustLevel,
)
from aspects.models.registry import (
    AspectDetail,
    BlobResult,
    Category,
    IndexMetadata,
    IndexVersion,
    PublishResult,
    RegistryIndex,
    RegistryIndexEntry,
    RegistryStats,
    SearchResponse,
    SearchResult,
    VersionContent,
)
from aspects.models.specifiers import (
    HashSpecifier,
    InstallSpecifier,
    LocalSpecifier,
    RegistrySpecifier,
    SourceRepoSpecifier,
    SpecifierKind,
)

__all__ = [
    # aspect
    "ASPECT_FILENAME",
    "LEGACY_ASPECT_FILENAME",
    "Aspect",
    "AspectMode",
    "AspectResources",
    "VoiceHints",
    # bundle
    "BUNDLE_VERSION",
    "AspectBundle",
    # records
    "InstalledListing",
    "InstalledRecord",
    "InstallSource",
    "Scope",
    "StateDocument",
    "TrustLevel",
    # registry
    "AspectDetail",
    "BlobResult",
    "Category",
    "IndexMetadata",
    "IndexVersion",
    "PublishResult",
    "RegistryIndex",
    "RegistryIndexEntry",
    "RegistryStats",
    "SearchResponse",
    "SearchResult",
    "VersionContent",
    # specifiers
    "HashSpecifier",
    "InstallSpecifier",
    "LocalSpecifier",
    "RegistrySpecifier",
    "SourceRepoSpecifier",
    "SpecifierKind",
]
