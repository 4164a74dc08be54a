"""Installer — turns one specifier into a verified, recorded aspect.

Every specifier kind runs the same pipeline::

    PARSE -> RESOLVE_SOURCE -> FETCH_CONTENT -> VALIDATE_SCHEMA
          -> COMPUTE_DIGEST -> CHECK_EXISTING -> (SKIP | WRITE_ARTIFACT -> UPDATE_STATE)

Resolution differs per kind (registry lookup, digest lookup, source-repo
candidate files, local path).  The tail is shared.  Registry installs check
for an existing record as soon as the target version is known, so an
already-installed version costs one lookup and no content fetch.

Failures raise from :meth:`Installer.install`.  :meth:`Installer.install_many`
catches them per specifier so one bad item never aborts a batch.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, assert_never
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

from aspects.config import AspectsSettings
from aspects.core.artifact_loader import (
    DEFAULT_CANDIDATES,
    CandidateLoader,
    find_local_artifact,
    loader_for_path,
    read_artifact_text,
    read_local_aspect,
)
from aspects.core.errors import (
    AspectsError,
    NameMismatchError,
    NotFoundError,
    SizeLimitExceededError,
    SpecifierParseError,
)
from aspects.core.hasher import canonical_json_bytes, content_digest, digests_match
from aspects.core.registry_client import RegistryClient
from aspects.core.schema import AspectSchemaValidator, SchemaValidator, validate_or_raise
from aspects.core.specifier_parser import parse_specifier
from aspects.core.state_store import StateStore
from aspects.models.aspect import Aspect
from aspects.models.records import InstalledRecord, InstallSource, TrustLevel
from aspects.models.registry import IndexVersion, RegistryIndexEntry
from aspects.models.specifiers import (
    HashSpecifier,
    InstallSpecifier,
    LocalSpecifier,
    RegistrySpecifier,
    SourceRepoSpecifier,
)

logger = logging.getLogger(__name__)


class InstallOutcome(BaseModel):
    """Result of one install, attributed to the specifier the user typed."""

    model_config = ConfigDict(frozen=True)

    specifier: str
    record: InstalledRecord | None = None
    aspect: Aspect | None = None
    already_installed: bool = False
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None
    error_type: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class _Fetched:
    """Validated content plus what the source said about it."""

    aspect: Aspect
    digest: str
    reported_digest: str | None = None
    warnings: list[str] = field(default_factory=list)


class Installer:
    """Installs aspects into one scope.

    Parameters
    ----------
    client:
        Registry client for network sources.
    store:
        State store of the target scope.
    validator:
        Schema validator; defaults to :class:`AspectSchemaValidator`.
    settings:
        Size limit and source-repo base URL; defaults to ``client.settings``.
    candidates:
        Artifact filenames to try, in priority order.
    """

    def __init__(
        self,
        client: RegistryClient,
        store: StateStore,
        validator: SchemaValidator | None = None,
        settings: AspectsSettings | None = None,
        candidates: tuple[CandidateLoader, ...] = DEFAULT_CANDIDATES,
    ) -> None:
        self.client = client
        self.store = store
        self.validator = validator or AspectSchemaValidator()
        self.settings = settings or client.settings
        self.candidates = candidates

    # -- Public API -------------------------------------------------------

    def install(
        self, spec: InstallSpecifier | str, force: bool = False
    ) -> InstallOutcome:
        """Install one specifier.

        Raises
        ------
        AspectsError
            Any subclass; nothing is recorded when an error is raised.
        """
        if isinstance(spec, str):
            spec = parse_specifier(spec)

        if isinstance(spec, RegistrySpecifier):
            return self._install_registry(spec, force)
        elif isinstance(spec, HashSpecifier):
            return self._install_hash(spec, force)
        elif isinstance(spec, SourceRepoSpecifier):
            return self._install_source_repo(spec, force)
        elif isinstance(spec, LocalSpecifier):
            return self._install_local(spec, force)
        else:
            assert_never(spec)

    def install_many(self, texts: list[str], force: bool = False) -> list[InstallOutcome]:
        """Install each specifier in order; failures are reported, not raised."""
        outcomes = []
        for text in texts:
            try:
                outcomes.append(self.install(text, force=force))
            except AspectsError as exc:
                logger.info("Install of %s failed: %s", text, exc)
                outcomes.append(
                    InstallOutcome(
                        specifier=text, error=str(exc), error_type=type(exc).__name__
                    )
                )
        return outcomes

    def uninstall(self, name: str) -> InstalledRecord | None:
        """Remove *name* from this scope; returns the removed record.

        Stored artifacts are deleted; local sources are left untouched.
        """
        record = self.store.get(name)
        if record is None:
            return None
        self.store.remove(name)
        if record.source is not InstallSource.LOCAL:
            artifact_dir = self.store.artifact_dir(name)
            if artifact_dir.exists():
                shutil.rmtree(artifact_dir)
        logger.info("Removed %s from %s scope", name, self.store.scope.value)
        return record

    def load_installed(self, record: InstalledRecord) -> Aspect | None:
        """The aspect behind *record*, or ``None`` if it is missing or invalid."""
        if record.source is InstallSource.LOCAL and record.local_path:
            path = Path(record.local_path)
        else:
            path = self.store.artifact_dir(record.name)
        try:
            report, _, _ = read_local_aspect(path, self.validator, self.candidates)
        except (AspectsError, OSError) as exc:
            logger.debug("Cannot load %s from %s: %s", record.name, path, exc)
            return None
        return report.aspect

    # -- Registry ---------------------------------------------------------

    def fetch(self, spec: RegistrySpecifier | str) -> Aspect:
        """Resolve and validate a registry aspect without recording it.

        Raises
        ------
        SpecifierParseError
            If *spec* is not a registry name.
        AspectsError
            Any other subclass, as for :meth:`install`.
        """
        if isinstance(spec, str):
            spec = parse_specifier(spec)
        if not isinstance(spec, RegistrySpecifier):
            raise SpecifierParseError(f'"{spec.raw}" is not a registry name')
        _, version, info = self._resolve_registry(spec)
        return self._fetch_registry(spec, version, info).aspect

    def _resolve_registry(
        self, spec: RegistrySpecifier
    ) -> tuple[RegistryIndexEntry, str, IndexVersion]:
        name = spec.qualified_name
        entry = self.client.lookup(name)
        if entry is None:
            raise NotFoundError(f'Aspect "{name}" not found in registry')

        version = self._requested_version(spec) or entry.latest
        info = entry.versions.get(version)
        if info is None:
            available = ", ".join(entry.versions) or "none"
            raise NotFoundError(
                f'Version "{version}" of "{name}" not found. Available: {available}'
            )
        return entry, version, info

    @staticmethod
    def _requested_version(spec: RegistrySpecifier) -> str | None:
        return None if spec.version in (None, "latest") else spec.version

    def _fetch_registry(
        self, spec: RegistrySpecifier, version: str, info: IndexVersion
    ) -> _Fetched:
        name = spec.qualified_name
        reported = info.digest
        digest_warnings: list[str] = []
        if info.url:
            text = self.client.fetch_text(info.url)
            self._check_size(len(text.encode("utf-8")))
            loader = loader_for_path(Path(PurePosixPath(urlparse(info.url).path).name))
            data = loader.decode(text)
        elif info.aspect is not None:
            data = info.aspect
            self._check_size(len(canonical_json_bytes(data)))
        else:
            content = self.client.get_version(name, version)
            data = content.content
            self._check_size(content.size or len(canonical_json_bytes(data)))
            reported = self._reconcile(
                reported, content.digest, f"{name}@{version}", digest_warnings
            )

        fetched = self._validate(data, spec.raw, reported_digest=reported)
        fetched.warnings.extend(digest_warnings)
        if fetched.aspect.name != spec.name:
            raise NameMismatchError(spec.name, fetched.aspect.name)
        return fetched

    def _install_registry(self, spec: RegistrySpecifier, force: bool) -> InstallOutcome:
        entry, version, info = self._resolve_registry(spec)
        requested = self._requested_version(spec)

        if not force:
            existing = self.store.get(spec.name)
            if existing is not None and (requested is None or existing.version == version):
                return self._skip(spec.raw, existing)

        fetched = self._fetch_registry(spec, version, info)
        trust = TrustLevel.VERIFIED if entry.is_verified else TrustLevel.COMMUNITY
        record = InstalledRecord(
            name=spec.name,
            version=fetched.aspect.version,
            content_digest=fetched.digest,
            registry_digest=fetched.reported_digest,
            source=InstallSource.REGISTRY,
            trust=trust,
            publisher=spec.publisher or entry.metadata.publisher,
            specifier=spec.raw,
        )
        return self._commit(spec.raw, record, fetched, write_artifact=True)

    # -- Content hash -----------------------------------------------------

    def _install_hash(self, spec: HashSpecifier, force: bool) -> InstallOutcome:
        content = self.client.get_by_digest(spec.digest)
        data = content.content
        self._check_size(content.size or len(canonical_json_bytes(data)))

        warnings: list[str] = []
        if content.digest and not digests_match(spec.digest, content.digest):
            warnings.append(
                f"Server returned digest {content.digest} for requested {spec.digest}"
            )
        fetched = self._validate(data, spec.raw, reported_digest=content.digest or spec.digest)
        fetched.warnings.extend(warnings)
        if fetched.aspect.name != content.name:
            raise NameMismatchError(content.name, fetched.aspect.name)

        if not force:
            existing = self.store.get(fetched.aspect.name)
            if existing is not None and existing.version == fetched.aspect.version:
                return self._skip(spec.raw, existing, fetched)

        record = InstalledRecord(
            name=fetched.aspect.name,
            version=fetched.aspect.version,
            content_digest=fetched.digest,
            registry_digest=fetched.reported_digest,
            source=InstallSource.REGISTRY,
            trust=TrustLevel.ANONYMOUS,
            specifier=spec.raw,
        )
        return self._commit(spec.raw, record, fetched, write_artifact=True)

    # -- Source repository ------------------------------------------------

    def _install_source_repo(self, spec: SourceRepoSpecifier, force: bool) -> InstallOutcome:
        base = f"{self.settings.source_repo_raw_url.rstrip('/')}/{spec.slug}/{spec.ref}"
        for candidate in self.candidates:
            url = f"{base}/{candidate.filename}"
            try:
                text = self.client.fetch_text(url)
            except NotFoundError:
                logger.debug("No %s at %s", candidate.filename, url)
                continue
            break
        else:
            names = " or ".join(c.filename for c in self.candidates)
            raise NotFoundError(
                f"No {names} found at github:{spec.slug}@{spec.ref}. "
                "Make sure the repository exists and has an aspect file in its root."
            )

        self._check_size(len(text.encode("utf-8")))
        fetched = self._validate(candidate.decode(text), spec.raw)

        if not force:
            existing = self.store.get(fetched.aspect.name)
            if (
                existing is not None
                and existing.source is InstallSource.SOURCE_REPO
                and existing.source_ref == spec.ref
                and digests_match(existing.content_digest, fetched.digest)
            ):
                return self._skip(spec.raw, existing, fetched)

        record = InstalledRecord(
            name=fetched.aspect.name,
            version=fetched.aspect.version,
            content_digest=fetched.digest,
            source=InstallSource.SOURCE_REPO,
            trust=TrustLevel.SOURCE_REPO,
            source_ref=spec.ref,
            specifier=spec.raw,
        )
        return self._commit(spec.raw, record, fetched, write_artifact=True)

    # -- Local path -------------------------------------------------------

    def _install_local(self, spec: LocalSpecifier, force: bool) -> InstallOutcome:
        file_path, loader = find_local_artifact(Path(spec.path), self.candidates)
        text = read_artifact_text(file_path)
        self._check_size(len(text.encode("utf-8")))
        fetched = self._validate(loader.decode(text), str(file_path))

        if not force:
            existing = self.store.get(fetched.aspect.name)
            if (
                existing is not None
                and existing.source is InstallSource.LOCAL
                and existing.local_path == spec.path
                and digests_match(existing.content_digest, fetched.digest)
            ):
                return self._skip(spec.raw, existing, fetched)

        record = InstalledRecord(
            name=fetched.aspect.name,
            version=fetched.aspect.version,
            content_digest=fetched.digest,
            source=InstallSource.LOCAL,
            trust=TrustLevel.LOCAL,
            local_path=spec.path,
            specifier=spec.raw,
        )
        return self._commit(spec.raw, record, fetched, write_artifact=False)

    # -- Shared tail ------------------------------------------------------

    def _check_size(self, size: int) -> None:
        limit = self.settings.max_artifact_size_bytes
        if size > limit:
            raise SizeLimitExceededError(size, limit)

    def _validate(
        self, data: Any, source: str, reported_digest: str | None = None
    ) -> _Fetched:
        report = validate_or_raise(self.validator, data, source=source)
        for warning in report.warnings:
            logger.warning("%s: %s", source, warning)
        return _Fetched(
            aspect=report.aspect,
            digest=content_digest(report.aspect),
            reported_digest=reported_digest,
            warnings=list(report.warnings),
        )

    @staticmethod
    def _reconcile(
        listed: str | None, served: str | None, label: str, warnings: list[str]
    ) -> str | None:
        """Prefer the digest served with the content; warn if the listing disagrees."""
        if listed and served and not digests_match(listed, served):
            message = f"Digest mismatch for {label}: index lists {listed}, server returned {served}"
            logger.warning(message)
            warnings.append(message)
        return served or listed

    def _skip(
        self, raw: str, existing: InstalledRecord, fetched: _Fetched | None = None
    ) -> InstallOutcome:
        logger.info("%s already installed (%s)", existing.name, existing.version)
        aspect = fetched.aspect if fetched is not None else self.load_installed(existing)
        return InstallOutcome(
            specifier=raw,
            record=existing,
            aspect=aspect,
            already_installed=True,
            warnings=fetched.warnings if fetched is not None else [],
        )

    def _commit(
        self, raw: str, record: InstalledRecord, fetched: _Fetched, write_artifact: bool
    ) -> InstallOutcome:
        if write_artifact:
            path = self.store.artifact_path(record.name)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps(fetched.aspect.to_document(), indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        self.store.upsert(record)
        logger.info("Installed %s@%s (%s)", record.name, record.version, record.source.value)
        return InstallOutcome(
            specifier=raw,
            record=record,
            aspect=fetched.aspect,
            warnings=fetched.warnings,
        )
