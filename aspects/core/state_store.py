"""Per-scope state store — the JSON record of what is installed.

Each scope directory holds a ``config.json`` state document and an
``aspects/<name>/aspect.json`` artifact per registry, hash, or source-repo
install.  Local installs are referenced in place and never copied.

Read-modify-write is unlocked: one process, one user.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from aspects.core.artifact_loader import local_digest
from aspects.core.errors import StateStoreError
from aspects.core.hasher import digests_match
from aspects.core.schema import SchemaValidator
from aspects.core.scope import ARTIFACTS_DIR_NAME, STATE_FILENAME
from aspects.models.aspect import ASPECT_FILENAME
from aspects.models.records import (
    InstalledListing,
    InstalledRecord,
    InstallSource,
    Scope,
    StateDocument,
)

logger = logging.getLogger(__name__)


class StateStore:
    """Reads and writes one scope's state document.

    Parameters
    ----------
    scope:
        The scope this store represents.
    root:
        The scope directory (``~/.aspects`` or ``<project>/.aspects``).
    """

    def __init__(self, scope: Scope, root: Path) -> None:
        self.scope = scope
        self.root = Path(root)
        self.state_path = self.root / STATE_FILENAME

    # -- Document ---------------------------------------------------------

    def read(self) -> StateDocument:
        """Load the document, materializing and persisting a default if missing.

        Raises
        ------
        StateStoreError
            If the file exists but is not a valid state document.
        """
        if not self.state_path.exists():
            doc = StateDocument()
            self.write(doc)
            return doc
        try:
            raw = json.loads(self.state_path.read_text(encoding="utf-8"))
            return StateDocument.model_validate(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as exc:
            raise StateStoreError(f"Corrupt state file {self.state_path}: {exc}") from exc
        except OSError as exc:
            raise StateStoreError(f"Cannot read state file {self.state_path}: {exc}") from exc

    def write(self, doc: StateDocument) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        payload = json.loads(doc.model_dump_json(exclude_none=True))
        self.state_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")

    # -- Records ----------------------------------------------------------

    def get(self, name: str) -> InstalledRecord | None:
        return self.read().installed.get(name)

    def list(self) -> list[InstalledRecord]:
        return sorted(self.read().installed.values(), key=lambda r: r.name)

    def upsert(self, record: InstalledRecord) -> None:
        doc = self.read()
        installed = dict(doc.installed)
        installed[record.name] = record
        self.write(doc.model_copy(update={"installed": installed}))
        logger.debug("Recorded %s@%s in %s scope", record.name, record.version, self.scope.value)

    def remove(self, name: str) -> bool:
        """Drop *name*; returns ``False`` if it was not installed."""
        doc = self.read()
        if name not in doc.installed:
            return False
        installed = {k: v for k, v in doc.installed.items() if k != name}
        self.write(doc.model_copy(update={"installed": installed}))
        return True

    # -- Settings ---------------------------------------------------------

    def get_setting(self, key: str, default: Any = None) -> Any:
        return self.read().settings.get(key, default)

    def set_setting(self, key: str, value: Any) -> None:
        doc = self.read()
        settings = dict(doc.settings)
        if value is None:
            settings.pop(key, None)
        else:
            settings[key] = value
        self.write(doc.model_copy(update={"settings": settings}))

    # -- Artifacts --------------------------------------------------------

    def artifact_dir(self, name: str) -> Path:
        """Directory holding *name*'s stored artifact.

        Raises
        ------
        StateStoreError
            If *name* is not a single safe path component.
        """
        if name in ("", ".", "..") or "/" in name or "\\" in name or "\0" in name:
            raise StateStoreError(f"Refusing to store aspect under unsafe name {name!r}")
        return self.root / ARTIFACTS_DIR_NAME / name

    def artifact_path(self, name: str) -> Path:
        return self.artifact_dir(name) / ASPECT_FILENAME


# ---------------------------------------------------------------------------
# Cross-scope listing
# ---------------------------------------------------------------------------

def is_modified(record: InstalledRecord, validator: SchemaValidator) -> bool:
    """Whether a local install's referenced content drifted from its record.

    Only local installs can drift; a missing or unreadable source counts as
    modified.
    """
    if record.source is not InstallSource.LOCAL or not record.local_path:
        return False
    current = local_digest(Path(record.local_path), validator)
    return current is None or not digests_match(record.content_digest, current)


def aggregate_installed(
    stores: Iterable[StateStore],
    validator: SchemaValidator | None = None,
) -> list[InstalledListing]:
    """Merge records from several scopes for display.

    Records with the same ``content_digest`` collapse into one listing that
    carries every scope, project first.  When *validator* is given, local
    installs are checked for drift.
    """
    grouped: dict[str, list[tuple[Scope, InstalledRecord]]] = {}
    for store in stores:
        for record in store.list():
            key = f"{record.name}\0{record.content_digest}"
            grouped.setdefault(key, []).append((store.scope, record))

    listings = []
    for entries in grouped.values():
        entries.sort(key=lambda item: item[0].rank)
        scopes = tuple(dict.fromkeys(scope for scope, _ in entries))
        record = entries[0][1]
        modified = is_modified(record, validator) if validator is not None else False
        listings.append(InstalledListing(record=record, scopes=scopes, modified=modified))

    listings.sort(key=lambda listing: (listing.scopes[0].rank, listing.name))
    return listings
