"""Artifact loading — ordered candidate filenames and their decoders.

``aspect.json`` is canonical and is the only file new installs write.  The
legacy ``aspect.yaml`` is still read so older aspect directories and source
repositories keep working.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from aspects.core.errors import (
    ArtifactReadError,
    AspectsError,
    NotFoundError,
    SchemaValidationError,
)
from aspects.core.hasher import content_digest
from aspects.core.schema import SchemaValidator, ValidationReport, validate_or_raise
from aspects.models.aspect import ASPECT_FILENAME, LEGACY_ASPECT_FILENAME

logger = logging.getLogger(__name__)


def decode_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise SchemaValidationError([f"Invalid JSON: {exc}"]) from exc


def decode_yaml(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SchemaValidationError([f"Invalid YAML: {exc}"]) from exc


@dataclass(frozen=True)
class CandidateLoader:
    """One filename to try and how to decode it."""

    filename: str
    decode: Callable[[str], Any]


# Priority order: first match wins.
DEFAULT_CANDIDATES: tuple[CandidateLoader, ...] = (
    CandidateLoader(ASPECT_FILENAME, decode_json),
    CandidateLoader(LEGACY_ASPECT_FILENAME, decode_yaml),
)


def loader_for_path(path: Path) -> CandidateLoader:
    """Pick the decoder for an explicitly named file by its suffix."""
    if path.suffix.lower() in (".yaml", ".yml"):
        return CandidateLoader(path.name, decode_yaml)
    return CandidateLoader(path.name, decode_json)


def find_local_artifact(
    path: Path, candidates: tuple[CandidateLoader, ...] = DEFAULT_CANDIDATES
) -> tuple[Path, CandidateLoader]:
    """Resolve a local path to an artifact file and its loader.

    A directory is searched for each candidate filename in order; a file is
    used directly.

    Raises
    ------
    NotFoundError
        If the path does not exist or a directory holds no candidate file.
    ArtifactReadError
        If the path cannot be inspected (permissions, broken mounts).
    """
    try:
        if not path.exists():
            raise NotFoundError(f"Path not found: {path}", status_code=0)
        if path.is_dir():
            for candidate in candidates:
                file_path = path / candidate.filename
                if file_path.is_file():
                    return file_path, candidate
            names = ", ".join(c.filename for c in candidates)
            raise NotFoundError(f"No aspect file ({names}) in {path}", status_code=0)
    except OSError as exc:
        raise ArtifactReadError(f"Cannot inspect {path}: {exc}") from exc
    return path, loader_for_path(path)


def read_artifact_text(file_path: Path) -> str:
    """Read an artifact file as UTF-8.

    Raises
    ------
    SchemaValidationError
        If the bytes are not valid UTF-8.
    ArtifactReadError
        If the file cannot be read at all.
    """
    try:
        return file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise SchemaValidationError(
            [f"root: file is not valid UTF-8 ({exc.reason} at byte {exc.start})"],
            source=str(file_path),
        ) from exc
    except OSError as exc:
        raise ArtifactReadError(f"Cannot read {file_path}: {exc}") from exc


def read_local_aspect(
    path: Path,
    validator: SchemaValidator,
    candidates: tuple[CandidateLoader, ...] = DEFAULT_CANDIDATES,
) -> tuple[ValidationReport, str, Path]:
    """Load and validate a local aspect.

    Returns the validation report, the raw text and the file actually read.
    """
    file_path, loader = find_local_artifact(path, candidates)
    text = read_artifact_text(file_path)
    report = validate_or_raise(validator, loader.decode(text), source=str(file_path))
    return report, text, file_path


def local_digest(
    path: Path,
    validator: SchemaValidator,
    candidates: tuple[CandidateLoader, ...] = DEFAULT_CANDIDATES,
) -> str | None:
    """Current digest of the aspect at *path*, or ``None`` if it is gone or invalid."""
    try:
        report, _, _ = read_local_aspect(path, validator, candidates)
    except (AspectsError, OSError, ValueError) as exc:
        logger.debug("Cannot recompute digest for %s: %s", path, exc)
        return None
    return content_digest(report.aspect)
