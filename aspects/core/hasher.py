"""Canonical hashing helpers for content addressing and drift detection.

An aspect's identity is the SHA-256 of its canonical JSON form, so the
digest does not depend on key order, whitespace, or whether the aspect was
authored as JSON or as legacy YAML.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from pydantic import BaseModel


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def content_digest(aspect: BaseModel | dict[str, Any]) -> str:
    """Digest of a validated aspect (or its plain-dict form).

    Models are dumped in JSON mode by alias with ``None`` fields dropped, so
    an omitted optional field and an explicit ``null`` hash identically.
    """
    if isinstance(aspect, BaseModel):
        payload = aspect.model_dump(mode="json", by_alias=True, exclude_none=True)
    else:
        payload = aspect
    return sha256_hex(canonical_json_bytes(payload))


def digests_match(expected: str, actual: str) -> bool:
    """Compare digests ignoring case and an optional ``<algo>:`` prefix."""

    def _bare(value: str) -> str:
        return value.split(":", 1)[-1].strip().lower()

    return _bare(expected) == _bare(actual)
