"""Specifier parser — turns a free-form string into an install specifier.

Grammar, checked in precedence order:

1. ``hash:<digest>`` / ``blake3:<digest>`` — content-addressed lookup.
2. ``github:owner/repo[@ref]`` — a hosted source tree.
3. A leading ``.`` or ``/`` — a local path, made absolute at parse time.
4. ``[@][publisher/]name[@version]`` — a registry name.

Examples
--------
>>> spec = parse_specifier("morphist/alaric@2.0.0")
>>> (spec.publisher, spec.name, spec.version)
('morphist', 'alaric', '2.0.0')
"""

from __future__ import annotations

import os

from aspects.core.errors import SpecifierParseError
from aspects.models.specifiers import (
    DEFAULT_SOURCE_REF,
    MIN_DIGEST_LENGTH,
    HashSpecifier,
    InstallSpecifier,
    LocalSpecifier,
    RegistrySpecifier,
    SourceRepoSpecifier,
)

HASH_PREFIXES = ("hash:", "blake3:")
SOURCE_REPO_PREFIX = "github:"


def parse_specifier(text: str, cwd: str | None = None) -> InstallSpecifier:
    """Parse *text* into one of the specifier variants.

    Parameters
    ----------
    text:
        The user's input.
    cwd:
        Directory relative local paths are resolved against.  Defaults to the
        process working directory at call time.

    Raises
    ------
    SpecifierParseError
        If *text* does not match any form.  No partial result is returned.
    """
    raw = text.strip()
    if not raw:
        raise SpecifierParseError("Empty specifier")

    for prefix in HASH_PREFIXES:
        if raw.startswith(prefix):
            return _parse_hash(raw, raw[len(prefix):])

    if raw.startswith(SOURCE_REPO_PREFIX):
        return _parse_source_repo(raw, raw[len(SOURCE_REPO_PREFIX):])

    if raw.startswith((".", "/")):
        base = cwd if cwd is not None else os.getcwd()
        return LocalSpecifier(raw=raw, path=os.path.abspath(os.path.join(base, raw)))

    return _parse_registry(raw)


def _parse_hash(raw: str, digest: str) -> HashSpecifier:
    digest = digest.strip()
    if len(digest) < MIN_DIGEST_LENGTH:
        raise SpecifierParseError(
            f"Invalid hash {digest!r}: must be at least {MIN_DIGEST_LENGTH} characters"
        )
    return HashSpecifier(raw=raw, digest=digest)


def _parse_source_repo(raw: str, rest: str) -> SourceRepoSpecifier:
    path, sep, ref = rest.partition("@")
    if sep and not ref:
        raise SpecifierParseError(f"Invalid source reference {raw!r}: empty ref after '@'")
    parts = path.split("/")
    if len(parts) != 2 or not all(parts):
        raise SpecifierParseError(
            f"Invalid source reference {raw!r}: expected github:owner/repo[@ref]"
        )
    owner, repo = parts
    return SourceRepoSpecifier(raw=raw, owner=owner, repo=repo, ref=ref or DEFAULT_SOURCE_REF)


def _parse_registry(raw: str) -> RegistrySpecifier:
    # One leading "@" is the scoped-name convention, not a version delimiter.
    body = raw[1:] if raw.startswith("@") else raw

    version: str | None = None
    at = body.rfind("@")
    if at != -1:
        version = body[at + 1:]
        body = body[:at]
        if not version:
            raise SpecifierParseError(f"Invalid specifier {raw!r}: empty version after '@'")

    publisher: str | None = None
    if "/" in body:
        publisher, _, body = body.partition("/")
        if not publisher:
            raise SpecifierParseError(f"Invalid specifier {raw!r}: empty publisher")

    if not body or "/" in body or "@" in body:
        raise SpecifierParseError(f"Invalid specifier {raw!r}: expected [publisher/]name[@version]")

    return RegistrySpecifier(raw=raw, name=body, publisher=publisher, version=version)
