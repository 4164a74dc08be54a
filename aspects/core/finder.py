"""Finder — filter installed and published aspects by metadata.

A :class:`FindQuery` is a list of clauses, each naming a field, a value and
how it combines:

* ``and`` clauses must all match;
* ``or`` clauses need at least one match (when any are present);
* ``not`` clauses exclude every aspect they match.

Queries come either from command-line flags or from the inline syntax
understood by :func:`parse_query`::

    wizard tag:fantasy --or tag:mentor --not category:horror --deep

Matching is case-insensitive.  ``name`` also matches the display name,
``category`` must match exactly, the other fields match on substrings.
``--deep`` extends ``all`` to the prompt, the voice style hints and the
mode descriptions.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, ConfigDict

from aspects.core.errors import AspectsError
from aspects.core.installer import Installer
from aspects.models.aspect import Aspect
from aspects.models.records import Scope
from aspects.models.registry import RegistryIndex, RegistryIndexEntry

logger = logging.getLogger(__name__)


class QueryParseError(AspectsError, ValueError):
    """Raised when a query names an unknown field or is malformed."""


class QueryField(str, Enum):
    NAME = "name"
    TAG = "tag"
    CATEGORY = "category"
    PUBLISHER = "publisher"
    ALL = "all"


class QueryOperator(str, Enum):
    AND = "and"
    OR = "or"
    NOT = "not"


class QueryClause(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: QueryField
    value: str
    operator: QueryOperator = QueryOperator.AND


class FindCandidate(BaseModel):
    """The searchable view of one aspect, installed or published."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str = ""
    tagline: str = ""
    version: str = ""
    category: str | None = None
    tags: tuple[str, ...] = ()
    publisher: str | None = None
    author: str | None = None
    deep_text: tuple[str, ...] = ()

    @classmethod
    def from_aspect(cls, aspect: Aspect) -> FindCandidate:
        deep = [aspect.prompt]
        if aspect.voice_hints is not None and aspect.voice_hints.style_hints:
            deep.append(aspect.voice_hints.style_hints)
        if aspect.modes:
            deep.extend(mode.description for mode in aspect.modes.values())
        return cls(
            name=aspect.name,
            display_name=aspect.display_name,
            tagline=aspect.tagline,
            version=aspect.version,
            category=aspect.category,
            tags=tuple(aspect.tags or ()),
            publisher=aspect.publisher,
            author=aspect.author,
            deep_text=tuple(deep),
        )

    @classmethod
    def from_index_entry(cls, name: str, entry: RegistryIndexEntry) -> FindCandidate:
        """Index entries carry metadata only, so deep matching sees nothing extra."""
        meta = entry.metadata
        return cls(
            name=name,
            display_name=meta.display_name or name,
            tagline=meta.tagline,
            version=entry.latest,
            category=meta.category,
            tags=tuple(meta.tags or ()),
            publisher=meta.publisher,
        )


def field_matches(
    candidate: FindCandidate, field: QueryField, value: str, deep: bool = False
) -> bool:
    q = value.lower()

    if field is QueryField.NAME:
        return q in candidate.name.lower() or q in candidate.display_name.lower()
    if field is QueryField.TAG:
        return any(q in tag.lower() for tag in candidate.tags)
    if field is QueryField.CATEGORY:
        return (candidate.category or "").lower() == q
    if field is QueryField.PUBLISHER:
        return q in (candidate.publisher or "").lower()

    common = [
        candidate.name,
        candidate.display_name,
        candidate.tagline,
        candidate.category or "",
        candidate.publisher or "",
        candidate.author or "",
        *candidate.tags,
    ]
    if deep:
        common.extend(candidate.deep_text)
    return any(q in text.lower() for text in common)


class FindQuery(BaseModel):
    """A parsed query; see the module docstring for the semantics."""

    model_config = ConfigDict(frozen=True)

    clauses: tuple[QueryClause, ...] = ()
    deep: bool = False

    @property
    def has_criteria(self) -> bool:
        return any(c.operator is not QueryOperator.NOT for c in self.clauses)

    def matches(self, candidate: FindCandidate) -> bool:
        any_or = False
        or_hit = False
        for clause in self.clauses:
            hit = field_matches(candidate, clause.field, clause.value, self.deep)
            if clause.operator is QueryOperator.NOT:
                if hit:
                    return False
            elif clause.operator is QueryOperator.OR:
                any_or = True
                or_hit = or_hit or hit
            elif not hit:
                return False
        return or_hit or not any_or


def _field(name: str) -> QueryField:
    try:
        return QueryField(name.lower())
    except ValueError:
        known = ", ".join(f.value for f in QueryField)
        raise QueryParseError(f'Unknown query field "{name}" (expected one of: {known})') from None


def parse_clause(text: str, operator: QueryOperator = QueryOperator.AND) -> QueryClause:
    """``field:value`` or a bare word (a name match)."""
    field, sep, value = text.partition(":")
    if not sep:
        return QueryClause(field=QueryField.NAME, value=text, operator=operator)
    if not field or not value:
        raise QueryParseError(f'Malformed query clause "{text}" (expected field:value)')
    return QueryClause(field=_field(field), value=value, operator=operator)


def parse_query(text: str) -> FindQuery:
    """Parse the inline query syntax.

    ``--or`` and ``--not`` apply to the clause that follows them; ``--deep``
    may appear anywhere.

    Raises
    ------
    QueryParseError
        On unknown fields, ``field:`` without a value, or a dangling operator.
    """
    clauses: list[QueryClause] = []
    deep = False
    pending = QueryOperator.AND
    dangling: str | None = None
    for word in text.split():
        if word == "--deep":
            deep = True
        elif word in ("--or", "--not"):
            pending = QueryOperator(word[2:])
            dangling = word
        else:
            clauses.append(parse_clause(word, pending))
            pending = QueryOperator.AND
            dangling = None
    if dangling is not None:
        raise QueryParseError(f'"{dangling}" must be followed by a clause')
    return FindQuery(clauses=tuple(clauses), deep=deep)


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class FindHit(BaseModel):
    model_config = ConfigDict(frozen=True)

    candidate: FindCandidate
    source: str
    installed: bool = False
    trust: str | None = None
    scope: Scope | None = None


def installed_aspects(installers: Iterable[Installer]) -> list[tuple[Scope, Aspect]]:
    """Every loadable installed aspect, first scope wins per name.

    Records whose content is gone or invalid are skipped.
    """
    seen: set[str] = set()
    found: list[tuple[Scope, Aspect]] = []
    for installer in installers:
        for record in installer.store.list():
            if record.name in seen:
                continue
            aspect = installer.load_installed(record)
            if aspect is None:
                logger.debug("Skipping unloadable install %s", record.name)
                continue
            seen.add(record.name)
            found.append((installer.store.scope, aspect))
    return found


def find_aspects(
    query: FindQuery,
    local: list[tuple[Scope, Aspect]] | None = None,
    index: RegistryIndex | None = None,
    include_local: bool = True,
) -> list[FindHit]:
    """Match *query* against the registry index and installed aspects.

    Registry hits come first.  An installed aspect already reported from the
    registry is not listed again; its hit is marked ``installed``.  With
    *include_local* false, *local* only drives that marker.
    """
    installed_names = {aspect.name for _, aspect in local or []}
    hits: list[FindHit] = []
    registry_names: set[str] = set()

    if index is not None:
        for name, entry in sorted(index.aspects.items()):
            candidate = FindCandidate.from_index_entry(name, entry)
            if query.matches(candidate):
                registry_names.add(name)
                hits.append(
                    FindHit(
                        candidate=candidate,
                        source="registry",
                        installed=name in installed_names,
                        trust=entry.metadata.trust,
                    )
                )

    for scope, aspect in local or []:
        if not include_local or aspect.name in registry_names:
            continue
        candidate = FindCandidate.from_aspect(aspect)
        if query.matches(candidate):
            hits.append(FindHit(candidate=candidate, source="local", installed=True, scope=scope))
    return hits
