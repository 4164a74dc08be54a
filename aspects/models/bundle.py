"""Aspect bundles: several aspects shipped as one JSON document."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from aspects.models.aspect import Aspect

BUNDLE_VERSION = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AspectBundle(BaseModel):
    """``{"bundleVersion": 1, "createdAt": ..., "aspects": [...]}``.

    Aspects keep their order and are unique by name.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    bundle_version: int = BUNDLE_VERSION
    created_at: datetime = Field(default_factory=_utcnow)
    aspects: tuple[Aspect, ...] = ()

    @property
    def names(self) -> list[str]:
        return [aspect.name for aspect in self.aspects]

    def with_aspects(self, aspects: list[Aspect]) -> AspectBundle:
        """A copy with *aspects* appended, skipping names already present."""
        merged = list(self.aspects)
        seen = set(self.names)
        for aspect in aspects:
            if aspect.name not in seen:
                seen.add(aspect.name)
                merged.append(aspect)
        return self.model_copy(update={"aspects": tuple(merged)})

    def to_document(self) -> dict:
        return {
            "bundleVersion": self.bundle_version,
            "createdAt": self.created_at.isoformat().replace("+00:00", "Z"),
            "aspects": [aspect.to_document() for aspect in self.aspects],
        }
