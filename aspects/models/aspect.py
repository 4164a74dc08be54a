"""The aspect artifact schema.

Aspects are authored in camelCase JSON (``displayName``, ``voiceHints``);
the models expose snake_case attributes and accept either spelling.  Unknown
top-level keys are preserved so a newer aspect survives a round trip through
an older client.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ASPECT_FILENAME = "aspect.json"
LEGACY_ASPECT_FILENAME = "aspect.yaml"
CURRENT_SCHEMA_VERSION = 1


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class VoiceSpeed(str, Enum):
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


class VoiceHints(_CamelModel):
    speed: VoiceSpeed | None = None
    emotions: list[str] | None = None
    style_hints: str | None = None


class AspectMode(_CamelModel):
    description: str
    auto_narration: bool | None = None


class RecommendedVoice(_CamelModel):
    provider: str
    voice_id: str


class RecommendedModel(_CamelModel):
    provider: str
    model_id: str


class VoiceResource(_CamelModel):
    recommended: RecommendedVoice | None = None


class ModelResource(_CamelModel):
    recommended: RecommendedModel | None = None


class AspectResources(_CamelModel):
    voice: VoiceResource | None = None
    model: ModelResource | None = None
    skills: list[str] | None = None


class Aspect(_CamelModel):
    """A validated aspect.

    ``name``, ``display_name``, ``tagline`` and ``prompt`` are required and
    non-empty.  ``schema_version`` and ``version`` fall back to defaults; the
    validator reports their absence as a warning.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    schema_version: int = CURRENT_SCHEMA_VERSION
    name: str = Field(min_length=1)
    publisher: str | None = None
    version: str = "0.0.0"
    display_name: str = Field(min_length=1)
    tagline: str = Field(min_length=1)
    category: str | None = None
    tags: list[str] | None = None
    icon: str | None = None
    author: str | None = None
    license: str | None = None
    voice_hints: VoiceHints | None = None
    modes: dict[str, AspectMode] | None = None
    resources: AspectResources | None = None
    prompt: str = Field(min_length=1)

    def to_document(self) -> dict:
        """The camelCase JSON document written to ``aspect.json``."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
