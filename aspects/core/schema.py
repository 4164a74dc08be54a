"""Schema validation for aspect documents.

The installer only depends on the :class:`SchemaValidator` protocol: give it
a decoded document, get back a :class:`ValidationReport`.  The default
implementation validates against :class:`~aspects.models.aspect.Aspect`.
"""

from __future__ import annotations

import re
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from aspects.core.errors import SchemaValidationError
from aspects.models.aspect import Aspect


class ValidationReport(BaseModel):
    """Outcome of validating one document.

    ``errors`` holds every field error as ``"<path>: <message>"``; an empty
    list means ``aspect`` is set.
    """

    model_config = ConfigDict(frozen=True)

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    aspect: Aspect | None = None

    @property
    def valid(self) -> bool:
        return not self.errors and self.aspect is not None


class SchemaValidator(Protocol):
    def validate(self, data: Any) -> ValidationReport: ...


class AspectSchemaValidator:
    """Validates documents with the pydantic :class:`Aspect` model."""

    def validate(self, data: Any) -> ValidationReport:
        if not isinstance(data, dict):
            return ValidationReport(errors=["root: aspect must be an object"])

        warnings: list[str] = []
        if "schemaVersion" not in data and "schema_version" not in data:
            warnings.append("Missing schemaVersion, defaulting to 1")
        if "version" not in data:
            warnings.append('Missing version, defaulting to "0.0.0"')

        try:
            aspect = Aspect.model_validate(data)
        except ValidationError as exc:
            return ValidationReport(errors=format_errors(exc), warnings=warnings)
        return ValidationReport(aspect=aspect, warnings=warnings)


def format_errors(exc: ValidationError) -> list[str]:
    """Render pydantic errors as ``"a.b: message"`` lines."""
    lines = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"]) or "root"
        lines.append(f"{path}: {err['msg']}")
    return lines


def validate_or_raise(
    validator: SchemaValidator, data: Any, source: str = ""
) -> ValidationReport:
    """Validate and raise :class:`SchemaValidationError` with all errors."""
    report = validator.validate(data)
    if not report.valid:
        raise SchemaValidationError(report.errors or ["root: invalid aspect"], source=source)
    return report


# ---------------------------------------------------------------------------
# Authoring checks (used by ``aspects validate``)
# ---------------------------------------------------------------------------

class Check(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    passed: bool
    message: str | None = None


NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")
SEMVER_PATTERN = re.compile(r"^\d+\.\d+\.\d+")
MIN_PROMPT_LENGTH = 100

SUSPICIOUS_PATTERNS = [
    (re.compile(r"ignore\s+(all\s+)?previous\s+instructions", re.I), "Ignore previous instructions"),
    (re.compile(r"you\s+are\s+now\s+DAN", re.I), "DAN jailbreak"),
    (re.compile(r"forget\s+(everything|all|your)\s+(you|instructions)", re.I), "Forget instructions"),
    (re.compile(r"password|api[_\s]?key|secret[_\s]?key|credentials", re.I), "Credential request"),
    (re.compile(r"credit\s*card|ssn|social\s*security", re.I), "Sensitive data request"),
    (re.compile(r"\[system\]|\[admin\]|\[root\]", re.I), "System role injection"),
]


def basic_checks(aspect: Aspect) -> list[Check]:
    return [
        Check(label="Required fields present", passed=True),
        Check(label="Schema version valid", passed=aspect.schema_version == 1),
        Check(label="Prompt not empty", passed=bool(aspect.prompt.strip())),
    ]


def strict_checks(aspect: Aspect) -> list[Check]:
    """Publishing conventions: name format, semver, prompt length, voice hints."""
    name_ok = bool(NAME_PATTERN.match(aspect.name))
    version_ok = bool(SEMVER_PATTERN.match(aspect.version))
    prompt_ok = len(aspect.prompt) >= MIN_PROMPT_LENGTH
    return [
        Check(
            label="Name format (lowercase, hyphens)",
            passed=name_ok,
            message=None if name_ok else f'Got: "{aspect.name}"',
        ),
        Check(
            label="Semver version format",
            passed=version_ok,
            message=None if version_ok else f'Got: "{aspect.version}"',
        ),
        Check(
            label=f"Prompt length (min {MIN_PROMPT_LENGTH} chars)",
            passed=prompt_ok,
            message=None if prompt_ok else f"Got: {len(aspect.prompt)} chars",
        ),
        Check(label="Voice hints present", passed=aspect.voice_hints is not None),
    ]


def security_checks(aspect: Aspect) -> list[Check]:
    """Flag prompt-injection and credential-harvesting patterns in the prompt."""
    checks = []
    for pattern, name in SUSPICIOUS_PATTERNS:
        found = bool(pattern.search(aspect.prompt))
        checks.append(
            Check(
                label=f'No "{name}" pattern',
                passed=not found,
                message="Suspicious pattern detected" if found else None,
            )
        )
    return checks
