"""Error taxonomy for the aspects engine.

Every error raised by the core derives from :class:`AspectsError`, so callers
(the CLI, batch installs) can catch one type and still report precisely.

Retry policy by type:

* :class:`SpecifierParseError`, :class:`SchemaValidationError`,
  :class:`NameMismatchError`, :class:`SizeLimitExceededError` are
  deterministic for a given input and are never retried.
* :class:`NetworkError` is only raised after the registry client has spent
  its retry budget.
* :class:`AuthError`, :class:`NotFoundError`, :class:`ConflictError` are
  definitive answers from the server and are never retried.
"""

from __future__ import annotations

from typing import Any

# Server error codes that denote a conflict with existing registry state.
CONFLICT_CODES = frozenset(
    {"version_exists", "name_taken", "already_exists", "handle_taken", "handle_reserved"}
)


class AspectsError(RuntimeError):
    """Base class for all aspects errors."""


class SpecifierParseError(AspectsError, ValueError):
    """Raised when an install specifier string is malformed."""


# Compatibility alias used by callers that think in terms of "invalid input".
InvalidSpecifierError = SpecifierParseError


class ApiError(AspectsError):
    """Raised when a registry request fails.

    Parameters
    ----------
    message:
        Human-readable description (the server's ``message`` when present).
    status_code:
        HTTP status, or ``0`` for transport-level failures.
    error_code:
        The server's machine-readable ``error`` field, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(status_code={self.status_code}, "
            f"error_code={self.error_code!r}, message={self.message!r})"
        )


class NotFoundError(ApiError):
    """Raised when an aspect, version, or digest does not exist."""

    def __init__(
        self, message: str, status_code: int = 404, error_code: str | None = "not_found"
    ) -> None:
        super().__init__(message, status_code, error_code)


class AuthError(ApiError):
    """Raised on ``unauthorized`` / ``forbidden`` responses or a missing token."""


class ConflictError(ApiError):
    """Raised when a publish collides with existing registry state."""


class NetworkError(ApiError):
    """Raised when the registry is unreachable after exhausting retries."""


class SchemaValidationError(AspectsError):
    """Raised when an aspect fails schema validation.

    All field errors are aggregated into :attr:`errors` rather than stopping
    at the first one.
    """

    def __init__(self, errors: list[str], source: str = "") -> None:
        self.errors = list(errors)
        self.source = source
        where = f" in {source}" if source else ""
        detail = "; ".join(self.errors)
        super().__init__(f"Invalid aspect{where}: {detail}")


class NameMismatchError(AspectsError):
    """Raised when a fetched aspect declares a different name than requested."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f'Aspect name mismatch: expected "{expected}", got "{actual}"')


class SizeLimitExceededError(AspectsError):
    """Raised when aspect content exceeds the configured size limit."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Aspect is {size} bytes; the limit is {limit} bytes")


class StateStoreError(AspectsError):
    """Raised when a state document cannot be read or parsed."""


class ArtifactReadError(AspectsError):
    """Raised when a local aspect file exists but cannot be read."""


def api_error_from_response(status_code: int, body: Any, fallback: str = "") -> ApiError:
    """Convert a non-retryable HTTP failure into the matching typed error.

    *body* is the decoded JSON error body (``{"error": ..., "message": ...}``)
    or ``None`` when the response was not JSON.
    """
    error_code: str | None = None
    message = fallback or f"HTTP {status_code}"
    if isinstance(body, dict):
        error_code = body.get("error") or None
        message = body.get("message") or error_code or message

    if status_code == 404 or error_code == "not_found":
        return NotFoundError(message, status_code, error_code or "not_found")
    if status_code in (401, 403) or error_code in ("unauthorized", "forbidden"):
        return AuthError(message, status_code, error_code)
    if status_code == 409 or error_code in CONFLICT_CODES:
        return ConflictError(message, status_code, error_code)
    return ApiError(message, status_code, error_code)
