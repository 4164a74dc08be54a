"""Credential store — the bearer token used for authenticated registry calls.

Tokens are scope-independent and live in ``<home>/auth.json``.  Obtaining a
token (the device-authorization flow) happens elsewhere; this module only
stores, expires, and clears it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)

AUTH_FILENAME = "auth.json"


class AuthTokens(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime
    username: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialStore:
    """File-backed token storage with expiry checks.

    Parameters
    ----------
    home:
        The global aspects directory.
    clock:
        Returns the current UTC time; injectable for tests.
    """

    def __init__(self, home: Path, clock: Callable[[], datetime] | None = None) -> None:
        self.path = Path(home) / AUTH_FILENAME
        self._clock = clock or _utcnow

    def load(self) -> AuthTokens | None:
        if not self.path.exists():
            return None
        try:
            return AuthTokens.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (ValidationError, UnicodeDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable credentials at %s: %s", self.path, exc)
            return None

    def save(self, tokens: AuthTokens) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.loads(tokens.model_dump_json(exclude_none=True))
        self.path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        self.path.chmod(0o600)

    def clear(self) -> bool:
        if not self.path.exists():
            return False
        self.path.unlink()
        return True

    def is_expired(self, tokens: AuthTokens) -> bool:
        expires_at = tokens.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= self._clock()

    def access_token(self) -> str | None:
        """The current token, or ``None`` if missing or expired."""
        tokens = self.load()
        if tokens is None or self.is_expired(tokens):
            return None
        return tokens.access_token
