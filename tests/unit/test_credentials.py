"""Tests for the token store."""

from __future__ import annotations

import stat
from datetime import datetime, timedelta, timezone
from pathlib import Path

from aspects.core.credentials import AuthTokens, CredentialStore

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def _tokens(expires_in: timedelta = timedelta(hours=1)) -> AuthTokens:
    return AuthTokens(access_token="tok-123", expires_at=NOW + expires_in, username="ana")


class TestCredentialStore:
    def test_missing_file(self, home: Path):
        store = CredentialStore(home, clock=lambda: NOW)
        assert store.load() is None
        assert store.access_token() is None

    def test_save_and_load(self, home: Path):
        store = CredentialStore(home, clock=lambda: NOW)
        store.save(_tokens())
        assert store.load() == _tokens()
        assert store.access_token() == "tok-123"

    def test_file_is_private(self, home: Path):
        store = CredentialStore(home)
        store.save(_tokens())
        mode = stat.S_IMODE(store.path.stat().st_mode)
        assert mode == 0o600

    def test_expired_token_is_not_returned(self, home: Path):
        store = CredentialStore(home, clock=lambda: NOW)
        store.save(_tokens(expires_in=timedelta(seconds=-1)))
        assert store.access_token() is None

    def test_naive_expiry_treated_as_utc(self, home: Path):
        store = CredentialStore(home, clock=lambda: NOW)
        naive = AuthTokens(access_token="t", expires_at=datetime(2026, 6, 1, 13, 0), username="ana")
        assert store.is_expired(naive) is False

    def test_clear(self, home: Path):
        store = CredentialStore(home)
        store.save(_tokens())
        assert store.clear() is True
        assert store.clear() is False
        assert store.load() is None

    def test_unreadable_file_is_ignored(self, home: Path):
        home.mkdir(parents=True)
        store = CredentialStore(home)
        store.path.write_text('{"access_token": 1}')
        assert store.load() is None
