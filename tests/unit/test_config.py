"""Tests for runtime settings — env-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from aspects.config import DEFAULT_REGISTRY_URL, AspectsSettings


class TestAspectsSettings:
    def test_defaults(self):
        settings = AspectsSettings()
        assert settings.home == Path.home() / ".aspects"
        assert settings.max_retries == 3
        assert settings.index_ttl_seconds == 300.0
        assert settings.reference_ttl_seconds == 86400.0
        assert settings.max_artifact_size_bytes == 51200
        assert settings.log_level == "WARNING"

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.setenv("ASPECTS_HOME", str(tmp_path / "h"))
        monkeypatch.setenv("ASPECTS_MAX_RETRIES", "5")
        monkeypatch.setenv("ASPECTS_LOG_LEVEL", "DEBUG")
        settings = AspectsSettings()
        assert settings.home == tmp_path / "h"
        assert settings.max_retries == 5
        assert settings.log_level == "DEBUG"


class TestEffectiveRegistryUrl:
    def test_default(self):
        assert AspectsSettings().effective_registry_url() == DEFAULT_REGISTRY_URL

    def test_stored_setting_beats_default(self):
        url = AspectsSettings().effective_registry_url(stored="http://localhost:8787/api/v1/")
        assert url == "http://localhost:8787/api/v1"

    def test_env_beats_stored(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("ASPECTS_REGISTRY_URL", "https://env.test/api/v1")
        url = AspectsSettings().effective_registry_url(stored="http://localhost:8787/api/v1")
        assert url == "https://env.test/api/v1"
