"""Shared test fixtures for aspects."""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import yaml

from aspects.config import AspectsSettings
from aspects.core.credentials import CredentialStore
from aspects.core.installer import Installer
from aspects.core.registry_client import RegistryClient
from aspects.core.scope import reset_project_root_cache
from aspects.core.state_store import StateStore
from aspects.models.records import Scope

REGISTRY_URL = "https://registry.test/api/v1"
FALLBACK_URL = "https://static.test/registry/index.json"
RAW_URL = "https://raw.test"


# ---------------------------------------------------------------------------
# Fake HTTP
# ---------------------------------------------------------------------------

class FakeResponse:
    """Just enough of ``requests.Response`` for the client."""

    def __init__(self, status_code: int = 200, payload: Any = None, text: str | None = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else (json.dumps(payload) if payload is not None else "")
        self.reason = "OK" if status_code < 400 else "Error"

    def json(self) -> Any:
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class FakeSession:
    """Routes ``(method, url)`` to canned responses and records every call.

    A route value may be a response, an exception instance (raised), or a
    list of either (consumed in order, the last one repeating).
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.calls: list[dict[str, Any]] = []

    def add(self, method: str, url: str, *responses: Any) -> None:
        self.routes[(method, url)] = list(responses)

    def calls_to(self, url: str, method: str = "GET") -> list[dict[str, Any]]:
        return [c for c in self.calls if c["url"] == url and c["method"] == method]

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        self.calls.append(
            {"method": method, "url": url, "params": params, "json": json,
             "headers": headers, "timeout": timeout}
        )
        queue = self.routes.get((method, url))
        if not queue:
            return FakeResponse(404, {"error": "not_found", "message": f"No route {url}"})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item


# ---------------------------------------------------------------------------
# Sample content
# ---------------------------------------------------------------------------

def make_aspect(name: str = "alaric", version: str = "1.0.0", **overrides: Any) -> dict[str, Any]:
    doc = {
        "schemaVersion": 1,
        "name": name,
        "version": version,
        "displayName": name.title(),
        "tagline": f"{name.title()} the test aspect",
        "category": "roleplay",
        "voiceHints": {"speed": "normal", "emotions": ["calm"]},
        "prompt": f"You are {name.title()}, a calm and thoughtful companion.",
    }
    doc.update(overrides)
    return doc


def write_aspect(directory: Path, doc: dict[str, Any], filename: str = "aspect.json") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    if filename.endswith((".yaml", ".yml")):
        path.write_text(yaml.safe_dump(doc), encoding="utf-8")
    else:
        path.write_text(json.dumps(doc, indent=2), encoding="utf-8")
    return path


def detail_payload(
    name: str = "alaric",
    versions: dict[str, dict[str, Any]] | None = None,
    latest: str = "1.0.0",
    trust: str = "verified",
    publisher: str | None = "morphist",
) -> dict[str, Any]:
    if versions is None:
        versions = {latest: {"published": "2026-01-01T00:00:00Z", "blake3": "b3-" + "0" * 20, "size": 300}}
    return {
        "name": name,
        "publisher": publisher,
        "latest": latest,
        "trust": trust,
        "displayName": name.title(),
        "tagline": f"{name.title()} the test aspect",
        "versions": versions,
    }


def version_payload(doc: dict[str, Any], digest: str = "b3-" + "0" * 20) -> dict[str, Any]:
    return {
        "name": doc["name"],
        "version": doc.get("version", "0.0.0"),
        "content": doc,
        "blake3": digest,
        "size": len(json.dumps(doc)),
        "publishedAt": "2026-01-01T00:00:00Z",
    }


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """No ambient ASPECTS_* variables, a fresh project-root memo, a clean cwd."""
    for key in list(os.environ):
        if key.startswith("ASPECTS_"):
            monkeypatch.delenv(key, raising=False)
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    reset_project_root_cache()
    yield
    reset_project_root_cache()


@pytest.fixture
def home(tmp_path: Path) -> Path:
    return tmp_path / "home" / ".aspects"


@pytest.fixture
def settings(home: Path) -> AspectsSettings:
    return AspectsSettings(
        home=home,
        registry_url=REGISTRY_URL,
        fallback_index_url=FALLBACK_URL,
        source_repo_raw_url=RAW_URL,
        backoff_seconds=1.0,
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def clock() -> Callable[[], float]:
    now = [1000.0]

    def _clock() -> float:
        return now[0]

    _clock.now = now  # type: ignore[attr-defined]
    return _clock


@pytest.fixture
def credentials(home: Path) -> CredentialStore:
    return CredentialStore(home)


@pytest.fixture
def client(
    settings: AspectsSettings,
    session: FakeSession,
    credentials: CredentialStore,
    clock: Callable[[], float],
    sleeps: list[float],
) -> RegistryClient:
    return RegistryClient(
        settings, session=session, credentials=credentials, clock=clock, sleep=sleeps.append
    )


@pytest.fixture
def global_store(home: Path) -> StateStore:
    return StateStore(Scope.GLOBAL, home)


@pytest.fixture
def installer(client: RegistryClient, global_store: StateStore) -> Installer:
    return Installer(client, global_store)
