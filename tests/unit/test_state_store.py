"""Tests for the per-scope state store and cross-scope aggregation."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from aspects.core.errors import StateStoreError
from aspects.core.hasher import content_digest
from aspects.core.schema import AspectSchemaValidator
from aspects.core.state_store import StateStore, aggregate_installed, is_modified
from aspects.models.aspect import Aspect
from aspects.models.records import (
    InstalledRecord,
    InstallSource,
    Scope,
    StateDocument,
    TrustLevel,
)

from conftest import make_aspect, write_aspect


def _record(name: str = "alaric", version: str = "1.0.0", digest: str = "d1", **kw) -> InstalledRecord:
    defaults = dict(source=InstallSource.REGISTRY, trust=TrustLevel.COMMUNITY, specifier=name)
    defaults.update(kw)
    return InstalledRecord(name=name, version=version, content_digest=digest, **defaults)


@pytest.fixture
def project_store(tmp_path: Path) -> StateStore:
    return StateStore(Scope.PROJECT, tmp_path / "proj" / ".aspects")


class TestStateDocument:
    def test_missing_file_materializes_default(self, global_store: StateStore):
        assert not global_store.state_path.exists()
        doc = global_store.read()
        assert doc == StateDocument()
        assert global_store.state_path.exists()
        on_disk = json.loads(global_store.state_path.read_text())
        assert on_disk == {"schema_version": 1, "installed": {}, "settings": {}}

    def test_reads_are_stable(self, global_store: StateStore):
        assert global_store.read() == global_store.read()

    def test_corrupt_json_raises(self, global_store: StateStore):
        global_store.root.mkdir(parents=True)
        global_store.state_path.write_text("{not json")
        with pytest.raises(StateStoreError, match="Corrupt state file"):
            global_store.read()

    def test_wrong_shape_raises(self, global_store: StateStore):
        global_store.root.mkdir(parents=True)
        global_store.state_path.write_text(json.dumps({"installed": {"x": {"name": 1}}}))
        with pytest.raises(StateStoreError):
            global_store.read()


class TestRecords:
    def test_upsert_and_get(self, global_store: StateStore):
        record = _record()
        global_store.upsert(record)
        assert global_store.get("alaric") == record

    def test_upsert_replaces(self, global_store: StateStore):
        global_store.upsert(_record(version="1.0.0"))
        global_store.upsert(_record(version="2.0.0"))
        assert global_store.get("alaric").version == "2.0.0"
        assert len(global_store.list()) == 1

    def test_remove(self, global_store: StateStore):
        global_store.upsert(_record())
        assert global_store.remove("alaric") is True
        assert global_store.get("alaric") is None
        assert global_store.remove("alaric") is False

    def test_list_sorted_by_name(self, global_store: StateStore):
        for name in ("zed", "alaric", "mira"):
            global_store.upsert(_record(name=name))
        assert [r.name for r in global_store.list()] == ["alaric", "mira", "zed"]

    def test_records_survive_reload(self, global_store: StateStore):
        record = _record(publisher="morphist", registry_digest="b3-abc")
        global_store.upsert(record)
        reopened = StateStore(Scope.GLOBAL, global_store.root)
        assert reopened.get("alaric") == record

    def test_settings_round_trip(self, global_store: StateStore):
        global_store.set_setting("registryUrl", "http://localhost:8787")
        assert global_store.get_setting("registryUrl") == "http://localhost:8787"
        global_store.set_setting("registryUrl", None)
        assert global_store.get_setting("registryUrl") is None

    def test_artifact_paths(self, global_store: StateStore):
        assert global_store.artifact_path("alaric") == global_store.root / "aspects" / "alaric" / "aspect.json"


class TestAggregation:
    def test_same_content_in_both_scopes_listed_once(self, global_store, project_store):
        global_store.upsert(_record(digest="same"))
        project_store.upsert(_record(digest="same"))
        listings = aggregate_installed([global_store, project_store])
        assert len(listings) == 1
        assert listings[0].scopes == (Scope.PROJECT, Scope.GLOBAL)

    def test_different_content_listed_separately(self, global_store, project_store):
        global_store.upsert(_record(version="1.0.0", digest="old"))
        project_store.upsert(_record(version="2.0.0", digest="new"))
        listings = aggregate_installed([global_store, project_store])
        assert [(l.record.version, l.scopes) for l in listings] == [
            ("2.0.0", (Scope.PROJECT,)),
            ("1.0.0", (Scope.GLOBAL,)),
        ]

    def test_project_listings_sort_first(self, global_store, project_store):
        global_store.upsert(_record(name="aaa", digest="g"))
        project_store.upsert(_record(name="zzz", digest="p"))
        names = [l.name for l in aggregate_installed([global_store, project_store])]
        assert names == ["zzz", "aaa"]

    def test_empty(self, global_store):
        assert aggregate_installed([global_store]) == []


class TestDrift:
    @pytest.fixture
    def local_record(self, tmp_path: Path) -> tuple[InstalledRecord, Path]:
        src = tmp_path / "src" / "alaric"
        write_aspect(src, make_aspect())
        digest = content_digest(Aspect.model_validate(make_aspect()))
        record = _record(
            digest=digest,
            source=InstallSource.LOCAL,
            trust=TrustLevel.LOCAL,
            local_path=str(src),
        )
        return record, src

    def test_unchanged_local_is_not_modified(self, local_record):
        record, _ = local_record
        assert is_modified(record, AspectSchemaValidator()) is False

    def test_reformatting_is_not_drift(self, local_record):
        record, src = local_record
        doc = make_aspect()
        (src / "aspect.json").write_text(json.dumps(dict(reversed(list(doc.items())))))
        assert is_modified(record, AspectSchemaValidator()) is False

    def test_edited_local_is_modified(self, local_record):
        record, src = local_record
        write_aspect(src, make_aspect(tagline="Edited after install"))
        assert is_modified(record, AspectSchemaValidator()) is True

    def test_deleted_local_is_modified(self, local_record):
        record, src = local_record
        (src / "aspect.json").unlink()
        assert is_modified(record, AspectSchemaValidator()) is True

    def test_registry_records_never_drift(self):
        assert is_modified(_record(), AspectSchemaValidator()) is False

    def test_listing_flags_modified(self, global_store, local_record):
        record, src = local_record
        global_store.upsert(record)
        write_aspect(src, make_aspect(prompt="A different prompt entirely."))
        [listing] = aggregate_installed([global_store], validator=AspectSchemaValidator())
        assert listing.modified is True
