"""Tests for canonical hashing — determinism across formatting."""

from __future__ import annotations

import json

import yaml

from aspects.core.hasher import canonical_json_bytes, content_digest, digests_match, sha256_hex
from aspects.models.aspect import Aspect

from conftest import make_aspect


class TestCanonicalJson:
    def test_sorted_and_compact(self):
        assert canonical_json_bytes({"b": 1, "a": [1, 2]}) == b'{"a":[1,2],"b":1}'

    def test_ascii_escaped(self):
        assert canonical_json_bytes({"k": "é"}) == b'{"k":"\\u00e9"}'

    def test_sha256_known_value(self):
        assert sha256_hex(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


class TestContentDigest:
    def test_key_order_and_whitespace_do_not_matter(self):
        doc = make_aspect()
        pretty = json.dumps(doc, indent=4)
        shuffled = json.dumps(dict(sorted(doc.items(), reverse=True)), separators=(",", ":"))
        a = Aspect.model_validate(json.loads(pretty))
        b = Aspect.model_validate(json.loads(shuffled))
        assert content_digest(a) == content_digest(b)

    def test_yaml_and_json_authoring_hash_identically(self):
        doc = make_aspect()
        from_yaml = Aspect.model_validate(yaml.safe_load(yaml.safe_dump(doc)))
        assert content_digest(from_yaml) == content_digest(Aspect.model_validate(doc))

    def test_explicit_null_equals_omitted(self):
        with_null = Aspect.model_validate({**make_aspect(), "icon": None})
        assert content_digest(with_null) == content_digest(Aspect.model_validate(make_aspect()))

    def test_defaults_are_part_of_identity(self):
        doc = make_aspect()
        del doc["schemaVersion"]
        assert content_digest(Aspect.model_validate(doc)) == content_digest(
            Aspect.model_validate(make_aspect())
        )

    def test_content_change_changes_digest(self):
        a = Aspect.model_validate(make_aspect())
        b = Aspect.model_validate(make_aspect(prompt="Something else"))
        assert content_digest(a) != content_digest(b)

    def test_digest_is_bare_hex(self):
        digest = content_digest(Aspect.model_validate(make_aspect()))
        assert len(digest) == 64
        int(digest, 16)


class TestDigestsMatch:
    def test_prefix_and_case_insensitive(self):
        assert digests_match("sha256:ABCDEF", "abcdef")

    def test_mismatch(self):
        assert not digests_match("abc", "abd")
