"""
test_package_hash.py
--------------------
Unit tests for package id extraction and content hashing.
"""
import hashlib
import math
import sys

import pytest

from curator.core.exceptions import MalformedDescriptor
from curator.core.package_hash import (
    PackageIdentity,
    canonicalize,
    compute_package_hash,
    extract_package_id,
    identify,
    normalize_body,
    verify_identity,
)


class TestExtractPackageId:
    """Test extract_package_id()."""

    def test_top_level_id(self):
        assert extract_package_id({"id": "pkg1"}) == "pkg1"

    def test_strips_whitespace(self):
        assert extract_package_id({"id": "  pkg1 "}) == "pkg1"

    def test_dotted_path(self):
        body = {"meta": {"name": "awesome-rust"}}
        assert extract_package_id(body, "meta.name") == "awesome-rust"

    def test_missing_field_raises(self):
        with pytest.raises(MalformedDescriptor, match="missing"):
            extract_package_id({"things": []})

    def test_missing_nested_field_raises(self):
        with pytest.raises(MalformedDescriptor):
            extract_package_id({"meta": "flat"}, "meta.name")

    @pytest.mark.parametrize("value", [42, None, ["pkg1"], {"id": "x"}])
    def test_non_string_raises(self, value):
        with pytest.raises(MalformedDescriptor):
            extract_package_id({"id": value})

    def test_empty_string_raises(self):
        with pytest.raises(MalformedDescriptor, match="empty"):
            extract_package_id({"id": "   "})

    def test_non_mapping_body_raises(self):
        with pytest.raises(MalformedDescriptor, match="mapping"):
            extract_package_id(["id", "pkg1"])


class TestCanonicalize:
    """Test canonicalize()."""

    def test_sorted_compact_utf8(self):
        assert canonicalize({"b": 1, "a": "é"}) == '{"a":"é","b":1}'.encode("utf-8")

    def test_key_order_does_not_matter(self):
        first = {"id": "pkg1", "things": [{"url": "u", "name": "n"}]}
        second = {"things": [{"name": "n", "url": "u"}], "id": "pkg1"}
        assert canonicalize(first) == canonicalize(second)

    def test_list_order_matters(self):
        assert canonicalize({"tags": ["a", "b"]}) != canonicalize({"tags": ["b", "a"]})

    def test_nan_rejected(self):
        with pytest.raises(MalformedDescriptor):
            canonicalize({"id": "pkg1", "score": math.nan})

    def test_unserializable_rejected(self):
        with pytest.raises(MalformedDescriptor):
            canonicalize({"id": "pkg1", "tags": {"a", "b"}})

    def test_deep_nesting_rejected(self):
        deep = []
        for _ in range(sys.getrecursionlimit() * 2):
            deep = [deep]
        with pytest.raises(MalformedDescriptor, match="nested too deeply"):
            canonicalize({"id": "deep", "blob": deep})


class TestNormalizeBody:
    """Test normalize_body()."""

    def test_non_string_keys_become_strings(self):
        body = {"id": "p", "meta": {2: "a", 10: "b"}}
        assert normalize_body(body) == {"id": "p", "meta": {"2": "a", "10": "b"}}

    def test_normalized_body_is_stable(self):
        body = normalize_body({"id": "p", "meta": {2: "a", 10: "b"}})
        assert normalize_body(body) == body
        assert compute_package_hash(normalize_body(body)) == compute_package_hash(body)


class TestComputePackageHash:
    """Test compute_package_hash()."""

    def test_sha256_of_canonical_form(self):
        expected = hashlib.sha256(b'{"id":"pkg1"}').hexdigest()
        assert compute_package_hash({"id": "pkg1"}) == expected

    def test_hex_digest_length(self):
        assert len(compute_package_hash({"id": "pkg1"})) == 64

    def test_semantic_change_changes_hash(self):
        before = {"id": "pkg1", "things": [{"url": "https://x", "name": "X"}]}
        after = {"id": "pkg1", "things": [{"url": "https://x", "name": "Y"}]}
        assert compute_package_hash(before) != compute_package_hash(after)


class TestIdentify:
    """Test identify()."""

    def test_returns_identity(self):
        body = {"id": "pkg1", "things": []}
        identity = identify(body)

        assert isinstance(identity, PackageIdentity)
        assert identity.id == "pkg1"
        assert identity.hash == compute_package_hash(body)

    def test_deterministic(self):
        body = {"id": "pkg1", "things": [{"url": "https://x", "name": "X"}]}
        assert identify(body) == identify(dict(body))

    def test_identity_is_frozen(self):
        identity = identify({"id": "pkg1"})
        with pytest.raises(AttributeError):
            identity.id = "other"


class TestVerifyIdentity:
    """Test verify_identity()."""

    def test_matching_pair(self):
        body = {"id": "pkg1", "things": []}
        identity = identify(body)
        assert verify_identity(body, identity.hash, identity.id) == identity

    def test_wrong_id_rejected(self):
        body = {"id": "real"}
        with pytest.raises(MalformedDescriptor, match="does not match body id") as exc_info:
            verify_identity(body, identify(body).hash, "fake")
        assert exc_info.value.package_id == "fake"

    def test_wrong_hash_rejected(self):
        with pytest.raises(MalformedDescriptor, match="does not match body hash"):
            verify_identity({"id": "real"}, "not-a-hash", "real")

    def test_custom_id_field(self):
        body = {"meta": {"name": "nested"}}
        identity = verify_identity(body, compute_package_hash(body), "nested", "meta.name")
        assert identity.id == "nested"
