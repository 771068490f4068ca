"""Tests for specgraph.parser.refs -- $ref parsing and resource names."""

from __future__ import annotations

import pytest

from specgraph.exceptions import SpecParseError
from specgraph.parser.refs import normalize_resource_type, parse_ref, resolve_pointer


class TestParseRef:
    def test_operation_suffix(self) -> None:
        parsed = parse_ref("#/components/schemas/origin_poolCreateRequest")
        assert parsed is not None
        assert parsed.schema_name == "origin_poolCreateRequest"
        assert parsed.resource_type == "origin_pool"
        assert parsed.operation_type == "create"

    def test_resource_suffix_without_operation(self) -> None:
        parsed = parse_ref("#/components/schemas/http_loadbalancerSpecType")
        assert parsed is not None
        assert parsed.resource_type == "http_loadbalancer"
        assert parsed.operation_type is None

    def test_type_suffix(self) -> None:
        parsed = parse_ref("#/components/schemas/certificateType")
        assert parsed is not None
        assert parsed.resource_type == "certificate"

    def test_unknown_suffix_has_no_resource(self) -> None:
        parsed = parse_ref("#/components/schemas/http_loadbalancerCreateBody")
        assert parsed is not None
        assert parsed.schema_name == "http_loadbalancerCreateBody"
        assert parsed.resource_type is None

    @pytest.mark.parametrize(
        "ref", [None, "", 42, "#/components/parameters/namespace", "other.json#/x"]
    )
    def test_non_schema_refs(self, ref: object) -> None:
        assert parse_ref(ref) is None


class TestNormalizeResourceType:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("origin_pool", "origin-pool"),
            ("httpLoadbalancer", "http-loadbalancer"),
            ("certificate", "certificate"),
            ("App_Firewall", "app-firewall"),
        ],
    )
    def test_kebab_case(self, raw: str, expected: str) -> None:
        assert normalize_resource_type(raw) == expected


class TestResolvePointer:
    def test_follows_nested_keys(self) -> None:
        spec = {"components": {"parameters": {"namespace": {"name": "namespace"}}}}
        assert resolve_pointer("#/components/parameters/namespace", spec) == {"name": "namespace"}

    def test_escaped_segments(self) -> None:
        spec = {"paths": {"/a/b": {"get": {}}}}
        assert resolve_pointer("#/paths/~1a~1b", spec) == {"get": {}}

    def test_array_index(self) -> None:
        spec = {"tags": [{"name": "first"}, {"name": "second"}]}
        assert resolve_pointer("#/tags/1", spec) == {"name": "second"}

    def test_external_ref_raises(self) -> None:
        with pytest.raises(SpecParseError, match="External"):
            resolve_pointer("other.json#/x", {})

    def test_missing_key_raises(self) -> None:
        with pytest.raises(SpecParseError, match="not found"):
            resolve_pointer("#/components/schemas/missing", {"components": {"schemas": {}}})
