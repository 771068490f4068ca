"""Tests for specgraph.parser.extractor -- operations, references and oneOf groups."""

from __future__ import annotations

from typing import Any

import pytest

from specgraph.models import ParsedOperation
from specgraph.parser.extractor import (
    collect_domain_resources,
    extract_domain_operations,
    extract_one_of_patterns,
    extract_operation_dependencies,
    extract_ref_patterns,
    extract_resource_from_path,
    generate_tool_name,
    method_to_operation,
    resolve_resource_domain,
)


def _by_tool(operations: list[ParsedOperation]) -> dict[str, ParsedOperation]:
    return {op.tool_name: op for op in operations}


# ---------------------------------------------------------------------------
# Schema walking
# ---------------------------------------------------------------------------


class TestExtractRefPatterns:
    def test_direct_required_property(self) -> None:
        schema = {
            "type": "object",
            "required": ["default_pool"],
            "properties": {"default_pool": {"$ref": "#/components/schemas/origin_poolType"}},
        }
        refs = extract_ref_patterns(schema)
        assert len(refs) == 1
        assert refs[0].resource_type == "origin-pool"
        assert refs[0].field_path == "default_pool"
        assert refs[0].required is True
        assert refs[0].inline is False
        assert refs[0].domain == ""

    def test_array_items_are_not_required(self) -> None:
        schema = {
            "required": ["pools"],
            "properties": {
                "pools": {"type": "array", "items": {"$ref": "#/components/schemas/origin_poolType"}}
            },
        }
        refs = extract_ref_patterns(schema)
        assert refs[0].field_path == "pools[]"
        assert refs[0].required is False

    def test_one_of_marks_inline(self) -> None:
        schema = {
            "properties": {
                "rate_limiter": {
                    "oneOf": [
                        {"$ref": "#/components/schemas/rate_limiterType"},
                        {"type": "object"},
                    ]
                }
            }
        }
        refs = extract_ref_patterns(schema)
        assert refs[0].field_path == "rate_limiter.oneOf[0]"
        assert refs[0].inline is True

    def test_flags_follow_nesting_level(self) -> None:
        schema = {
            "required": ["tls", "pool"],
            "properties": {
                "pool": {"$ref": "#/components/schemas/origin_poolType"},
                "tls": {
                    "oneOf": [
                        {"$ref": "#/components/schemas/certificateType"},
                        {"type": "object"},
                    ]
                },
            },
        }
        first = extract_ref_patterns(schema)
        flags = {ref.field_path: (ref.required, ref.inline) for ref in first}
        assert flags == {"pool": (True, False), "tls.oneOf[0]": (False, True)}
        assert extract_ref_patterns(schema) == first

    def test_all_of_and_additional_properties(self) -> None:
        schema = {
            "allOf": [{"$ref": "#/components/schemas/certificateType"}],
            "properties": {
                "labels": {"additionalProperties": {"$ref": "#/components/schemas/healthcheckType"}}
            },
        }
        paths = {ref.field_path: ref.resource_type for ref in extract_ref_patterns(schema)}
        assert paths == {"labels[*]": "healthcheck", "allOf[0]": "certificate"}

    def test_non_resource_refs_ignored(self) -> None:
        schema = {"properties": {"meta": {"$ref": "#/components/schemas/ObjectMetaData"}}}
        # "ObjectMetaData" carries no known suffix.
        assert extract_ref_patterns(schema) == []

    def test_non_dict_schema(self) -> None:
        assert extract_ref_patterns(None) == []
        assert extract_ref_patterns("string") == []


class TestExtractOneOfPatterns:
    def test_reads_extension_and_description(self) -> None:
        schema = {
            "x-ves-oneof-field-port_choice": '["port", "automatic_port"]',
            "properties": {"port_choice": {"description": "How the port is chosen"}},
        }
        groups = extract_one_of_patterns(schema)
        assert len(groups) == 1
        assert groups[0].choice_field == "port_choice"
        assert groups[0].options == ["port", "automatic_port"]
        assert groups[0].field_path == "port_choice"
        assert groups[0].description == "How the port is chosen"

    @pytest.mark.parametrize("value", ["not json", '{"a": 1}', "[1, 2]"])
    def test_malformed_values_ignored(self, value: str) -> None:
        assert extract_one_of_patterns({"x-ves-oneof-field-choice": value}) == []


class TestExtractOperationDependencies:
    def test_follows_body_component(self) -> None:
        components = {
            "thingCreateBody": {
                "x-ves-oneof-field-mode": '["a", "b"]',
                "required": ["pool"],
                "properties": {"pool": {"$ref": "#/components/schemas/origin_poolType"}},
            }
        }
        extracted = extract_operation_dependencies(
            {"$ref": "#/components/schemas/thingCreateBody"}, components
        )
        assert [r.resource_type for r in extracted.references] == ["origin-pool"]
        assert extracted.references[0].required is True
        assert [g.choice_field for g in extracted.one_of_groups] == ["mode"]

    def test_duplicates_collapse(self) -> None:
        pool = {"$ref": "#/components/schemas/origin_poolType"}
        components = {"thingCreateBody": {"properties": {"pool": pool}}}
        body = {"$ref": "#/components/schemas/thingCreateBody", "properties": {"pool": pool}}
        extracted = extract_operation_dependencies(body, components)
        keys = [(r.resource_type, r.field_path) for r in extracted.references]
        assert keys == [("origin-pool", "pool")]

    def test_same_type_on_different_fields_kept(self) -> None:
        schema = {
            "properties": {"pool": {"$ref": "#/components/schemas/origin_poolType"}},
            "allOf": [{"properties": {"pool": {"$ref": "#/components/schemas/origin_poolType"}}}],
        }
        extracted = extract_operation_dependencies(schema, {})
        keys = [(r.resource_type, r.field_path) for r in extracted.references]
        assert keys == [("origin-pool", "pool"), ("origin-pool", "allOf[0].pool")]

    def test_empty_body(self) -> None:
        extracted = extract_operation_dependencies(None, {})
        assert extracted.references == []
        assert extracted.one_of_groups == []


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


class TestNaming:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/api/config/namespaces/{namespace}/http_loadbalancers", "http-loadbalancer"),
            ("/api/config/namespaces/{namespace}/origin_pools/{name}", "origin-pool"),
            ("/api/web/namespaces", "namespace"),
            ("/", "unknown"),
            ("/{id}", "unknown"),
        ],
    )
    def test_resource_from_path(self, path: str, expected: str) -> None:
        assert extract_resource_from_path(path) == expected

    @pytest.mark.parametrize(
        ("method", "has_name", "expected"),
        [
            ("POST", False, "create"),
            ("get", True, "get"),
            ("GET", False, "list"),
            ("PUT", True, "replace"),
            ("DELETE", True, "delete"),
            ("PATCH", True, "patch"),
        ],
    )
    def test_method_to_operation(self, method: str, has_name: bool, expected: str) -> None:
        assert method_to_operation(method, has_name) == expected

    def test_tool_name(self) -> None:
        assert (
            generate_tool_name("network_security", "service-policy", "create")
            == "api-networksecurity-service-policy-create"
        )

    def test_tool_name_prefix(self) -> None:
        assert generate_tool_name("dns", "dns_zone", "list", prefix="xc") == "xc-dns-dns-zone-list"

    def test_domain_from_known_resources(self) -> None:
        assert resolve_resource_domain("origin-pool", {"origin-pool": "load_balancer"}) == "load_balancer"

    def test_domain_from_fallback_table(self) -> None:
        assert resolve_resource_domain("app-firewall") == "waf"

    def test_unknown_domain(self) -> None:
        assert resolve_resource_domain("rate-limiter", {}) == ""


# ---------------------------------------------------------------------------
# Whole-spec extraction
# ---------------------------------------------------------------------------


class TestExtractDomainOperations:
    def test_operations_of_virtual(self, raw_specs: dict[str, dict[str, Any]]) -> None:
        ops = extract_domain_operations(raw_specs["virtual"], "virtual", source_file="virtual.json")
        assert [op.tool_name for op in ops] == [
            "api-virtual-http-loadbalancer-list",
            "api-virtual-http-loadbalancer-create",
            "api-virtual-http-loadbalancer-get",
            "api-virtual-http-loadbalancer-delete",
        ]
        assert all(op.source_file == "virtual.json" for op in ops)

    def test_create_parameters(self, raw_specs: dict[str, dict[str, Any]]) -> None:
        ops = _by_tool(extract_domain_operations(raw_specs["virtual"], "virtual"))
        create = ops["api-virtual-http-loadbalancer-create"]
        assert create.method == "POST"
        assert create.path_parameters == ["namespace"]
        assert create.required_params == ["namespace", "body"]
        assert create.operation_id == "ves.io.schema.views.http_loadbalancer.API.Create"
        assert create.tags == ["http_loadbalancer"]

    def test_query_parameters(self, raw_specs: dict[str, dict[str, Any]]) -> None:
        ops = _by_tool(extract_domain_operations(raw_specs["virtual"], "virtual"))
        get = ops["api-virtual-http-loadbalancer-get"]
        assert get.query_parameters == ["response_format"]
        assert get.required_params == ["namespace", "name"]

    def test_create_dependencies(self, raw_specs: dict[str, dict[str, Any]]) -> None:
        known = collect_domain_resources(raw_specs)
        ops = _by_tool(extract_domain_operations(raw_specs["virtual"], "virtual", known_resources=known))
        deps = ops["api-virtual-http-loadbalancer-create"].dependencies
        assert [(d.domain, d.resource_type, d.required) for d in deps] == [
            ("network", "origin-pool", True),
            ("waf", "app-firewall", False),
            ("", "rate-limiter", False),
        ]
        assert deps[2].inline is True

    def test_create_one_of_groups(self, raw_specs: dict[str, dict[str, Any]]) -> None:
        ops = _by_tool(extract_domain_operations(raw_specs["virtual"], "virtual"))
        groups = ops["api-virtual-http-loadbalancer-create"].one_of_groups
        assert len(groups) == 1
        assert groups[0].choice_field == "loadbalancer_type"
        assert groups[0].options == ["http", "https", "https_auto_cert"]
        assert groups[0].description == "Load balancer type"

    def test_referenced_parameters_and_body(self, raw_specs: dict[str, dict[str, Any]]) -> None:
        known = collect_domain_resources(raw_specs)
        ops = _by_tool(extract_domain_operations(raw_specs["network"], "network", known_resources=known))
        create = ops["api-network-origin-pool-create"]
        assert create.path_parameters == ["namespace"]
        assert create.required_params == ["namespace", "body"]
        assert [(d.domain, d.resource_type, d.field_path, d.required) for d in create.dependencies] == [
            ("certificates", "certificate", "certificate", True),
            ("network", "healthcheck", "healthcheck[]", False),
        ]
        assert "api-network-origin-pool-replace" in ops

    def test_subscription_heuristics(self, raw_specs: dict[str, dict[str, Any]]) -> None:
        ops = extract_domain_operations(raw_specs["waf"], "waf")
        subs = ops[0].subscription_requirements
        assert [s.addon_service for s in subs] == ["f5xc_waap_standard", "f5xc_waap_advanced"]
        assert subs[1].display_name == "F5XC WAAP Advanced"
        assert subs[1].tier == "advanced"
        assert all(not s.required for s in subs)

    def test_spec_without_paths(self) -> None:
        assert extract_domain_operations({"openapi": "3.0.3"}, "empty") == []


class TestExtractDomainSpecs:
    def test_all_domains_in_order(self, sample_operations: list[ParsedOperation]) -> None:
        domains = list(dict.fromkeys(op.domain for op in sample_operations))
        assert domains == ["virtual", "network", "certificates", "waf"]
        assert len(sample_operations) == 10

    def test_collect_domain_resources(self, raw_specs: dict[str, dict[str, Any]]) -> None:
        assert collect_domain_resources(raw_specs) == {
            "http-loadbalancer": "virtual",
            "healthcheck": "network",
            "origin-pool": "network",
            "certificate": "certificates",
            "app-firewall": "waf",
        }
