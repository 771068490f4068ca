"""Extract operations and their resource dependencies from OpenAPI domain specs.

A domain spec is one OpenAPI document covering a slice of the platform
(``virtual``, ``network``, ``certificates`` ...). For every path + method this
module produces a :class:`~specgraph.models.ParsedOperation` carrying:

* naming -- resource (from the path), operation (from the method) and the
  generated tool name;
* parameters -- path, query and required parameter names;
* ``dependencies`` -- :class:`~specgraph.models.ResourceReference` objects
  for every component ``$ref`` reachable from the request body schema;
* ``one_of_groups`` -- mutually exclusive fields declared with
  ``x-ves-oneof-field-<name>`` extensions;
* ``subscription_requirements`` -- addon services inferred by
  :mod:`~specgraph.parser.subscriptions`.

Reference domains are resolved in two passes by :func:`extract_domain_specs`:
first every resource of every domain is registered, then each reference is
placed in the domain that defines it, falling back to a small static table.
Unresolvable references keep an empty domain and end up under ``"unknown"``
in the graph.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping, NamedTuple, Optional

from specgraph.models import OneOfGroup, ParsedOperation, ResourceReference
from specgraph.parser.refs import normalize_resource_type, parse_ref, resolve_pointer
from specgraph.parser.subscriptions import subscription_requirements_for

logger = logging.getLogger(__name__)

_HTTP_METHODS = ("get", "post", "put", "delete", "patch")
_ONE_OF_PREFIX = "x-ves-oneof-field-"

# Used only when no loaded domain defines the referenced resource.
FALLBACK_RESOURCE_DOMAIN_MAP: dict[str, str] = {
    "origin-pool": "network",
    "http-loadbalancer": "virtual",
    "tcp-loadbalancer": "virtual",
    "dns-lb-pool": "dns",
    "dns-zone": "dns",
    "app-firewall": "waf",
    "service-policy": "network_security",
    "certificate": "certificates",
    "api-definition": "api",
    "site": "sites",
    "aws-vpc-site": "sites",
    "azure-vnet-site": "sites",
    "gcp-vpc-site": "sites",
    "healthcheck": "network",
    "virtual-host": "virtual",
    "namespace": "tenant_and_identity",
    "secret": "blindfold",
    "token": "authentication",
}


class ExtractedDependencies(NamedTuple):
    """References and oneOf groups found in one request body."""

    references: list[ResourceReference]
    one_of_groups: list[OneOfGroup]


# --------------------------------------------------------------------------- #
# Schema walking
# --------------------------------------------------------------------------- #


def _join(path: str, suffix: str) -> str:
    return f"{path}.{suffix}" if path else suffix


def extract_ref_patterns(schema: Any, path: str = "") -> list[ResourceReference]:
    """Collect resource references from a schema tree.

    Walks ``properties``, ``allOf``, ``oneOf``/``anyOf``, ``items`` and
    ``additionalProperties``. A reference is ``required`` when its property
    appears in the parent's ``required`` list, and ``inline`` when it sits
    under ``oneOf``/``anyOf`` (the field also accepts an inline object).

    Args:
        schema: An OpenAPI schema object. Non-dicts yield no references.
        path: Dotted field path of *schema*. Arrays add ``[]`` and maps
            ``[*]``, e.g. ``"spec.origin_pools[]"``.

    Returns:
        References in discovery order, each with an empty ``domain``.
    """
    refs: list[ResourceReference] = []
    if not isinstance(schema, dict):
        return refs

    ref_value = schema.get("$ref")
    if isinstance(ref_value, str):
        parsed = parse_ref(ref_value)
        if parsed is not None and parsed.resource_type:
            refs.append(
                ResourceReference(
                    resource_type=normalize_resource_type(parsed.resource_type),
                    field_path=path,
                )
            )

    properties = schema.get("properties")
    if isinstance(properties, dict):
        required = schema.get("required")
        required_fields = (
            required
            if isinstance(required, list) and all(isinstance(r, str) for r in required)
            else []
        )
        for name, prop in properties.items():
            if not isinstance(prop, dict):
                continue
            prop_path = _join(path, name)
            is_required = name in required_fields
            refs.extend(
                ref.model_copy(update={"required": True})
                if is_required and ref.field_path == prop_path
                else ref
                for ref in extract_ref_patterns(prop, prop_path)
            )

    all_of = schema.get("allOf")
    if isinstance(all_of, list):
        for index, item in enumerate(all_of):
            refs.extend(extract_ref_patterns(item, _join(path, f"allOf[{index}]")))

    for keyword in ("oneOf", "anyOf"):
        variants = schema.get(keyword)
        if not isinstance(variants, list):
            continue
        for index, item in enumerate(variants):
            refs.extend(
                ref.model_copy(update={"inline": True})
                for ref in extract_ref_patterns(item, _join(path, f"{keyword}[{index}]"))
            )

    items = schema.get("items")
    if isinstance(items, dict):
        refs.extend(extract_ref_patterns(items, f"{path}[]" if path else "[]"))

    additional = schema.get("additionalProperties")
    if isinstance(additional, dict):
        refs.extend(extract_ref_patterns(additional, f"{path}[*]" if path else "[*]"))

    return refs


def extract_one_of_patterns(schema: Any) -> list[OneOfGroup]:
    """Read ``x-ves-oneof-field-<name>`` extensions from a schema.

    Each extension value is a JSON array string of option names, e.g.
    ``'["use_tls", "no_tls"]'``. Values that are not valid JSON string
    arrays are ignored. A group's description comes from the property of the
    same name when it has one.
    """
    groups: list[OneOfGroup] = []
    if not isinstance(schema, dict):
        return groups

    for key, value in schema.items():
        if not key.startswith(_ONE_OF_PREFIX) or not isinstance(value, str):
            continue
        try:
            options = json.loads(value)
        except json.JSONDecodeError:
            logger.debug("Ignoring malformed %s value: %r", key, value)
            continue
        if isinstance(options, list) and all(isinstance(o, str) for o in options):
            choice_field = key[len(_ONE_OF_PREFIX):]
            groups.append(
                OneOfGroup(choice_field=choice_field, options=options, field_path=choice_field)
            )

    properties = schema.get("properties")
    if isinstance(properties, dict):
        for group in groups:
            prop = properties.get(group.choice_field)
            if isinstance(prop, dict) and "description" in prop:
                group.description = str(prop["description"])

    return groups


def extract_operation_dependencies(
    body_schema: Optional[dict[str, Any]],
    component_schemas: Mapping[str, Any],
) -> ExtractedDependencies:
    """Dependencies of one operation's request body.

    When the body is a ``$ref`` to a component schema, that component is
    searched too, and its ``x-ves-oneof-field-*`` extensions become the
    operation's oneOf groups. References are deduplicated on
    ``(resource_type, field_path)``.
    """
    if not body_schema:
        return ExtractedDependencies([], [])

    refs = extract_ref_patterns(body_schema)
    groups: list[OneOfGroup] = []

    parsed = parse_ref(body_schema.get("$ref"))
    if parsed is not None:
        component = component_schemas.get(parsed.schema_name)
        if isinstance(component, dict):
            groups = extract_one_of_patterns(component)
            refs.extend(extract_ref_patterns(component))

    seen: set[tuple[str, str]] = set()
    unique: list[ResourceReference] = []
    for ref in refs:
        key = (ref.resource_type, ref.field_path)
        if key in seen:
            continue
        seen.add(key)
        unique.append(ref)

    return ExtractedDependencies(unique, groups)


# --------------------------------------------------------------------------- #
# Naming
# --------------------------------------------------------------------------- #


def extract_resource_from_path(path: str) -> str:
    """Resource name from an API path.

    Uses the last segment that is not a ``{parameter}``, converts ``_`` to
    ``-`` and drops one trailing ``s``:
    ``/api/config/namespaces/{namespace}/http_loadbalancers/{name}`` →
    ``"http-loadbalancer"``.
    """
    segments = [s for s in path.split("/") if s]
    if not segments:
        return "unknown"
    last = segments[-1]
    if last.startswith("{"):
        if len(segments) < 2:
            return "unknown"
        last = segments[-2]
    return re.sub(r"s$", "", last.replace("_", "-"))


def method_to_operation(method: str, has_name_param: bool) -> str:
    """Map an HTTP method to an operation verb.

    ``GET`` is ``get`` on a single-resource path and ``list`` otherwise.
    """
    upper = method.upper()
    if upper == "GET":
        return "get" if has_name_param else "list"
    return {
        "POST": "create",
        "PUT": "replace",
        "DELETE": "delete",
        "PATCH": "patch",
    }.get(upper, method.lower())


def generate_tool_name(domain: str, resource: str, operation: str, prefix: str = "api") -> str:
    """``"{prefix}-{domain}-{resource}-{operation}"`` with each part sanitised."""
    norm_domain = re.sub(r"[^a-z0-9]", "", domain.lower())
    norm_resource = re.sub(r"[^a-z0-9-]", "", resource.lower().replace("_", "-"))
    norm_operation = re.sub(r"[^a-z0-9]", "", operation.lower())
    return f"{prefix}-{norm_domain}-{norm_resource}-{norm_operation}"


def resolve_resource_domain(
    resource_type: str,
    known_resources: Optional[Mapping[str, str]] = None,
) -> str:
    """Domain defining *resource_type*, or ``""`` when unknown.

    Args:
        resource_type: Kebab-case resource name.
        known_resources: Resource → domain map built from loaded specs.
            Takes precedence over :data:`FALLBACK_RESOURCE_DOMAIN_MAP`.
    """
    variants = (resource_type, resource_type.replace("_", "-"))
    if known_resources:
        for variant in variants:
            if variant in known_resources:
                return known_resources[variant]
    for variant in variants:
        if variant in FALLBACK_RESOURCE_DOMAIN_MAP:
            return FALLBACK_RESOURCE_DOMAIN_MAP[variant]
    return ""


# --------------------------------------------------------------------------- #
# Operations
# --------------------------------------------------------------------------- #


def _resolve_parameter(param: Any, spec: dict[str, Any]) -> Optional[dict[str, Any]]:
    if isinstance(param, dict) and isinstance(param.get("$ref"), str):
        param = resolve_pointer(param["$ref"], spec)
    return param if isinstance(param, dict) else None


def _request_body_schema(
    operation: dict[str, Any], spec: dict[str, Any]
) -> tuple[Optional[dict[str, Any]], bool]:
    """Return the JSON request body schema and whether the body is required."""
    body = operation.get("requestBody")
    if isinstance(body, dict) and isinstance(body.get("$ref"), str):
        body = resolve_pointer(body["$ref"], spec)
    if not isinstance(body, dict):
        return None, False
    content = body.get("content") or {}
    media = content.get("application/json") or {}
    schema = media.get("schema")
    return (schema if isinstance(schema, dict) else None), bool(body.get("required"))


def extract_domain_operations(
    spec: dict[str, Any],
    domain: str,
    source_file: str = "",
    tool_prefix: str = "api",
    known_resources: Optional[Mapping[str, str]] = None,
) -> list[ParsedOperation]:
    """Extract every operation of one domain spec.

    Paths are processed in sorted order so the output is deterministic.

    Args:
        spec: Raw (unresolved) OpenAPI document.
        domain: Domain the spec belongs to.
        source_file: Recorded on each operation for traceability.
        tool_prefix: Leading segment of generated tool names.
        known_resources: Resource → domain map used to place references.

    Returns:
        One :class:`~specgraph.models.ParsedOperation` per path + method.
    """
    operations: list[ParsedOperation] = []
    paths = spec.get("paths")
    if not isinstance(paths, dict):
        return operations

    components = (spec.get("components") or {}).get("schemas") or {}

    for path in sorted(paths):
        path_item = paths[path]
        if not isinstance(path_item, dict):
            continue
        has_name_param = "{name}" in path or "{id}" in path
        path_level = path_item.get("parameters") or []

        for method in _HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue

            resource = extract_resource_from_path(path)
            operation_type = method_to_operation(method, has_name_param)

            params = [
                p
                for p in (
                    _resolve_parameter(raw, spec)
                    for raw in [*path_level, *(operation.get("parameters") or [])]
                )
                if p is not None and "name" in p
            ]
            required_params = [p["name"] for p in params if p.get("required")]
            body_schema, body_required = _request_body_schema(operation, spec)
            if body_required:
                required_params.append("body")

            extracted = extract_operation_dependencies(body_schema, components)
            for ref in extracted.references:
                if not ref.domain:
                    ref.domain = resolve_resource_domain(ref.resource_type, known_resources)

            operations.append(
                ParsedOperation(
                    tool_name=generate_tool_name(domain, resource, operation_type, tool_prefix),
                    method=method.upper(),
                    path=path,
                    operation=operation_type,
                    domain=domain,
                    resource=resource,
                    summary=operation.get("summary") or f"{operation_type} {resource}",
                    description=operation.get("description") or "",
                    path_parameters=[p["name"] for p in params if p.get("in") == "path"],
                    query_parameters=[p["name"] for p in params if p.get("in") == "query"],
                    required_params=list(dict.fromkeys(required_params)),
                    operation_id=operation.get("operationId"),
                    tags=list(operation.get("tags") or []),
                    source_file=source_file,
                    deprecated=bool(operation.get("deprecated", False)),
                    dependencies=extracted.references,
                    one_of_groups=extracted.one_of_groups,
                    subscription_requirements=subscription_requirements_for(resource, domain),
                )
            )

    logger.debug("Extracted %d operations from domain %s", len(operations), domain)
    return operations


def collect_domain_resources(specs: Mapping[str, dict[str, Any]]) -> dict[str, str]:
    """Map every resource named by a path to its (first) defining domain."""
    resources: dict[str, str] = {}
    for domain, spec in specs.items():
        paths = spec.get("paths")
        if not isinstance(paths, dict):
            continue
        for path in sorted(paths):
            resources.setdefault(extract_resource_from_path(path), domain)
    return resources


def extract_domain_specs(
    specs: Mapping[str, dict[str, Any]],
    tool_prefix: str = "api",
    source_files: Optional[Mapping[str, str]] = None,
) -> list[ParsedOperation]:
    """Extract operations from a whole catalogue of domain specs.

    Args:
        specs: Domain name → raw OpenAPI document, in build order.
        tool_prefix: Leading segment of generated tool names.
        source_files: Optional domain → source path for traceability.

    Returns:
        Operations of all domains, in *specs* order.

    Example::

        ops = extract_domain_specs({
            "virtual": load_spec("specs/virtual.json"),
            "network": load_spec("specs/network.json"),
        })
        graph = build_dependency_graph(ops)
    """
    known = collect_domain_resources(specs)
    operations: list[ParsedOperation] = []
    for domain, spec in specs.items():
        source = (source_files or {}).get(domain, "")
        operations.extend(
            extract_domain_operations(
                spec, domain, source_file=source, tool_prefix=tool_prefix, known_resources=known
            )
        )
    return operations
