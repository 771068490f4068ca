"""Helpers for OpenAPI ``$ref`` strings and resource type names.

Component schema names in generated API catalogues encode the resource they
describe, e.g. ``origin_poolCreateRequest`` or ``http_loadbalancerSpecType``.
:func:`parse_ref` recovers the resource part (and the operation, when the
suffix names one) and :func:`normalize_resource_type` turns it into the
kebab-case form used as the graph's resource names.
"""

from __future__ import annotations

import re
from typing import Any, NamedTuple, Optional

from specgraph.exceptions import SpecParseError

_SCHEMA_REF_RE = re.compile(r"#/components/schemas/(.+)")

# Checked in order; the first matching suffix wins.
OPERATION_SUFFIXES: dict[str, str] = {
    "CreateRequest": "create",
    "CreateResponse": "create",
    "ReplaceRequest": "replace",
    "ReplaceResponse": "replace",
    "GetRequest": "get",
    "GetResponse": "get",
    "ListRequest": "list",
    "ListResponse": "list",
    "DeleteRequest": "delete",
    "DeleteResponse": "delete",
    "UpdateRequest": "update",
    "UpdateResponse": "update",
}

RESOURCE_SUFFIXES: tuple[str, ...] = (
    *OPERATION_SUFFIXES,
    "Spec",
    "SpecType",
    "Object",
    "Type",
)


class ParsedRef(NamedTuple):
    """Pieces of a component schema reference."""

    full_path: str
    schema_name: str
    resource_type: Optional[str]
    operation_type: Optional[str]


def parse_ref(ref: Any) -> Optional[ParsedRef]:
    """Split a ``#/components/schemas/...`` reference.

    Returns:
        ``None`` when *ref* is not a component schema reference. Otherwise a
        :class:`ParsedRef` whose ``resource_type`` is ``None`` when the schema
        name carries no recognised suffix.

    Example::

        >>> parse_ref("#/components/schemas/origin_poolCreateRequest")
        ParsedRef(full_path='#/components/schemas/origin_poolCreateRequest',
                  schema_name='origin_poolCreateRequest',
                  resource_type='origin_pool', operation_type='create')
    """
    if not ref or not isinstance(ref, str):
        return None
    match = _SCHEMA_REF_RE.search(ref)
    if not match:
        return None

    schema_name = match.group(1)
    resource_type: Optional[str] = None
    operation_type: Optional[str] = None

    for suffix, operation in OPERATION_SUFFIXES.items():
        if schema_name.endswith(suffix):
            resource_type = schema_name[: -len(suffix)]
            operation_type = operation
            break

    if not resource_type:
        for suffix in RESOURCE_SUFFIXES:
            if schema_name.endswith(suffix):
                resource_type = schema_name[: -len(suffix)]
                break

    return ParsedRef(ref, schema_name, resource_type or None, operation_type)


def normalize_resource_type(resource_type: str) -> str:
    """Convert snake_case or camelCase to kebab-case.

    ``"origin_pool"`` → ``"origin-pool"``,
    ``"httpLoadbalancer"`` → ``"http-loadbalancer"``.
    """
    text = resource_type.replace("_", "-")
    text = re.sub(r"([a-z])([A-Z])", r"\1-\2", text)
    return text.lower()


def resolve_pointer(ref: str, root: dict[str, Any]) -> Any:
    """Follow an internal JSON pointer (``#/...``) inside *root*.

    Handles RFC 6901 escaping (``~1`` for ``/``, ``~0`` for ``~``).

    Raises:
        SpecParseError: For external references or missing segments.
    """
    if not ref.startswith("#/"):
        raise SpecParseError(
            f"External $ref not supported: {ref}. Only internal references (#/...) are handled."
        )

    current: Any = root
    for segment in ref[2:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict):
            if segment not in current:
                raise SpecParseError(f"Cannot resolve $ref '{ref}': key '{segment}' not found")
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise SpecParseError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise SpecParseError(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}"
            )
    return current
