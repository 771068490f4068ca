"""Resource key helpers.

A resource key identifies a resource type across the whole catalogue and is
literally ``"{domain}/{resource}"``. References whose domain could not be
determined are keyed under :data:`UNKNOWN_DOMAIN` instead of being dropped.
"""

from __future__ import annotations

from specgraph.models import ResourceReference

UNKNOWN_DOMAIN = "unknown"
"""Domain used for references that carry no domain."""


def create_resource_key(domain: str, resource: str) -> str:
    """Build the ``"{domain}/{resource}"`` key for a resource type."""
    return f"{domain}/{resource}"


def parse_resource_key(key: str) -> tuple[str, str]:
    """Split a resource key into ``(domain, resource)``.

    Only the first ``/`` separates the domain, so resource names containing
    slashes survive a round trip. A key without a separator yields an empty
    resource.

    Example::

        >>> parse_resource_key("virtual/http-loadbalancer")
        ('virtual', 'http-loadbalancer')
    """
    domain, _, resource = key.partition("/")
    return domain, resource


def reference_key(ref: ResourceReference) -> str:
    """Return the key a reference points at, defaulting a missing domain."""
    return create_resource_key(ref.domain or UNKNOWN_DOMAIN, ref.resource_type)
