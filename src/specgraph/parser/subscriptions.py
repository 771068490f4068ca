"""Addon subscription heuristics.

Some resources can only be created when the tenant subscribes to a licensed
addon service (WAAP, CDN, SecureMesh ...). The catalogue does not state this
per operation, so requirements are inferred from resource and domain names.
Every inferred requirement is advisory (``required=False``).
"""

from __future__ import annotations

from specgraph.models import SubscriptionRequirement

_ACRONYMS = frozenset({"F5XC", "WAAP", "CDN", "API", "WAF", "DNS"})
_TIERS = ("advanced", "standard", "premium", "basic", "enterprise")

WAAP_SERVICES = ["f5xc_waap_standard", "f5xc_waap_advanced"]
CDN_SERVICES = ["f5xc_content_delivery_network_standard"]
MESH_SERVICES = ["f5xc_securemesh_standard", "f5xc_securemesh_advanced"]
APPSTACK_SERVICES = ["f5xc_appstack_standard"]
SITE_SERVICES = ["f5xc_site_management_standard"]

_WAAP_RESOURCES = (
    "app-firewall",
    "waf",
    "service-policy",
    "rate-limiter",
    "api-definition",
    "api-security",
    "data-guard",
    "trusted-client",
    "malicious-user",
    "client-side-defense",
    "service-policy-set",
)
_WAAP_DOMAINS = ("waf", "api", "rate_limiting", "bot_and_threat_defense")
_CDN_RESOURCES = ("cdn-loadbalancer", "cdn-origin", "cdn-origin-pool")
_MESH_RESOURCES = ("site-mesh-group", "mesh-policy", "global-network")
_MESH_DOMAINS = ("service_mesh", "network_security")
_SITE_RESOURCES = ("site", "fleet", "token", "tunnel")


def format_addon_display_name(service_id: str) -> str:
    """Turn an addon id into a display name.

    ``"f5xc_waap_advanced"`` → ``"F5XC WAAP Advanced"``.
    """
    text = service_id
    if text.startswith("f5xc_"):
        text = "F5XC " + text[len("f5xc_"):]
    words = text.replace("_", " ").split(" ")
    return " ".join(
        word.upper() if word.upper() in _ACRONYMS else word[:1].upper() + word[1:]
        for word in words
    )


def extract_tier_from_addon(service_id: str) -> str:
    """Return the first tier keyword found in *service_id*, else ``"standard"``."""
    lowered = service_id.lower()
    for tier in _TIERS:
        if tier in lowered:
            return tier
    return "standard"


def map_resource_to_subscriptions(resource: str, domain: str) -> list[str]:
    """Addon service ids a resource may need, without duplicates."""
    services: list[str] = []

    if any(r in resource for r in _WAAP_RESOURCES) or domain in _WAAP_DOMAINS:
        services.extend(WAAP_SERVICES)
    if any(r in resource for r in _CDN_RESOURCES) or domain == "cdn":
        services.extend(CDN_SERVICES)
    if any(r in resource for r in _MESH_RESOURCES) or domain in _MESH_DOMAINS:
        services.extend(MESH_SERVICES)
    if domain == "managed_kubernetes" or "vk8s" in resource:
        services.extend(APPSTACK_SERVICES)
    if any(r in resource for r in _SITE_RESOURCES) or domain == "sites":
        services.extend(SITE_SERVICES)

    return list(dict.fromkeys(services))


def subscription_requirements_for(resource: str, domain: str) -> list[SubscriptionRequirement]:
    """Wrap :func:`map_resource_to_subscriptions` results as models."""
    return [
        SubscriptionRequirement(
            addon_service=service_id,
            display_name=format_addon_display_name(service_id),
            tier=extract_tier_from_addon(service_id),
            required=False,
        )
        for service_id in map_resource_to_subscriptions(resource, domain)
    ]
