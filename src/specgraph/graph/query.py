"""Read-only accessors over a cached dependency graph.

:class:`DependencyQuery` is what discovery tools and the resolver talk to.
Every accessor degrades gracefully: an unknown resource or addon service
yields an empty result, never an exception. Only loading the graph itself
(:meth:`DependencyQuery.load_dependency_graph`) can fail.
"""

from __future__ import annotations

from typing import Optional

from specgraph.graph.keys import create_resource_key, reference_key
from specgraph.graph.store import GraphStore
from specgraph.models import (
    DependencyAction,
    DependencyGraph,
    DependencyReport,
    DependencyStats,
    MutuallyExclusiveField,
    OneOfGroup,
    ResourceDependencies,
    ResourceReference,
    SubscriptionRequirement,
)


def format_resource_ref(ref: ResourceReference) -> str:
    """Render a reference as ``"domain/type (required) [inline allowed]"``."""
    required = " (required)" if ref.required else " (optional)"
    inline = " [inline allowed]" if ref.inline else ""
    return f"{reference_key(ref)}{required}{inline}"


def format_subscription(sub: SubscriptionRequirement) -> str:
    """Render a subscription as ``"Display Name (tier) - required"``."""
    suffix = " - required" if sub.required else ""
    return f"{sub.display_name} ({sub.tier}){suffix}"


class DependencyQuery:
    """Query facade bound to one :class:`~specgraph.graph.store.GraphStore`.

    Args:
        store: The store providing the graph. Loaded lazily on first access.
    """

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    @property
    def store(self) -> GraphStore:
        return self._store

    def load_dependency_graph(self) -> DependencyGraph:
        """Return the graph, loading and caching it on first use."""
        return self._store.load()

    def clear_cache(self) -> None:
        """Forget the cached graph so the next query reloads it."""
        self._store.clear()

    # ------------------------------------------------------------------ #
    # Per-resource accessors
    # ------------------------------------------------------------------ #

    def get_resource_dependencies(
        self, domain: str, resource: str
    ) -> Optional[ResourceDependencies]:
        """Return the dependency record for a resource, or ``None``."""
        graph = self.load_dependency_graph()
        return graph.dependencies.get(create_resource_key(domain, resource))

    def get_creation_order(self, domain: str, resource: str) -> list[str]:
        """Prerequisite-first creation order ending with the resource itself."""
        deps = self.get_resource_dependencies(domain, resource)
        return list(deps.creation_order) if deps else []

    def get_prerequisite_resources(self, domain: str, resource: str) -> list[ResourceReference]:
        """Resources that must exist before this one can be created."""
        deps = self.get_resource_dependencies(domain, resource)
        return list(deps.requires) if deps else []

    def get_dependent_resources(self, domain: str, resource: str) -> list[ResourceReference]:
        """Resources that reference this one."""
        deps = self.get_resource_dependencies(domain, resource)
        return list(deps.required_by) if deps else []

    def get_prerequisites(self, domain: str, resource: str) -> list[str]:
        """Prerequisite resource keys."""
        return [reference_key(ref) for ref in self.get_prerequisite_resources(domain, resource)]

    def get_dependents(self, domain: str, resource: str) -> list[str]:
        """Dependent resource keys from the global reverse index.

        Unlike :meth:`get_dependent_resources` this also answers for
        resources that are referenced but not themselves part of the graph.
        """
        graph = self.load_dependency_graph()
        refs = graph.reverse_dependencies.get(create_resource_key(domain, resource), [])
        return [reference_key(ref) for ref in refs]

    def get_one_of_groups(self, domain: str, resource: str) -> list[OneOfGroup]:
        """Mutually exclusive field groups of a resource."""
        deps = self.get_resource_dependencies(domain, resource)
        return list(deps.one_of_groups) if deps else []

    def get_subscription_requirements(
        self, domain: str, resource: str
    ) -> list[SubscriptionRequirement]:
        """Addon subscriptions a resource needs."""
        deps = self.get_resource_dependencies(domain, resource)
        return list(deps.subscriptions) if deps else []

    # ------------------------------------------------------------------ #
    # Subscriptions
    # ------------------------------------------------------------------ #

    def get_resources_requiring_subscription(self, addon_service: str) -> list[str]:
        """Resource keys that require *addon_service*."""
        graph = self.load_dependency_graph()
        return list(graph.addon_service_map.get(addon_service, []))

    def get_available_addon_services(self) -> list[str]:
        """All addon services referenced anywhere in the graph."""
        return list(self.load_dependency_graph().addon_service_map)

    # ------------------------------------------------------------------ #
    # Reports
    # ------------------------------------------------------------------ #

    def generate_dependency_report(
        self,
        domain: str,
        resource: str,
        action: DependencyAction = DependencyAction.FULL,
    ) -> DependencyReport:
        """Build a human-readable dependency summary.

        Only the sections selected by *action* are filled; ``FULL`` fills all
        of them. An unknown resource yields a report with every section empty.

        Args:
            domain: Domain of the resource, e.g. ``"virtual"``.
            resource: Resource name, e.g. ``"http-loadbalancer"``.
            action: Which section(s) to include.
        """
        report = DependencyReport(resource=resource, domain=domain)
        deps = self.get_resource_dependencies(domain, resource)
        if deps is None:
            return report

        full = action == DependencyAction.FULL
        if full or action == DependencyAction.PREREQUISITES:
            report.prerequisites = [format_resource_ref(ref) for ref in deps.requires]
        if full or action == DependencyAction.DEPENDENTS:
            report.dependents = [format_resource_ref(ref) for ref in deps.required_by]
        if full or action == DependencyAction.ONE_OF:
            report.mutually_exclusive_fields = [
                MutuallyExclusiveField(field=group.choice_field, options=list(group.options))
                for group in deps.one_of_groups
            ]
        if full or action == DependencyAction.SUBSCRIPTIONS:
            report.subscription_requirements = [
                format_subscription(sub) for sub in deps.subscriptions
            ]
        if full or action == DependencyAction.CREATION_ORDER:
            report.creation_sequence = list(deps.creation_order)
        return report

    def get_dependency_stats(self) -> DependencyStats:
        """Aggregate counts over the whole graph."""
        graph = self.load_dependency_graph()
        total_dependencies = 0
        total_groups = 0
        total_subs = 0
        for deps in graph.dependencies.values():
            total_dependencies += len(deps.requires)
            total_groups += len(deps.one_of_groups)
            total_subs += len(deps.subscriptions)

        return DependencyStats(
            total_resources=graph.total_resources,
            total_dependencies=total_dependencies,
            total_one_of_groups=total_groups,
            total_subscriptions=total_subs,
            addon_services=list(graph.addon_service_map),
            graph_version=graph.version,
            generated_at=graph.generated_at,
        )

    # ------------------------------------------------------------------ #
    # Browsing
    # ------------------------------------------------------------------ #

    def get_resources_in_domain(self, domain: str) -> list[str]:
        """Sorted resource names belonging to *domain*."""
        graph = self.load_dependency_graph()
        return sorted(d.resource for d in graph.dependencies.values() if d.domain == domain)

    def get_all_dependency_domains(self) -> list[str]:
        """Sorted, distinct domains present in the graph."""
        graph = self.load_dependency_graph()
        return sorted({d.domain for d in graph.dependencies.values()})
