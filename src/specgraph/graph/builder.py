"""Build the resource dependency graph from extracted operations.

The builder is the batch half of the pipeline. It receives every
:class:`~specgraph.models.ParsedOperation` of an API catalogue and folds them
into one :class:`~specgraph.models.ResourceDependencies` record per resource
type:

1. Operations are grouped by resource key (``"{domain}/{resource}"``).
2. References, oneOf groups and subscriptions contributed by all of a
   resource's operations are unioned. Create, get, list, replace and delete
   may each reveal different reference fields.
3. References are deduplicated by target key with ``required`` and ``inline``
   OR-merged. oneOf groups and subscriptions are deduplicated by
   ``choice_field`` / ``addon_service``; the first occurrence wins.
4. Optionally a reverse index (``required_by`` and
   ``reverse_dependencies``) and a per-resource creation order are computed.
5. Resources are indexed by the addon services they require.

The resulting graph is meant to be serialised once (see
:mod:`specgraph.graph.store`) and never mutated afterwards.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional

from specgraph.graph.keys import create_resource_key, reference_key
from specgraph.models import (
    DependencyGraph,
    GraphBuildOptions,
    OneOfGroup,
    ParsedOperation,
    ResourceDependencies,
    ResourceReference,
    SubscriptionRequirement,
)

logger = logging.getLogger(__name__)

GRAPH_VERSION = "1.0.0"
"""Schema version written into every graph document."""


def build_dependency_graph(
    operations: Iterable[ParsedOperation],
    options: Optional[GraphBuildOptions] = None,
) -> DependencyGraph:
    """Build a complete dependency graph from parsed operations.

    Args:
        operations: Every operation of the catalogue, in any order. The order
            only matters for "first occurrence wins" deduplication and for
            the iteration order of the resulting mappings.
        options: Build options. Defaults to :class:`GraphBuildOptions` with
            all features enabled and ``max_depth=10``.

    Returns:
        A fully populated :class:`~specgraph.models.DependencyGraph`.

    Example::

        ops = extract_domain_specs({"virtual": raw_virtual, "network": raw_network})
        graph = build_dependency_graph(ops, GraphBuildOptions(generated_at="2026-01-01T00:00:00Z"))
        graph.dependencies["virtual/http-loadbalancer"].creation_order
        # ['certificates/certificate', 'network/origin-pool', 'virtual/http-loadbalancer']
    """
    opts = options or GraphBuildOptions()

    grouped: dict[str, list[ParsedOperation]] = {}
    for op in operations:
        grouped.setdefault(create_resource_key(op.domain, op.resource), []).append(op)

    dependencies: dict[str, ResourceDependencies] = {}
    for key, ops in grouped.items():
        refs: list[ResourceReference] = []
        groups: list[OneOfGroup] = []
        subs: list[SubscriptionRequirement] = []
        for op in ops:
            refs.extend(op.dependencies)
            groups.extend(op.one_of_groups)
            subs.extend(op.subscription_requirements)

        requires = deduplicate_references(refs)
        if not opts.detect_inline_refs:
            requires = [ref.model_copy(update={"inline": False}) for ref in requires]

        dependencies[key] = ResourceDependencies(
            resource=ops[0].resource,
            domain=ops[0].domain,
            requires=requires,
            one_of_groups=deduplicate_one_of_groups(groups),
            subscriptions=deduplicate_subscriptions(subs),
        )

    reverse_dependencies: dict[str, list[ResourceReference]] = {}
    if opts.build_reverse_deps:
        reverse_dependencies = build_reverse_dependencies(dependencies)

    if opts.compute_creation_order:
        for key, deps in dependencies.items():
            deps.creation_order = compute_creation_order(key, dependencies, opts.max_depth)

    addon_service_map: dict[str, list[str]] = {}
    for key, deps in dependencies.items():
        for sub in deps.subscriptions:
            keys = addon_service_map.setdefault(sub.addon_service, [])
            if key not in keys:
                keys.append(key)

    logger.debug(
        "Built dependency graph: %d resources, %d edges, %d addon services",
        len(dependencies),
        sum(len(d.requires) for d in dependencies.values()),
        len(addon_service_map),
    )

    return DependencyGraph(
        version=GRAPH_VERSION,
        generated_at=opts.generated_at or _utc_timestamp(),
        total_resources=len(dependencies),
        dependencies=dependencies,
        addon_service_map=addon_service_map,
        reverse_dependencies=reverse_dependencies,
    )


def build_dependency_graph_from_specs(
    specs: Iterable[Iterable[ParsedOperation]],
    options: Optional[GraphBuildOptions] = None,
) -> DependencyGraph:
    """Build a graph from several per-spec operation lists."""
    return build_dependency_graph((op for spec in specs for op in spec), options)


def deduplicate_references(refs: Iterable[ResourceReference]) -> list[ResourceReference]:
    """Collapse references to the same target into one.

    ``required`` and ``inline`` are OR-merged across duplicates; every other
    field comes from the first occurrence. Output order follows first
    occurrence.
    """
    seen: dict[str, ResourceReference] = {}
    for ref in refs:
        key = reference_key(ref)
        existing = seen.get(key)
        if existing is None:
            seen[key] = ref.model_copy()
        else:
            seen[key] = existing.model_copy(
                update={
                    "required": existing.required or ref.required,
                    "inline": existing.inline or ref.inline,
                }
            )
    return list(seen.values())


def deduplicate_one_of_groups(groups: Iterable[OneOfGroup]) -> list[OneOfGroup]:
    """Keep the first oneOf group for each ``choice_field``."""
    seen: dict[str, OneOfGroup] = {}
    for group in groups:
        seen.setdefault(group.choice_field, group)
    return list(seen.values())


def deduplicate_subscriptions(
    subs: Iterable[SubscriptionRequirement],
) -> list[SubscriptionRequirement]:
    """Keep the first subscription requirement for each ``addon_service``."""
    seen: dict[str, SubscriptionRequirement] = {}
    for sub in subs:
        seen.setdefault(sub.addon_service, sub)
    return list(seen.values())


def build_reverse_dependencies(
    dependencies: dict[str, ResourceDependencies],
) -> dict[str, list[ResourceReference]]:
    """Populate ``required_by`` in place and return the global reverse index.

    For every edge A -> B a back-reference describing A (carrying the edge's
    ``field_path``, ``required`` and ``inline``) is appended to
    ``reverse[B]``, and to ``B.required_by`` when B itself is part of the
    graph. Targets outside the graph still get a reverse entry so that
    dependents of external resources remain discoverable.
    """
    reverse: dict[str, list[ResourceReference]] = {}
    for deps in dependencies.values():
        for ref in deps.requires:
            target_key = reference_key(ref)
            back_ref = ResourceReference(
                resource_type=deps.resource,
                domain=deps.domain,
                field_path=ref.field_path,
                required=ref.required,
                inline=ref.inline,
            )
            reverse.setdefault(target_key, []).append(back_ref)

            target = dependencies.get(target_key)
            if target is not None:
                target.required_by.append(back_ref.model_copy())
    return reverse


def compute_creation_order(
    resource_key: str,
    dependencies: dict[str, ResourceDependencies],
    max_depth: int = 10,
) -> list[str]:
    """Return a prerequisite-first creation order ending with *resource_key*.

    Depth-first post-order traversal over ``requires`` with a ``visited`` set
    (fully processed) and an ``in_progress`` set (on the current path). A key
    met while in progress closes a cycle; it is skipped without recording an
    edge. Descent stops once the depth exceeds *max_depth*. Keys absent from
    *dependencies* are treated as leaves.

    The traversal uses an explicit stack, so deep chains are not limited by
    the interpreter's recursion limit. The result terminates for any finite
    graph and contains *resource_key* exactly once, as its last element.

    Args:
        resource_key: The resource to order, as ``"{domain}/{resource}"``.
        dependencies: All resource records of the graph.
        max_depth: Maximum traversal depth below *resource_key*.

    Returns:
        Resource keys in creation order.
    """
    order: list[str] = []
    visited: set[str] = set()
    in_progress: set[str] = set()
    stack: list[tuple[str, int, Iterator[str]]] = []

    def push(key: str, depth: int) -> None:
        in_progress.add(key)
        deps = dependencies.get(key)
        children = [reference_key(ref) for ref in deps.requires] if deps else []
        stack.append((key, depth, iter(children)))

    # The root is entered regardless of max_depth so it is always emitted.
    push(resource_key, 0)

    while stack:
        key, depth, children = stack[-1]
        child = next(children, None)
        if child is not None:
            if depth + 1 <= max_depth and child not in in_progress and child not in visited:
                push(child, depth + 1)
            continue
        stack.pop()
        in_progress.discard(key)
        visited.add(key)
        order.append(key)

    return order


def _utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
