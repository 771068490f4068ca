"""Resolve a target resource into an ordered, tool-executable creation plan.

:class:`DependencyResolver` reads the dependency graph through a
:class:`~specgraph.graph.query.DependencyQuery` and maps resources to tools
through a :class:`~specgraph.tools.lookup.ToolLookup`. Resolution runs in
three phases:

1. **Transitive walk** -- prerequisites of the target are collected
   depth-first, prerequisite before dependent. Existing resources, and
   optional ones unless requested, are skipped together with the subtree
   behind them. A shared ``visited`` set avoids re-walking shared subtrees
   and ``max_depth`` bounds the descent.
2. **Topological sort** -- the flat list is re-ordered with Kahn's
   algorithm, re-deriving edges from each item's own ``requires``, because
   the walk alone does not order siblings that depend on each other.
3. **Step assembly** -- every item becomes a
   :class:`~specgraph.models.WorkflowStep` when a create tool exists
   (otherwise a warning is recorded and the step dropped). The target is
   always appended last.

Resolution never raises for graph content: an absent target is reported as
``ResolveResult(success=False, error_code="RESOURCE_NOT_FOUND")``.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Optional

from specgraph.exceptions import ResourceNotFoundError
from specgraph.graph.keys import UNKNOWN_DOMAIN, create_resource_key, reference_key
from specgraph.graph.query import DependencyQuery, format_subscription
from specgraph.models import (
    AlternativePath,
    Complexity,
    CreationPlan,
    OneOfChoice,
    ResolveParams,
    ResolveResult,
    ResourceReference,
    StepAction,
    WorkflowStep,
)
from specgraph.tools.lookup import ToolLookup

logger = logging.getLogger(__name__)

DEFAULT_INPUTS = ("namespace", "name")
"""Inputs every create call needs, regardless of the tool."""


def plan_complexity(prerequisite_steps: int) -> Complexity:
    """Size class of a plan from its number of prerequisite steps.

    The target step itself is not counted: up to two prerequisites is
    ``low``, up to five ``medium``, anything larger ``high``.
    """
    if prerequisite_steps > 5:
        return Complexity.HIGH
    if prerequisite_steps > 2:
        return Complexity.MEDIUM
    return Complexity.LOW


class DependencyResolver:
    """Build creation plans from a dependency graph and a tool catalogue.

    Args:
        query: Read access to the dependency graph.
        tool_lookup: Maps ``(domain, resource)`` to a create tool name and
            tool names to their parameter metadata.

    Example::

        resolver = DependencyResolver(DependencyQuery(store), IndexToolLookup(index))
        result = resolver.resolve(ResolveParams(domain="virtual", resource="http-loadbalancer"))
        if result.success:
            for step in result.plan.steps:
                print(step.step_number, step.tool_name)
    """

    def __init__(self, query: DependencyQuery, tool_lookup: ToolLookup) -> None:
        self._query = query
        self._tools = tool_lookup

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def resolve(self, params: ResolveParams) -> ResolveResult:
        """Resolve *params* into a :class:`~specgraph.models.CreationPlan`.

        Returns:
            ``ResolveResult(success=True, plan=...)`` or, when the target is
            not part of the graph, ``ResolveResult(success=False,
            error_code="RESOURCE_NOT_FOUND", error=...)``.
        """
        domain, resource = params.domain, params.resource
        if self._query.get_resource_dependencies(domain, resource) is None:
            return ResolveResult(
                success=False,
                error=(
                    f"Resource '{domain}/{resource}' not found in dependency graph. "
                    f"Run 'specgraph deps resources {domain}' to list available resources."
                ),
                error_code=ResourceNotFoundError.error_code,
            )

        target_key = create_resource_key(domain, resource)
        existing = set(params.existing_resources)
        warnings: list[str] = []

        collected = self.resolve_transitive_dependencies(
            domain,
            resource,
            existing=existing,
            include_optional=params.include_optional,
            max_depth=params.max_depth,
        )
        ordered = self.topological_sort(collected, warnings)

        steps: list[WorkflowStep] = []
        for ref in ordered:
            ref_domain = ref.domain or UNKNOWN_DOMAIN
            tool_name = self._tools.find_create_tool(ref_domain, ref.resource_type)
            if tool_name is None:
                warnings.append(
                    f"No create tool found for {ref_domain}/{ref.resource_type}. "
                    "This resource may need to be created manually."
                )
                continue
            steps.append(
                self._make_step(
                    len(steps) + 1,
                    ref_domain,
                    ref.resource_type,
                    tool_name,
                    existing,
                    optional=not ref.required,
                )
            )
        prerequisite_steps = len(steps)

        if target_key in existing:
            warnings.append(
                f"Target resource {target_key} is listed as existing; "
                "its create step is kept as the final step."
            )
        target_tool = self._tools.find_create_tool(domain, resource)
        if target_tool is None:
            warnings.append(f"No create tool found for target resource {target_key}.")
        steps.append(
            self._make_step(len(steps) + 1, domain, resource, target_tool, existing, optional=False)
        )

        subscriptions = [
            format_subscription(sub)
            for sub in self._query.get_subscription_requirements(domain, resource)
        ]

        alternatives: list[AlternativePath] = []
        if params.expand_alternatives:
            for group in self._query.get_one_of_groups(domain, resource):
                for option in group.options:
                    alternatives.append(
                        AlternativePath(
                            choice_field=group.choice_field,
                            selected_option=option,
                            description=f"Alternative using {option} for {group.choice_field}",
                        )
                    )

        plan = CreationPlan(
            target_resource=resource,
            target_domain=domain,
            total_steps=len(steps),
            steps=steps,
            warnings=warnings,
            alternatives=alternatives,
            subscriptions=subscriptions,
            existing_resources=list(params.existing_resources) or None,
            complexity=plan_complexity(prerequisite_steps),
        )
        logger.debug(
            "Resolved %s into %d steps with %d warnings", target_key, len(steps), len(warnings)
        )
        return ResolveResult(success=True, plan=plan)

    def resolve_transitive_dependencies(
        self,
        domain: str,
        resource: str,
        existing: Iterable[str] = (),
        include_optional: bool = False,
        max_depth: int = 10,
    ) -> list[ResourceReference]:
        """Flat, prerequisite-first list of everything *resource* still needs.

        A prerequisite that already exists, or that is optional while
        *include_optional* is false, is skipped along with everything only
        reachable through it. The list may contain the same resource more
        than once when several dependents share it; :meth:`topological_sort`
        merges the copies.
        """
        existing_keys = set(existing)
        root_key = create_resource_key(domain, resource)
        visited: set[str] = set()

        def walk(current_domain: str, current_resource: str, depth: int) -> list[ResourceReference]:
            key = create_resource_key(current_domain, current_resource)
            if key in visited or depth > max_depth:
                return []
            visited.add(key)

            found: list[ResourceReference] = []
            for prereq in self._query.get_prerequisite_resources(current_domain, current_resource):
                if not prereq.required and not include_optional:
                    continue
                prereq_key = reference_key(prereq)
                if prereq_key in existing_keys or prereq_key == root_key:
                    continue
                found.extend(
                    walk(prereq.domain or UNKNOWN_DOMAIN, prereq.resource_type, depth + 1)
                )
                found.append(prereq)
            return found

        return walk(domain, resource, 0)

    def topological_sort(
        self,
        items: list[ResourceReference],
        warnings: Optional[list[str]] = None,
    ) -> list[ResourceReference]:
        """Order *items* so every prerequisite precedes its dependents.

        Kahn's algorithm over the items' own ``requires`` edges, restricted
        to edges between items. Zero in-degree items are queued in list order
        (FIFO), so the result is deterministic. Items caught in a cycle never
        reach in-degree zero; they are appended in their original order and,
        when *warnings* is given, a warning names them.

        A resource listed more than once keeps its first occurrence, marked
        required if any occurrence is.
        """
        unique: dict[str, ResourceReference] = {}
        for ref in items:
            key = reference_key(ref)
            first = unique.get(key)
            if first is None:
                unique[key] = ref
            elif ref.required and not first.required:
                unique[key] = first.model_copy(update={"required": True})

        dependents: dict[str, list[str]] = {key: [] for key in unique}
        in_degree: dict[str, int] = {key: 0 for key in unique}
        for key, ref in unique.items():
            for prereq in self._query.get_prerequisite_resources(
                ref.domain or UNKNOWN_DOMAIN, ref.resource_type
            ):
                prereq_key = reference_key(prereq)
                if prereq_key in unique and prereq_key != key:
                    dependents[prereq_key].append(key)
                    in_degree[key] += 1

        queue = deque(key for key, degree in in_degree.items() if degree == 0)
        ordered: list[str] = []
        while queue:
            key = queue.popleft()
            ordered.append(key)
            for dependent in dependents[key]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        if len(ordered) < len(unique):
            placed = set(ordered)
            leftover = [key for key in unique if key not in placed]
            logger.debug("Dependency cycle among %s", leftover)
            if warnings is not None:
                warnings.append(
                    "Dependency cycle detected among "
                    f"{', '.join(leftover)}; these steps keep their discovery order."
                )
            ordered.extend(leftover)

        return [unique[key] for key in ordered]

    def get_required_inputs(self, tool_name: Optional[str]) -> list[str]:
        """Inputs a create call needs: path params, required params, namespace and name."""
        tool = self._tools.get_tool(tool_name) if tool_name else None
        if tool is None:
            return list(DEFAULT_INPUTS)
        inputs = [*tool.path_parameters, *tool.required_params, *DEFAULT_INPUTS]
        return list(dict.fromkeys(inputs))

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _make_step(
        self,
        step_number: int,
        domain: str,
        resource: str,
        tool_name: Optional[str],
        existing: set[str],
        optional: bool,
    ) -> WorkflowStep:
        depends_on = [
            key
            for key in self._query.get_prerequisites(domain, resource)
            if key not in existing
        ]
        groups = self._query.get_one_of_groups(domain, resource)
        choices = [
            OneOfChoice(field=g.choice_field, options=list(g.options), description=g.description)
            for g in groups
        ]
        return WorkflowStep(
            step_number=step_number,
            action=StepAction.CREATE,
            domain=domain,
            resource=resource,
            tool_name=tool_name,
            depends_on=depends_on,
            optional=optional,
            required_inputs=self.get_required_inputs(tool_name),
            one_of_choices=choices or None,
        )
