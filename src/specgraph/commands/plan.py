"""Plan command -- resolve a creation plan for a target resource.

Prints the plan as Markdown (Rich or plain), as the full camelCase JSON
document with ``--json``, or as the compact ``{success, steps}`` form with
``--compact``. An unknown target exits with status 4.
"""

from __future__ import annotations

from typing import Optional

import typer

from specgraph.commands.common import fail, open_resolver, resolve_settings
from specgraph.exceptions import ResourceNotFoundError, SpecgraphError
from specgraph.models import ResolveParams
from specgraph.output import OutputFormat, get_output, print_markdown, warning
from specgraph.planner import format_creation_plan, generate_compact_plan


def plan_command(
    ctx: typer.Context,
    domain: str = typer.Argument(..., help="Domain of the target resource."),
    resource: str = typer.Argument(..., help="Target resource, e.g. http-loadbalancer."),
    existing: Optional[list[str]] = typer.Option(
        None, "--existing", "-e", help="Resource key that already exists (repeatable)."
    ),
    include_optional: bool = typer.Option(
        False, "--include-optional", help="Also plan optional prerequisites."
    ),
    max_depth: Optional[int] = typer.Option(
        None, "--max-depth", help="Depth limit for prerequisite traversal."
    ),
    expand_alternatives: bool = typer.Option(
        False, "--expand-alternatives", help="List oneOf alternatives of the target."
    ),
    compact: bool = typer.Option(
        False, "--compact", help="Print only tool, resource, inputs and choices."
    ),
) -> None:
    """Resolve the steps needed to create a resource.

    Example::

        specgraph plan virtual http-loadbalancer --existing certificates/certificate
    """
    try:
        settings = resolve_settings(ctx)
        resolver = open_resolver(ctx)
        params = ResolveParams(
            domain=domain,
            resource=resource,
            existing_resources=list(existing or []),
            include_optional=include_optional,
            max_depth=max_depth if max_depth is not None else settings.graph.max_depth,
            expand_alternatives=expand_alternatives,
        )
        result = resolver.resolve(params)
        if not result.success:
            raise ResourceNotFoundError(result.error or f"Resource '{domain}/{resource}' not found")
    except SpecgraphError as exc:
        fail(exc)

    output = get_output()
    if compact:
        output.print_document(generate_compact_plan(result))
        return
    if output.format == OutputFormat.JSON:
        output.print_document(result.to_document())
        return

    assert result.plan is not None
    print_markdown(format_creation_plan(result.plan))
    for message in result.plan.warnings:
        warning(message)
