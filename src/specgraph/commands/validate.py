"""Validate command -- report cycles and dangling references in the graph.

Creation-order computation breaks cycles silently, so this is where they
become visible. Exits non-zero on cycles only with ``--strict``.
"""

from __future__ import annotations

import typer

from specgraph.commands.common import fail, open_query
from specgraph.exceptions import SpecgraphError
from specgraph.exit_codes import EXIT_GENERIC_FAILURE
from specgraph.graph import find_dangling_references, validate_graph
from specgraph.output import OutputFormat, get_output, print_data, success, warning


def validate_command(
    ctx: typer.Context,
    strict: bool = typer.Option(
        False, "--strict", help="Exit with status 1 when cycles are found."
    ),
) -> None:
    """Check the dependency graph for cycles and dangling references."""
    try:
        graph = open_query(ctx).load_dependency_graph()
    except SpecgraphError as exc:
        fail(exc)

    cycles = validate_graph(graph)
    dangling = find_dangling_references(graph)
    output = get_output()

    if output.format == OutputFormat.JSON:
        output.print_document(
            {
                "valid": not cycles,
                "cycles": cycles,
                "danglingReferences": [
                    {"source": source, "target": target} for source, target in dangling
                ],
            }
        )
    else:
        if cycles:
            for cycle in cycles:
                print_data("cycle\t" + " -> ".join(cycle))
        else:
            success(f"No dependency cycles in {graph.total_resources} resources")
        for source, target in dangling:
            print_data(f"dangling\t{source} -> {target}")

    if cycles:
        warning(f"Found {len(cycles)} dependency cycle(s); creation order breaks them silently")
        if strict:
            raise typer.Exit(code=EXIT_GENERIC_FAILURE)
