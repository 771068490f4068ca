"""Build command -- extract dependencies from domain specs and write the graph.

``specgraph build`` loads one or more OpenAPI domain specs, extracts every
operation with its references, oneOf groups and subscription hints, builds
the dependency graph and writes it together with the tool index the planner
uses to map resources to create tools.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

from specgraph.cache import SpecCache
from specgraph.commands.common import fail, resolve_settings
from specgraph.config import DEFAULT_TOOL_INDEX_FILENAME, get_cache_dir
from specgraph.exceptions import InvalidUsageError, SpecgraphError
from specgraph.graph import build_dependency_graph, save_graph
from specgraph.models import GraphBuildOptions
from specgraph.output import debug, info, print_document, success
from specgraph.parser import domain_from_source, extract_domain_specs, load_spec
from specgraph.tools import ToolIndex, save_tool_index


def build_command(
    ctx: typer.Context,
    specs: list[str] = typer.Argument(
        ..., help="Domain spec files or URLs ('-' reads stdin)."
    ),
    out: Optional[str] = typer.Option(
        None, "--out", "-o", help="Where to write the dependency graph."
    ),
    tools: Optional[str] = typer.Option(
        None, "--tools", help="Where to write the tool index."
    ),
    max_depth: Optional[int] = typer.Option(
        None, "--max-depth", help="Depth limit for creation-order traversal."
    ),
    generated_at: Optional[str] = typer.Option(
        None, "--generated-at", help="Fixed ISO-8601 timestamp for reproducible output."
    ),
    no_reverse: bool = typer.Option(
        False, "--no-reverse", help="Skip the reverse dependency index."
    ),
    no_order: bool = typer.Option(
        False, "--no-order", help="Skip per-resource creation order."
    ),
    prefix: Optional[str] = typer.Option(
        None, "--prefix", help="Prefix of generated tool names."
    ),
) -> None:
    """Build the dependency graph and tool index from domain specs.

    Example::

        specgraph build specs/virtual.json specs/network.json --out graph.json
    """
    try:
        settings = resolve_settings(ctx)
        graph_path = Path(out or settings.graph.graph_path)
        if tools:
            tool_path = Path(tools)
        elif out:
            tool_path = graph_path.parent / DEFAULT_TOOL_INDEX_FILENAME
        else:
            tool_path = Path(settings.graph.tool_index_path)
        tool_prefix = prefix or settings.graph.tool_prefix

        cache: Optional[SpecCache] = None
        if any(s.startswith(("http://", "https://")) for s in specs):
            cache = SpecCache(get_cache_dir(), settings.cache)

        raw_specs: dict[str, dict[str, Any]] = {}
        source_files: dict[str, str] = {}
        try:
            for source in specs:
                raw = load_spec(source, cache=cache)
                domain = domain_from_source(source, raw)
                if domain in raw_specs:
                    raise InvalidUsageError(
                        f"Domain '{domain}' given twice ({source_files[domain]} and {source})"
                    )
                raw_specs[domain] = raw
                source_files[domain] = source
                debug(f"Loaded {source} as domain '{domain}'")
        finally:
            if cache is not None:
                cache.close()

        operations = extract_domain_specs(
            raw_specs, tool_prefix=tool_prefix, source_files=source_files
        )
        info(f"Extracted {len(operations)} operations from {len(raw_specs)} domain(s)")

        options = GraphBuildOptions(
            compute_creation_order=not no_order,
            build_reverse_deps=not no_reverse,
            max_depth=max_depth if max_depth is not None else settings.graph.max_depth,
            generated_at=generated_at,
        )
        graph = build_dependency_graph(operations, options)
        save_graph(graph, graph_path)
        index = ToolIndex.from_operations(operations)
        save_tool_index(index, tool_path)
    except SpecgraphError as exc:
        fail(exc)

    success(f"Wrote dependency graph with {graph.total_resources} resources to {graph_path}")
    print_document(
        {
            "graph": str(graph_path),
            "toolIndex": str(tool_path),
            "domains": list(raw_specs),
            "operations": len(operations),
            "resources": graph.total_resources,
            "tools": len(index),
            "addonServices": list(graph.addon_service_map),
        }
    )
