"""Shared plumbing for the built-in commands.

Every command resolves the effective configuration from the root context
(``--graph`` / ``--tools`` overrides stored by
:func:`~specgraph.app.main_callback`) and opens the graph or tool index it
needs through these helpers.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from specgraph.config import resolve_config
from specgraph.exceptions import SpecgraphError
from specgraph.graph import DependencyQuery, GraphStore
from specgraph.models import GlobalConfig
from specgraph.output import error, suggest
from specgraph.planner import DependencyResolver
from specgraph.tools import IndexToolLookup, load_tool_index


def resolve_settings(ctx: typer.Context) -> GlobalConfig:
    """Effective configuration for this invocation."""
    obj = ctx.obj or {}
    return resolve_config(cli_graph=obj.get("graph"), cli_tools=obj.get("tools"))


def open_query(ctx: typer.Context) -> DependencyQuery:
    """A :class:`DependencyQuery` over the configured graph document."""
    settings = resolve_settings(ctx)
    return DependencyQuery(GraphStore(settings.graph.graph_path))


def open_resolver(ctx: typer.Context) -> DependencyResolver:
    """A resolver over the configured graph and tool index."""
    settings = resolve_settings(ctx)
    query = DependencyQuery(GraphStore(settings.graph.graph_path))
    index = load_tool_index(settings.graph.tool_index_path)
    return DependencyResolver(query, IndexToolLookup(index))


def fail(exc: SpecgraphError) -> NoReturn:
    """Report *exc* on stderr and exit with its exit code."""
    error(str(exc))
    if "specgraph build" in str(exc):
        suggest("specgraph build SPEC... --out dependency-graph.json")
    raise typer.Exit(code=exc.exit_code)
