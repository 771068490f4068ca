"""Resource dependency graph -- build, validate, persist, and query.

Typical usage::

    from specgraph.graph import GraphStore, DependencyQuery, build_dependency_graph, save_graph

    graph = build_dependency_graph(operations)
    save_graph(graph, "dependency-graph.json")

    query = DependencyQuery(GraphStore("dependency-graph.json"))
    query.get_creation_order("virtual", "http-loadbalancer")

Sub-modules:

* :mod:`~specgraph.graph.keys` -- ``"{domain}/{resource}"`` key helpers.
* :mod:`~specgraph.graph.builder` -- aggregation, deduplication, reverse
  index and per-resource creation order.
* :mod:`~specgraph.graph.validator` -- cycle and dangling-reference
  diagnostics.
* :mod:`~specgraph.graph.store` -- JSON (de)serialisation and the cached
  :class:`GraphStore`.
* :mod:`~specgraph.graph.query` -- :class:`DependencyQuery` read-only
  accessors.
"""

from specgraph.graph.builder import (
    build_dependency_graph,
    build_dependency_graph_from_specs,
    compute_creation_order,
)
from specgraph.graph.keys import create_resource_key, parse_resource_key, reference_key
from specgraph.graph.query import DependencyQuery
from specgraph.graph.store import GraphStore, deserialize_graph, save_graph, serialize_graph
from specgraph.graph.validator import find_dangling_references, validate_graph

__all__ = [
    "DependencyQuery",
    "GraphStore",
    "build_dependency_graph",
    "build_dependency_graph_from_specs",
    "compute_creation_order",
    "create_resource_key",
    "deserialize_graph",
    "find_dangling_references",
    "parse_resource_key",
    "reference_key",
    "save_graph",
    "serialize_graph",
    "validate_graph",
]
