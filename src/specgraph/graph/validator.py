"""Whole-graph diagnostics.

Creation-order computation breaks cycles silently, so this module is the only
place where cycles become visible. Both checks are read-only: they never
mutate the graph and never raise.
"""

from __future__ import annotations

from typing import Iterator

from specgraph.graph.keys import reference_key
from specgraph.models import DependencyGraph


def validate_graph(graph: DependencyGraph) -> list[list[str]]:
    """Find dependency cycles in *graph*.

    Runs a three-colour depth-first search (visited set, recursion-stack set
    and path stack) from every resource in insertion order. Whenever an edge
    leads back to a key on the current recursion stack, the cycle is recorded
    as the path slice from that key, closed by repeating it.

    Args:
        graph: The dependency graph to check.

    Returns:
        A list of cycle paths, e.g. ``[["d/A", "d/B", "d/A"]]``. Empty when
        the graph is acyclic.
    """
    cycles: list[list[str]] = []
    visited: set[str] = set()
    on_stack: set[str] = set()
    path: list[str] = []
    stack: list[tuple[str, Iterator[str]]] = []

    def enter(key: str) -> None:
        if key in on_stack:
            start = path.index(key)
            cycles.append(path[start:] + [key])
            return
        if key in visited:
            return
        visited.add(key)
        on_stack.add(key)
        path.append(key)
        deps = graph.dependencies.get(key)
        children = [reference_key(ref) for ref in deps.requires] if deps else []
        stack.append((key, iter(children)))

    for root in graph.dependencies:
        if root in visited:
            continue
        enter(root)
        while stack:
            key, children = stack[-1]
            child = next(children, None)
            if child is not None:
                enter(child)
                continue
            stack.pop()
            path.pop()
            on_stack.discard(key)

    return cycles


def find_dangling_references(graph: DependencyGraph) -> list[tuple[str, str]]:
    """List edges whose target resource is not part of the graph.

    Returns:
        ``(source_key, target_key)`` pairs in graph order.
    """
    dangling: list[tuple[str, str]] = []
    for key, deps in graph.dependencies.items():
        for ref in deps.requires:
            target = reference_key(ref)
            if target not in graph.dependencies:
                dangling.append((key, target))
    return dangling
