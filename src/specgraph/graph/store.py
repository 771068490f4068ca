"""Persistence and in-memory caching of the dependency graph document.

The graph is written once by ``specgraph build`` as a single JSON document
and then read many times by queries and the resolver. :class:`GraphStore`
owns the cached copy: it loads the document on first use, hands out the same
:class:`~specgraph.models.DependencyGraph` afterwards, and can be cleared to
force a reload (tests, hot reload after a rebuild).

Several stores can coexist, each with its own path or in-memory graph, so
tests never share hidden module state.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from specgraph.config import _atomic_write
from specgraph.exceptions import GraphLoadError
from specgraph.models import DependencyGraph

logger = logging.getLogger(__name__)

GRAPH_FILENAME = "dependency-graph.json"
"""Default file name of the serialized graph."""


def serialize_graph(graph: DependencyGraph) -> str:
    """Serialize *graph* to the camelCase JSON document format.

    Optional fields that are unset (e.g. a oneOf group without description)
    are omitted.
    """
    data = graph.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(data, indent=2, ensure_ascii=False)


def deserialize_graph(text: str) -> DependencyGraph:
    """Parse a graph document produced by :func:`serialize_graph`.

    Raises:
        GraphLoadError: If *text* is not JSON or does not match the graph
            document shape.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise GraphLoadError(f"Dependency graph is not valid JSON: {exc}") from exc
    try:
        return DependencyGraph.model_validate(data)
    except ValidationError as exc:
        raise GraphLoadError(f"Dependency graph has an invalid shape: {exc}") from exc


def save_graph(graph: DependencyGraph, path: str | Path) -> Path:
    """Write *graph* to *path* atomically and return the resolved path."""
    target = Path(path)
    _atomic_write(target, serialize_graph(graph) + "\n")
    logger.debug("Wrote dependency graph with %d resources to %s", graph.total_resources, target)
    return target


class GraphStore:
    """Build-once, reuse-many holder for a dependency graph.

    Args:
        path: Location of the serialized graph document. Read lazily on the
            first :meth:`load`.
        graph: An already-built graph. When given, the store never touches
            disk and :meth:`clear` has no effect.

    Example::

        store = GraphStore("dependency-graph.json")
        graph = store.load()      # reads the file
        graph = store.load()      # cached
        store.clear()             # next load() reads the file again
    """

    def __init__(
        self,
        path: Optional[str | Path] = None,
        graph: Optional[DependencyGraph] = None,
    ) -> None:
        self._path = Path(path) if path is not None else None
        self._pinned = graph
        self._cached: Optional[DependencyGraph] = graph

    @property
    def path(self) -> Optional[Path]:
        """The document path, or ``None`` for an in-memory store."""
        return self._path

    @property
    def is_loaded(self) -> bool:
        """Whether a graph is currently cached."""
        return self._cached is not None

    def load(self) -> DependencyGraph:
        """Return the cached graph, reading the document on a cache miss.

        Raises:
            GraphLoadError: If the store has no path and no graph, the file
                does not exist, or its content is not a valid graph document.
        """
        if self._cached is not None:
            return self._cached

        if self._path is None:
            raise GraphLoadError("No dependency graph configured.")
        if not self._path.is_file():
            raise GraphLoadError(
                f"Dependency graph not found at {self._path}. "
                "Run 'specgraph build' to create it."
            )

        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise GraphLoadError(f"Cannot read dependency graph {self._path}: {exc}") from exc

        self._cached = deserialize_graph(text)
        logger.debug("Loaded dependency graph from %s", self._path)
        return self._cached

    def clear(self) -> None:
        """Drop the cached graph so the next :meth:`load` rereads the file."""
        self._cached = self._pinned
