"""Map resources to the generated tool that creates them.

The resolver only needs two questions answered, captured by the
:class:`ToolLookup` protocol: which tool creates ``domain/resource``, and what
does a named tool look like. :class:`IndexToolLookup` answers both from a
:class:`~specgraph.tools.index.ToolIndex`.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from specgraph.models import ToolIndexEntry
from specgraph.tools.index import SearchResult, ToolIndex, _tokenize

logger = logging.getLogger(__name__)


class ToolLookup(Protocol):
    """What :class:`~specgraph.planner.resolver.DependencyResolver` needs from a tool catalogue."""

    def find_create_tool(self, domain: str, resource: str) -> Optional[str]:
        """Name of the tool that creates *resource* in *domain*, or ``None``."""
        ...

    def get_tool(self, name: str) -> Optional[ToolIndexEntry]:
        """Index entry for a tool name, or ``None``."""
        ...


class IndexToolLookup:
    """:class:`ToolLookup` backed by a :class:`~specgraph.tools.index.ToolIndex`.

    Create-tool lookups try, in order:

    1. an exact ``(domain, resource, "create")`` entry;
    2. a ranked search for ``"{resource} create"`` restricted to the domain;
    3. a global ranked search for the underscore form of the resource.

    A search hit only counts when it matched every term of the resource
    name; every create tool matches the ``create`` verb on its own.

    Results (including misses) are memoized per instance; :meth:`clear`
    forgets them.

    Args:
        index: The tool catalogue to search.
    """

    def __init__(self, index: ToolIndex) -> None:
        self._index = index
        self._create_tools: dict[tuple[str, str], Optional[str]] = {}

    @property
    def index(self) -> ToolIndex:
        return self._index

    def find_create_tool(self, domain: str, resource: str) -> Optional[str]:
        key = (domain, resource)
        if key not in self._create_tools:
            self._create_tools[key] = self._find_create_tool(domain, resource)
        return self._create_tools[key]

    def get_tool(self, name: str) -> Optional[ToolIndexEntry]:
        return self._index.get(name)

    def clear(self) -> None:
        """Forget memoized lookups."""
        self._create_tools.clear()

    def _find_create_tool(self, domain: str, resource: str) -> Optional[str]:
        exact = self._index.find(domain, resource, "create")
        if exact is not None:
            return exact.name

        name = _best_match(
            self._index.search(
                f"{resource} create", domains=[domain], operations=["create"], limit=5
            ),
            resource,
        )
        if name is not None:
            return name

        name = _best_match(
            self._index.search(
                f"{resource.replace('-', '_')} create", operations=["create"], limit=5
            ),
            resource,
        )
        if name is not None:
            logger.debug("Create tool for %s/%s found outside its domain: %s", domain, resource, name)
        return name


def _best_match(results: list[SearchResult], resource: str) -> Optional[str]:
    """Top result whose matched terms cover every term of *resource*."""
    wanted = set(_tokenize(resource)) - {"create"}
    if not wanted:
        return None
    for result in results:
        if wanted <= set(result.matched_terms):
            return result.tool.name
    return None
