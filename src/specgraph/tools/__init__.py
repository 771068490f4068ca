"""Tool catalogue and create-tool lookup used by the planner.

* :mod:`~specgraph.tools.index` -- :class:`ToolIndex`, text search, and the
  ``tool-index.json`` document.
* :mod:`~specgraph.tools.lookup` -- the :class:`ToolLookup` protocol and its
  index-backed implementation :class:`IndexToolLookup`.
"""

from specgraph.tools.index import (
    SearchResult,
    ToolIndex,
    load_tool_index,
    save_tool_index,
)
from specgraph.tools.lookup import IndexToolLookup, ToolLookup

__all__ = [
    "IndexToolLookup",
    "SearchResult",
    "ToolIndex",
    "ToolLookup",
    "load_tool_index",
    "save_tool_index",
]
