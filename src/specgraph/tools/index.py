"""Tool index -- a lightweight catalogue of generated tools with text search.

Each generated tool is summarised by a :class:`~specgraph.models.ToolIndexEntry`
(name, domain, resource, operation, summary, parameters). The index is
derived from the extractor's operations during ``specgraph build`` and saved
next to the dependency graph as ``{"version": ..., "tools": [...]}``.

Search uses simple term matching rather than embeddings: every query term
scores 1.0 for an exact token match, 0.7 when contained in the tool's text
and 0.5 for a prefix match. The average is boosted for domain (x1.2),
operation (x1.3) and resource (x1.4) matches and capped at 1.0.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from specgraph.config import _atomic_write
from specgraph.exceptions import GraphLoadError
from specgraph.models import ParsedOperation, ToolIndexEntry

TOOL_INDEX_FILENAME = "tool-index.json"
"""Default file name of the serialized tool index."""

TOOL_INDEX_VERSION = "1.0.0"

_OPERATION_TERMS = ("create", "get", "list", "update", "delete", "patch")


@dataclass
class SearchResult:
    """A tool matched by :meth:`ToolIndex.search` with its relevance score."""

    tool: ToolIndexEntry
    score: float
    matched_terms: list[str] = field(default_factory=list)


class ToolIndex:
    """In-memory collection of :class:`~specgraph.models.ToolIndexEntry` objects.

    Args:
        entries: Tool entries in catalogue order. Later entries with a
            duplicate name replace earlier ones in name lookups only.
    """

    def __init__(self, entries: Iterable[ToolIndexEntry] = ()) -> None:
        self._entries = list(entries)
        self._by_name = {entry.name: entry for entry in self._entries}

    @classmethod
    def from_operations(cls, operations: Iterable[ParsedOperation]) -> "ToolIndex":
        """Derive an index from extracted operations."""
        return cls(
            ToolIndexEntry(
                name=op.tool_name,
                domain=op.domain,
                resource=op.resource,
                operation=op.operation,
                summary=op.summary,
                path_parameters=list(op.path_parameters),
                required_params=list(op.required_params),
                deprecated=op.deprecated,
            )
            for op in operations
        )

    @property
    def tools(self) -> list[ToolIndexEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, name: str) -> Optional[ToolIndexEntry]:
        """Return the tool called *name*, or ``None``."""
        return self._by_name.get(name)

    def find(self, domain: str, resource: str, operation: str) -> Optional[ToolIndexEntry]:
        """Return the first tool matching domain, resource and operation exactly."""
        for entry in self._entries:
            if (
                entry.domain == domain
                and entry.resource == resource
                and entry.operation == operation
            ):
                return entry
        return None

    def search(
        self,
        query: str,
        domains: Optional[Iterable[str]] = None,
        operations: Optional[Iterable[str]] = None,
        limit: int = 10,
        min_score: float = 0.1,
        exclude_deprecated: bool = False,
    ) -> list[SearchResult]:
        """Rank tools against a free-text query.

        Args:
            query: Search text, e.g. ``"origin pool create"``.
            domains: Restrict to these domains (case-insensitive).
            operations: Restrict to these operations (case-insensitive).
            limit: Maximum number of results.
            min_score: Drop results scoring below this threshold.
            exclude_deprecated: Skip tools flagged as deprecated.

        Returns:
            Results sorted by descending score; ties keep index order.
        """
        tools: Iterable[ToolIndexEntry] = self._entries
        if domains:
            domain_set = {d.lower() for d in domains}
            tools = [t for t in tools if t.domain.lower() in domain_set]
        if operations:
            op_set = {o.lower() for o in operations}
            tools = [t for t in tools if t.operation.lower() in op_set]
        if exclude_deprecated:
            tools = [t for t in tools if not t.deprecated]

        results: list[SearchResult] = []
        for tool in tools:
            score, matched = _score(query, tool)
            if score >= min_score:
                results.append(SearchResult(tool=tool, score=score, matched_terms=matched))

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:limit]


def load_tool_index(path: str | Path) -> ToolIndex:
    """Read a tool index document.

    Raises:
        GraphLoadError: If the file is missing, not JSON, or malformed.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise GraphLoadError(
            f"Tool index not found at {file_path}. Run 'specgraph build' with --tools."
        )
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
        entries = [ToolIndexEntry.model_validate(t) for t in data.get("tools", [])]
    except (json.JSONDecodeError, ValidationError, AttributeError) as exc:
        raise GraphLoadError(f"Invalid tool index at {file_path}: {exc}") from exc
    return ToolIndex(entries)


def save_tool_index(index: ToolIndex, path: str | Path) -> Path:
    """Write *index* atomically as ``{"version", "tools"}``."""
    target = Path(path)
    data = {
        "version": TOOL_INDEX_VERSION,
        "tools": [t.model_dump(mode="json", by_alias=True) for t in index.tools],
    }
    _atomic_write(target, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
    return target


# ------------------------------------------------------------------ #
# Scoring
# ------------------------------------------------------------------ #


def _normalize_text(text: str) -> str:
    """Lowercase, turn ``-``/``_`` into spaces, and drop punctuation."""
    text = re.sub(r"[-_]", " ", text.lower())
    return re.sub(r"[^a-z0-9\s]", "", text).strip()


def _tokenize(text: str) -> list[str]:
    return [term for term in _normalize_text(text).split() if len(term) > 1]


def _score(query: str, tool: ToolIndexEntry) -> tuple[float, list[str]]:
    """Return ``(score, matched_terms)`` for *tool* against *query*."""
    query_terms = _tokenize(query)
    if not query_terms:
        return 0.0, []

    tool_text = " ".join([tool.name, tool.domain, tool.resource, tool.operation, tool.summary])
    normalized_tool_text = _normalize_text(tool_text)
    tool_terms = set(_tokenize(tool_text))

    matched: list[str] = []
    match_count = 0.0
    for term in query_terms:
        if term in tool_terms:
            match_count += 1.0
        elif term in normalized_tool_text:
            match_count += 0.7
        elif any(t.startswith(term) for t in tool_terms):
            match_count += 0.5
        else:
            continue
        if term not in matched:
            matched.append(term)

    score = match_count / len(query_terms)

    first_word = query.split(" ")[0] if query else ""
    if _normalize_text(first_word) in _normalize_text(tool.domain):
        score *= 1.2

    lowered = query.lower()
    for op_term in _OPERATION_TERMS:
        if op_term in lowered and tool.operation == op_term:
            score *= 1.3
            break

    if _normalize_text(query) in _normalize_text(tool.resource):
        score *= 1.4

    return min(score, 1.0), matched
