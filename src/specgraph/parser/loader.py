"""Read raw OpenAPI documents for one domain each.

A source is an ``http(s)`` URL, a path on disk, or ``-`` for stdin. The
text may be JSON or YAML; the file extension or ``Content-Type`` decides
which decoder goes first. Downloads can be kept in a
:class:`~specgraph.cache.SpecCache` between builds.

The returned dicts feed
:func:`~specgraph.parser.extractor.extract_domain_specs`.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from specgraph.cache import SpecCache
from specgraph.exceptions import SpecParseError

logger = logging.getLogger(__name__)


def load_spec(source: str, cache: Optional[SpecCache] = None) -> dict[str, Any]:
    """Load an OpenAPI spec from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or ``'-'`` for stdin.
        cache: Optional cache consulted before, and filled after, a URL fetch.

    Returns:
        The parsed spec as a dictionary.

    Raises:
        SpecParseError: If the source cannot be loaded or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    if source.startswith(("http://", "https://")):
        return _load_from_url(source, cache)
    return _load_from_file(source)


def domain_from_source(source: str, spec: Optional[dict[str, Any]] = None) -> str:
    """Derive a domain name for a loaded spec.

    An explicit ``x-domain`` (or ``x-ves-domain``) extension on ``info``
    wins. Otherwise the file stem is used with a leading ``domain_`` or
    dotted vendor prefix stripped, e.g.
    ``specs/virtual.json`` → ``"virtual"``.
    """
    if spec:
        info = spec.get("info") or {}
        for key in ("x-domain", "x-ves-domain"):
            value = info.get(key) or spec.get(key)
            if isinstance(value, str) and value:
                return value
    if source in ("-", ""):
        return "stdin"
    stem = source.rstrip("/").rsplit("/", 1)[-1]
    stem = re.sub(r"\.(json|ya?ml)$", "", stem, flags=re.IGNORECASE)
    stem = stem.rsplit(".", 1)[-1]
    return re.sub(r"^domain[_-]", "", stem).lower()


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc
    if not content.strip():
        raise SpecParseError("No input received from stdin")
    return _parse_content(content)


def _load_from_url(url: str, cache: Optional[SpecCache]) -> dict[str, Any]:
    """Download *url*; a *cache* hit skips the request, a good download fills it."""
    cached = cache.get(url) if cache is not None else None
    if cached is not None:
        logger.debug("Spec cache hit for %s", url)
        return _parse_content(cached, hint=_format_hint(url))

    logger.debug("Fetching spec %s", url)
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise SpecParseError(f"HTTP {status} fetching spec from {url}") from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch spec from {url}: {exc}") from exc

    spec = _parse_content(
        response.text,
        hint=_format_hint(response.headers.get("content-type", "")) or _format_hint(url),
    )
    if cache is not None:
        cache.set(url, response.text)
    return spec


def _load_from_file(path: str) -> dict[str, Any]:
    spec_file = Path(path)
    if not spec_file.is_file():
        raise SpecParseError(f"Spec file not found: {path}")
    try:
        content = spec_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read spec file {path}: {exc}") from exc
    if not content.strip():
        raise SpecParseError(f"Spec file is empty: {path}")
    return _parse_content(content, hint=_format_hint(path))


def _format_hint(name: str) -> str:
    """``"json"``, ``"yaml"`` or ``""`` from a file name, URL or content type."""
    lowered = name.lower()
    if lowered.endswith(".json") or "/json" in lowered:
        return "json"
    if lowered.endswith((".yaml", ".yml")) or "yaml" in lowered:
        return "yaml"
    return ""


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Decode *content* as JSON, falling back to YAML unless *hint* says JSON.

    YAML is a superset of JSON, so a ``"yaml"`` hint skips the JSON attempt.

    Raises:
        SpecParseError: Neither decoder accepts the text, or the document
            is not a mapping.
    """
    json_error: Optional[json.JSONDecodeError] = None
    if hint == "yaml":
        document = _parse_yaml(content, json_error)
    else:
        try:
            document = json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
            json_error = exc
            document = _parse_yaml(content, json_error)

    if not isinstance(document, dict):
        kind = "empty document" if document is None else type(document).__name__
        raise SpecParseError(f"Spec must be a JSON/YAML object (got {kind})")
    return document


def _parse_yaml(content: str, json_error: Optional[json.JSONDecodeError]) -> Any:
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        lines = ["Failed to parse spec as JSON or YAML"]
        if json_error is not None:
            lines.append(f"  JSON error: {json_error}")
        lines.append(f"  YAML error: {exc}")
        raise SpecParseError("\n".join(lines)) from exc
