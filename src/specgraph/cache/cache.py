"""Keep downloaded OpenAPI documents on disk between builds.

``specgraph build`` may be pointed at a catalogue of remote domain specs.
:class:`SpecCache` stores the raw text of each successful download in a
:mod:`diskcache` directory, keyed by the SHA-256 of its URL, and lets it
expire after :attr:`~specgraph.models.CacheConfig.ttl_seconds`.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Optional

import diskcache

from specgraph.models import CacheConfig


def _url_key(url: str) -> str:
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


class SpecCache:
    """URL to document-text store under ``<cache_dir>/specs``.

    With ``config.enabled`` false no directory is created and the cache
    never returns anything.

    Example::

        cache = SpecCache(get_cache_dir(), settings.cache)
        spec = load_spec("https://example.com/specs/virtual.json", cache)
    """

    def __init__(self, cache_dir: str | Path, config: CacheConfig) -> None:
        self._ttl = config.ttl_seconds
        self._directory = Path(cache_dir) / "specs"
        self._store: Optional[diskcache.Cache] = (
            diskcache.Cache(str(self._directory)) if config.enabled else None
        )

    def get(self, url: str) -> Optional[str]:
        """Cached text for *url*, or ``None``."""
        return None if self._store is None else self._store.get(_url_key(url))

    def set(self, url: str, content: str) -> None:
        if self._store is not None:
            self._store.set(_url_key(url), content, expire=self._ttl)

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
