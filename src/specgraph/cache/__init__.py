"""Disk cache for remotely fetched OpenAPI specs.

:class:`SpecCache` is consulted by :func:`~specgraph.parser.loader.load_spec`
for ``http(s)://`` sources and is controlled by the ``cache`` section of the
global configuration (:class:`~specgraph.models.CacheConfig`).
"""

from specgraph.cache.cache import SpecCache

__all__ = ["SpecCache"]
