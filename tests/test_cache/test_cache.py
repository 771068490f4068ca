"""Tests for the SpecCache module."""

from __future__ import annotations

import time

import pytest

from specgraph.cache import SpecCache
from specgraph.cache.cache import _url_key
from specgraph.models import CacheConfig

URL = "https://example.com/specs/virtual.json"


@pytest.fixture()
def cache(tmp_path):
    """Create a SpecCache with default config pointing at tmp_path."""
    config = CacheConfig(enabled=True, ttl_seconds=300)
    c = SpecCache(tmp_path, config)
    yield c
    c.close()


@pytest.fixture()
def disabled_cache(tmp_path):
    """Create a disabled SpecCache."""
    config = CacheConfig(enabled=False, ttl_seconds=300)
    c = SpecCache(tmp_path, config)
    yield c
    c.close()


# ------------------------------------------------------------------ #
# Core get/set behaviour
# ------------------------------------------------------------------ #


class TestGetSet:
    def test_set_and_get(self, cache: SpecCache) -> None:
        """Cache stores and retrieves spec text."""
        cache.set(URL, '{"openapi": "3.0.3"}')
        assert cache.get(URL) == '{"openapi": "3.0.3"}'

    def test_miss_returns_none(self, cache: SpecCache) -> None:
        assert cache.get("https://example.com/other.json") is None

    def test_ttl_expiry(self, tmp_path) -> None:
        """Entries disappear after their TTL."""
        c = SpecCache(tmp_path, CacheConfig(enabled=True, ttl_seconds=1))
        try:
            c.set(URL, "{}")
            time.sleep(1.2)
            assert c.get(URL) is None
        finally:
            c.close()


# ------------------------------------------------------------------ #
# Disabled cache
# ------------------------------------------------------------------ #


class TestDisabled:
    def test_disabled_is_noop(self, disabled_cache: SpecCache, tmp_path) -> None:
        disabled_cache.set(URL, "{}")
        assert disabled_cache.get(URL) is None
        assert not (tmp_path / "specs").exists()


# ------------------------------------------------------------------ #
# Layout and keys
# ------------------------------------------------------------------ #


class TestLayout:
    def test_entries_live_under_specs_dir(self, cache: SpecCache, tmp_path) -> None:
        cache.set(URL, "{}")
        assert (tmp_path / "specs").is_dir()

    def test_entries_survive_reopen(self, cache: SpecCache, tmp_path) -> None:
        cache.set(URL, "{}")
        cache.close()
        reopened = SpecCache(tmp_path, CacheConfig(enabled=True, ttl_seconds=300))
        try:
            assert reopened.get(URL) == "{}"
        finally:
            reopened.close()


class TestCacheKey:
    def test_key_deterministic(self) -> None:
        assert _url_key(URL) == _url_key(URL)

    def test_key_differs_by_url(self) -> None:
        assert _url_key(URL) != _url_key(URL + "?v=2")

    def test_key_is_sha256_hex(self) -> None:
        key = _url_key(URL)
        assert len(key) == 64
        assert all(ch in "0123456789abcdef" for ch in key)
