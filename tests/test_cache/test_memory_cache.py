"""Tests for the in-memory response cache: TTL expiry and FIFO eviction."""

from __future__ import annotations

import pytest

from gholafetch.cache import Cache, InMemoryCache

from conftest import FakeClock


@pytest.fixture()
def cache(clock: FakeClock) -> InMemoryCache:
    return InMemoryCache(max_capacity=3, clock=clock)


# ------------------------------------------------------------------ #
# Core get/set behaviour
# ------------------------------------------------------------------ #


class TestGetSet:
    def test_set_and_get(self, cache: InMemoryCache) -> None:
        cache.set("-https://api.example.com/users", {"id": 1}, ttl=60)
        assert cache.get("-https://api.example.com/users") == {"id": 1}

    def test_miss_returns_none(self, cache: InMemoryCache) -> None:
        assert cache.get("missing") is None

    def test_remove_and_clear(self, cache: InMemoryCache) -> None:
        cache.set("a", 1, ttl=60)
        cache.set("b", 2, ttl=60)
        cache.remove("a")
        cache.remove("never-stored")
        assert cache.get("a") is None
        assert cache.get("b") == 2
        cache.clear()
        assert len(cache) == 0

    def test_satisfies_cache_protocol(self, cache: InMemoryCache) -> None:
        assert isinstance(cache, Cache)

    def test_rejects_zero_capacity(self) -> None:
        with pytest.raises(ValueError):
            InMemoryCache(max_capacity=0)


# ------------------------------------------------------------------ #
# Expiry
# ------------------------------------------------------------------ #


class TestExpiry:
    def test_served_until_expiry(self, cache: InMemoryCache, clock: FakeClock) -> None:
        cache.set("k", "v", ttl=10)
        clock.advance(9.999)
        assert cache.get("k") == "v"

    def test_never_served_at_expiry(self, cache: InMemoryCache, clock: FakeClock) -> None:
        cache.set("k", "v", ttl=10)
        clock.advance(10)
        assert cache.get("k") is None
        assert "k" not in cache.keys()

    def test_overwrite_refreshes_expiry(self, cache: InMemoryCache, clock: FakeClock) -> None:
        cache.set("k", "old", ttl=10)
        clock.advance(8)
        cache.set("k", "new", ttl=10)
        clock.advance(8)
        assert cache.get("k") == "new"


# ------------------------------------------------------------------ #
# FIFO eviction
# ------------------------------------------------------------------ #


class TestEviction:
    @pytest.mark.parametrize("capacity", [1, 2, 3, 5])
    def test_fifo_up_to_twice_capacity(self, clock: FakeClock, capacity: int) -> None:
        """Each insert beyond capacity evicts exactly the earliest surviving key."""
        cache = InMemoryCache(max_capacity=capacity, clock=clock)
        keys = [f"key-{i}" for i in range(2 * capacity)]
        for index, key in enumerate(keys):
            cache.set(key, index, ttl=60)
            expected = keys[max(0, index + 1 - capacity) : index + 1]
            assert cache.keys() == expected
        for evicted in keys[:capacity]:
            assert cache.get(evicted) is None
        for kept in keys[capacity:]:
            assert cache.get(kept) is not None

    def test_overwrite_does_not_evict_or_reorder(self, cache: InMemoryCache) -> None:
        for key in ("a", "b", "c"):
            cache.set(key, key, ttl=60)
        cache.set("a", "A", ttl=60)
        assert cache.keys() == ["a", "b", "c"]
        cache.set("d", "d", ttl=60)
        assert cache.keys() == ["b", "c", "d"]

    def test_removed_key_is_not_counted(self, cache: InMemoryCache) -> None:
        for key in ("a", "b", "c"):
            cache.set(key, key, ttl=60)
        cache.remove("b")
        cache.set("d", "d", ttl=60)
        assert cache.keys() == ["a", "c", "d"]

    def test_unbounded_never_evicts(self, clock: FakeClock) -> None:
        cache = InMemoryCache(clock=clock)
        for i in range(100):
            cache.set(str(i), i, ttl=60)
        assert len(cache) == 100
