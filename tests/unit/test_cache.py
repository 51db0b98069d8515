"""
Unit tests for the resolution cache.
"""

import threading

import pytest

from nocaseserver.fs.cache import ResolutionCache, DEFAULT_CACHE_SIZE


def key(n: int):
    return ("/root", f"seg{n}")


class TestResolutionCache:
    """Tests for ResolutionCache."""

    def test_default_capacity(self):
        cache = ResolutionCache()
        assert cache.capacity == DEFAULT_CACHE_SIZE == 2000
        assert cache.enabled

    def test_get_put(self):
        cache = ResolutionCache(10)
        cache.put(("/r", "img"), "/r/IMG")

        assert cache.get(("/r", "img")) == "/r/IMG"
        assert cache.get(("/r", "missing")) is None
        assert ("/r", "img") in cache

    def test_negative_capacity_rejected(self):
        with pytest.raises(ValueError):
            ResolutionCache(-1)
        with pytest.raises(ValueError):
            ResolutionCache(5).set_capacity(-3)

    def test_evicts_oldest_inserted(self):
        cache = ResolutionCache(3)
        for n in range(3):
            cache.put(key(n), f"v{n}")

        cache.get(key(0))  # reads don't refresh
        cache.put(key(3), "v3")

        assert len(cache) == 3
        assert key(0) not in cache
        assert all(key(n) in cache for n in (1, 2, 3))

    def test_replacing_key_does_not_evict(self):
        cache = ResolutionCache(2)
        cache.put(key(0), "a")
        cache.put(key(1), "b")
        cache.put(key(0), "a2")

        assert len(cache) == 2
        assert cache.get(key(0)) == "a2"

        # key(0) kept its original (oldest) position
        cache.put(key(2), "c")
        assert key(0) not in cache
        assert key(1) in cache

    def test_zero_capacity_disables_and_clears(self):
        cache = ResolutionCache(5)
        cache.put(key(0), "a")

        cache.set_capacity(0)

        assert not cache.enabled
        assert len(cache) == 0
        cache.put(key(1), "b")
        assert len(cache) == 0

    def test_shrink_keeps_newest(self):
        cache = ResolutionCache(5)
        for n in range(5):
            cache.put(key(n), f"v{n}")

        cache.set_capacity(2)

        assert len(cache) == 2
        assert key(3) in cache and key(4) in cache

    def test_grow_keeps_everything(self):
        cache = ResolutionCache(2)
        cache.put(key(0), "a")
        cache.put(key(1), "b")

        cache.set_capacity(10)

        assert len(cache) == 2
        assert cache.capacity == 10

    def test_clear_keeps_capacity(self):
        cache = ResolutionCache(4)
        cache.put(key(0), "a")
        cache.clear()

        assert len(cache) == 0
        assert cache.capacity == 4

    def test_concurrent_puts_respect_capacity(self):
        """Test that the bound holds with many writer threads."""
        cache = ResolutionCache(50)

        def writer(offset: int):
            for n in range(200):
                cache.put(key(offset * 1000 + n), "x")

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 50
