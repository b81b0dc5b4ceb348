import threading
import time

import pytest

from moviecatalog.utils.cache import CacheService, CacheStore


class BrokenStore:
    """Store whose every operation fails, like an unreachable cache server."""

    def get(self, key):
        raise ConnectionError("cache down")

    def set(self, key, value, ttl=None):
        raise ConnectionError("cache down")

    def delete(self, key):
        raise ConnectionError("cache down")

    def delete_prefix(self, prefix):
        raise ConnectionError("cache down")

    def clear(self):
        raise ConnectionError("cache down")

    def get_stats(self):
        raise ConnectionError("cache down")


class PlainStore:
    """Store without prefix deletion support."""

    def __init__(self):
        self.data = {}
        self.cleared = 0

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ttl=None):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)

    def clear(self):
        self.data.clear()
        self.cleared += 1


class CountingProducer:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


# ============================================
# CacheStore
# ============================================

class TestCacheStore:

    def test_set_and_get(self):
        store = CacheStore()
        store.set("a", {"x": 1})
        assert store.get("a") == {"x": 1}
        assert store.get("missing") is None

    def test_entry_expires_after_ttl(self):
        store = CacheStore()
        store.set("a", 1, ttl=1)
        assert store.get("a") == 1
        time.sleep(1.1)
        assert store.get("a") is None

    def test_zero_ttl_expires_immediately(self):
        store = CacheStore()
        store.set("a", 1, ttl=0)
        time.sleep(0.01)
        assert store.get("a") is None

    def test_no_ttl_never_expires(self):
        store = CacheStore()
        store.set("a", 1, ttl=None)
        time.sleep(0.01)
        assert store.get("a") == 1

    def test_lru_eviction(self):
        store = CacheStore(max_size=2)
        store.set("a", 1)
        store.set("b", 2)
        store.get("a")  # "b" is now least recently used
        store.set("c", 3)

        assert store.get("a") == 1
        assert store.get("b") is None
        assert store.get("c") == 3

    def test_delete_prefix_only_removes_matching_keys(self):
        store = CacheStore()
        store.set("movie-listing:{\"page\": 1}", 1)
        store.set("movie-listing:{\"page\": 2}", 2)
        store.set("movie-detail:1", 3)

        assert store.delete_prefix("movie-listing:") == 2
        assert store.get("movie-detail:1") == 3

    def test_stats_track_hits_and_misses(self):
        store = CacheStore()
        store.set("a", 1)
        store.get("a")
        store.get("b")

        stats = store.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == "50.00%"

    def test_stats_wait_for_the_store_lock(self):
        store = CacheStore()
        results = []
        reader = threading.Thread(target=lambda: results.append(store.get_stats()))

        with store._lock:
            reader.start()
            reader.join(timeout=0.2)
            assert results == []

        reader.join(timeout=2)
        assert results[0]["size"] == 0


# ============================================
# CacheService
# ============================================

class TestGetOrPopulate:

    def test_producer_called_once_on_miss(self):
        cache = CacheService(CacheStore())
        producer = CountingProducer(["result"])

        assert cache.get_or_populate("key", producer, ttl=60) == ["result"]
        assert producer.calls == 1
        assert cache.get("key") == ["result"]

    def test_producer_not_called_on_hit(self):
        cache = CacheService(CacheStore())
        cache.set("key", "cached", ttl=60)
        producer = CountingProducer("fresh")

        assert cache.get_or_populate("key", producer, ttl=60) == "cached"
        assert producer.calls == 0

    def test_producer_errors_propagate(self):
        cache = CacheService(CacheStore())

        def failing():
            raise LookupError("not in store")

        with pytest.raises(LookupError):
            cache.get_or_populate("key", failing)
        assert cache.get("key") is None

    def test_none_result_is_not_cached(self):
        cache = CacheService(CacheStore())
        producer = CountingProducer(None)

        cache.get_or_populate("key", producer)
        cache.get_or_populate("key", producer)
        assert producer.calls == 2


class TestFailSoft:

    def test_operations_never_raise(self):
        cache = CacheService(BrokenStore())

        assert cache.get("key") is None
        cache.set("key", "value", ttl=10)
        cache.delete("key")
        cache.delete_prefix("movie-listing:")
        cache.reset()
        cache.invalidate_space("movie-listing:")
        assert cache.stats() == {}

    def test_get_or_populate_returns_producer_result(self):
        cache = CacheService(BrokenStore())
        producer = CountingProducer({"id": 1})

        assert cache.get_or_populate("key", producer, ttl=10) == {"id": 1}
        assert producer.calls == 1

    def test_failures_are_logged(self, caplog):
        cache = CacheService(BrokenStore())

        with caplog.at_level("ERROR", logger="moviecatalog.utils.cache"):
            cache.get("key")

        assert "Error getting cache key key" in caplog.text


class TestInvalidation:

    def _populated(self, mode):
        cache = CacheService(CacheStore(), invalidation_mode=mode)
        cache.set("movie-listing:a", 1)
        cache.set("movie-listing:b", 2)
        cache.set("movie-detail:1", 3)
        cache.set("movie-genres", 4)
        return cache

    def test_prefix_mode_keeps_unrelated_keys(self):
        cache = self._populated("prefix")
        cache.invalidate_space("movie-listing:")

        assert cache.get("movie-listing:a") is None
        assert cache.get("movie-listing:b") is None
        assert cache.get("movie-detail:1") == 3
        assert cache.get("movie-genres") == 4

    def test_reset_mode_drops_everything(self):
        cache = self._populated("reset")
        cache.invalidate_space("movie-listing:")

        assert cache.get("movie-listing:a") is None
        assert cache.get("movie-detail:1") is None
        assert cache.get("movie-genres") is None

    def test_store_without_prefix_support_falls_back_to_reset(self):
        store = PlainStore()
        cache = CacheService(store, invalidation_mode="prefix")
        cache.set("movie-listing:a", 1)
        cache.set("movie-detail:1", 2)

        cache.delete_prefix("movie-listing:")

        assert store.cleared == 1
        assert store.data == {}
