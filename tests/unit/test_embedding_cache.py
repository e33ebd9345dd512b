"""Unit tests for EmbeddingCache."""

import threading

import numpy as np
import pytest

from synapse_notes.services.embedding_cache import EmbeddingCache


def vec(value: float) -> np.ndarray:
    """Helper to build a small test vector."""
    return np.full(4, value, dtype=np.float32)


class TestEmbeddingCacheBasics:
    """Tests for get/set/has/clear/size."""

    def test_get_missing_returns_none(self):
        """Test that a missing key returns None."""
        cache = EmbeddingCache(capacity=2)
        assert cache.get("missing") is None

    def test_set_then_get(self):
        """Test storing and reading back a vector."""
        cache = EmbeddingCache(capacity=2)
        cache.set("a", vec(1.0))
        assert np.array_equal(cache.get("a"), vec(1.0))
        assert cache.has("a")
        assert "a" in cache
        assert cache.size() == 1
        assert len(cache) == 1

    def test_set_existing_key_updates_value(self):
        """Test that setting an existing key replaces its value."""
        cache = EmbeddingCache(capacity=2)
        cache.set("a", vec(1.0))
        cache.set("a", vec(2.0))
        assert np.array_equal(cache.get("a"), vec(2.0))
        assert cache.size() == 1

    def test_clear(self):
        """Test that clear empties the cache."""
        cache = EmbeddingCache(capacity=3)
        cache.set("a", vec(1.0))
        cache.set("b", vec(2.0))
        cache.clear()
        assert cache.size() == 0
        assert not cache.has("a")

    def test_invalid_capacity(self):
        """Test that capacity below one raises error."""
        with pytest.raises(ValueError):
            EmbeddingCache(capacity=0)


class TestEmbeddingCacheEviction:
    """Tests for the LRU eviction law."""

    def test_inserting_past_capacity_evicts_oldest(self):
        """Test that the least recently used key is evicted."""
        cache = EmbeddingCache(capacity=3)
        for key in ("a", "b", "c", "d"):
            cache.set(key, vec(1.0))

        assert cache.size() == 3
        assert not cache.has("a")
        assert all(cache.has(k) for k in ("b", "c", "d"))

    def test_get_changes_eviction_order(self):
        """Test that get promotes a key."""
        cache = EmbeddingCache(capacity=3)
        for key in ("a", "b", "c"):
            cache.set(key, vec(1.0))

        cache.get("a")
        cache.set("d", vec(1.0))

        assert cache.has("a")
        assert not cache.has("b")

    def test_updating_key_promotes_it(self):
        """Test that set on an existing key promotes it."""
        cache = EmbeddingCache(capacity=2)
        cache.set("a", vec(1.0))
        cache.set("b", vec(1.0))
        cache.set("a", vec(3.0))
        cache.set("c", vec(1.0))

        assert cache.has("a")
        assert not cache.has("b")

    def test_has_does_not_promote(self):
        """Test that has leaves recency unchanged."""
        cache = EmbeddingCache(capacity=2)
        cache.set("a", vec(1.0))
        cache.set("b", vec(1.0))
        cache.has("a")
        cache.set("c", vec(1.0))

        assert not cache.has("a")

    def test_capacity_one(self):
        """Test a single-entry cache."""
        cache = EmbeddingCache(capacity=1)
        cache.set("a", vec(1.0))
        cache.set("b", vec(2.0))
        assert cache.size() == 1
        assert cache.get("a") is None
        assert np.array_equal(cache.get("b"), vec(2.0))


class TestEmbeddingCacheConcurrency:
    """Concurrent writers never push the cache past capacity."""

    def test_concurrent_sets_respect_capacity(self):
        """Test concurrent writers from several threads."""
        cache = EmbeddingCache(capacity=50)

        def writer(prefix: str) -> None:
            for i in range(200):
                cache.set(f"{prefix}-{i}", vec(float(i)))
                cache.get(f"{prefix}-{i // 2}")

        threads = [threading.Thread(target=writer, args=(f"t{n}",)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert cache.size() == 50
