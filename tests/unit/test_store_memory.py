"""Unit tests for in-memory stores."""

import threading

import numpy as np
import pytest

from chatbot_intelligence.store.memory import InMemoryCache, InMemoryItemStore


class TestInMemoryCache:
    """Test in-memory TTL cache."""

    def test_set_and_get(self):
        cache = InMemoryCache()
        cache.set("k", np.ones(3))

        np.testing.assert_array_equal(cache.get("k"), np.ones(3))

    def test_expiry(self):
        now = [100.0]
        cache = InMemoryCache(clock=lambda: now[0])
        cache.set("k", "v", ttl_seconds=5)

        now[0] = 104.9
        assert cache.get("k") == "v"
        now[0] = 105.0
        assert cache.get("k") is None

    def test_invalidate_single_and_all(self):
        cache = InMemoryCache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)

        assert cache.invalidate("a") == 1
        assert cache.invalidate("missing") == 0
        assert cache.invalidate() == 2
        assert len(cache) == 0


class TestInMemoryItemStore:
    """Test in-memory corpus store."""

    def test_upsert_defaults_to_pending(self):
        store = InMemoryItemStore(items=[{"id": "1", "title": "Hello"}])

        item = store.get("1")

        assert item["embedding_status"] == "pending"
        assert item["embedding"] is None

    def test_upsert_requires_id(self):
        store = InMemoryItemStore()

        with pytest.raises(ValueError, match="id"):
            store.upsert({"title": "No id"})

    def test_completed_requires_vector(self):
        store = InMemoryItemStore(vector_dim=4)

        with pytest.raises(ValueError):
            store.upsert({"id": "1", "embedding_status": "completed"})
        with pytest.raises(ValueError, match="dimension"):
            store.set_embedding("1", np.ones(3), "completed")

    def test_claim_only_pending(self):
        store = InMemoryItemStore(items=[{"id": "1"}])

        assert store.claim("1") is True
        assert store.get("1")["embedding_status"] == "processing"
        assert store.claim("1") is False
        assert store.claim("missing") is False

    def test_concurrent_claims_single_winner(self):
        store = InMemoryItemStore(items=[{"id": "1"}])
        results = []

        def claim():
            results.append(store.claim("1"))

        threads = [threading.Thread(target=claim) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1

    def test_set_embedding_and_reset(self):
        store = InMemoryItemStore("question_embedding", items=[{"id": "1"}, {"id": "2"}], vector_dim=2)
        store.set_embedding("1", np.array([0.6, 0.8], dtype=np.float32), "completed")

        assert store.get("1")["embedding_status"] == "completed"
        assert store.reset_embeddings() == 2
        item = store.get("1")
        assert item["embedding_status"] == "pending"
        assert item["question_embedding"] is None

    def test_set_embedding_unknown_item(self):
        store = InMemoryItemStore()

        with pytest.raises(KeyError):
            store.set_embedding("nope", None, "error")

    def test_all_returns_copies(self):
        store = InMemoryItemStore(items=[{"id": "1", "title": "Original"}])

        store.all()[0]["title"] = "Changed"

        assert store.get("1")["title"] == "Original"
