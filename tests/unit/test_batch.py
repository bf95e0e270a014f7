"""Unit tests for batch embedding generation."""

import numpy as np
import pytest

from chatbot_intelligence.batch import EmbeddingBatchJob
from chatbot_intelligence.embeddings.cache import EmbeddingCache
from chatbot_intelligence.errors import TransportError
from chatbot_intelligence.store.memory import InMemoryItemStore
from tests.fakes import FakeEmbedder


class FlakyEmbedder(FakeEmbedder):
    """Fails for texts containing a marker word."""

    def embed(self, text):
        if "Returns" in text:
            self.calls.append(text)
            raise TransportError("timeout")
        return super().embed(text)


@pytest.fixture
def stores(sample_content, sample_training):
    content = InMemoryItemStore("embedding", items=sample_content, vector_dim=8)
    training = InMemoryItemStore("question_embedding", items=sample_training, vector_dim=8)
    return content, training


def _job(stores, embedder=None, **kwargs):
    content, training = stores
    cache = EmbeddingCache(embedder or FakeEmbedder())
    sleeps = []
    job = EmbeddingBatchJob(cache, content, training, sleep=sleeps.append, **kwargs)
    return job, sleeps


class TestEmbeddingBatchJob:
    """Test embedding batch job."""

    def test_processes_one_batch(self, stores):
        job, _ = _job(stores, batch_size=2)

        result = job.run()

        assert result == {"processed": 2, "errors": 0, "remaining": 3}

    def test_content_before_training(self, stores):
        content, training = stores
        job, _ = _job(stores, batch_size=3)

        job.run()

        assert all(item["embedding_status"] == "completed" for item in content.all())
        assert all(pair["embedding_status"] == "pending" for pair in training.all())

    def test_delay_between_items(self, stores):
        job, sleeps = _job(stores, batch_size=3, delay_seconds=0.25)

        job.run()

        assert sleeps == [0.25, 0.25]

    def test_iter_batches_until_done(self, stores):
        content, training = stores
        job, _ = _job(stores, batch_size=2)

        results = list(job.iter_batches())

        assert [r["remaining"] for r in results] == [3, 1, 0]
        assert job.pending_count() == 0
        pair = training.get("qa-1")
        assert pair["embedding_status"] == "completed"
        assert pair["question_embedding"].shape == (8,)

    def test_failed_item_marked_error(self, stores):
        content, _ = stores
        job, _ = _job(stores, embedder=FlakyEmbedder(), batch_size=10)

        result = job.run()

        assert result == {"processed": 4, "errors": 1, "remaining": 0}
        item = content.get("post-3")
        assert item["embedding_status"] == "error"
        assert item["embedding"] is None

    def test_error_items_not_retried_in_missing_mode(self, stores):
        embedder = FlakyEmbedder()
        job, _ = _job(stores, embedder=embedder, batch_size=10)
        job.run()
        calls = len(embedder.calls)

        result = job.run("missing")

        assert result == {"processed": 0, "errors": 0, "remaining": 0}
        assert len(embedder.calls) == calls

    def test_all_mode_regenerates(self, stores):
        content, _ = stores
        embedder = FakeEmbedder()
        job, _ = _job(stores, embedder=embedder, batch_size=10)
        job.run()
        first = content.get("post-1")["embedding"]

        result = job.run("all")

        assert result["processed"] == 5
        # Cache was cleared, so the provider ran again for every item
        assert len(embedder.calls) == 10
        np.testing.assert_array_equal(content.get("post-1")["embedding"], first)

    def test_claimed_items_skipped(self, stores):
        content, _ = stores
        content.claim("post-1")
        job, _ = _job(stores, batch_size=10)

        result = job.run()

        assert result["processed"] == 4
        assert content.get("post-1")["embedding_status"] == "processing"

    def test_iter_batches_stops_without_progress(self, stores):
        content, training = stores
        for item in content.all():
            content.claim(item["id"])
        for pair in training.all():
            training.claim(pair["id"])
        job, _ = _job(stores, batch_size=2)

        results = list(job.iter_batches())

        assert len(results) == 1
        assert results[0]["processed"] == 0

    def test_status(self, stores):
        job, _ = _job(stores, batch_size=2)
        job.run()

        status = job.status()

        assert status["content"] == {"total": 3, "completed": 2, "percentage": 66.7}
        assert status["training"] == {"total": 2, "completed": 0, "percentage": 0.0}

    def test_invalid_mode(self, stores):
        job, _ = _job(stores)

        with pytest.raises(ValueError, match="mode"):
            job.run("everything")

    def test_invalid_batch_size(self, stores):
        content, training = stores

        with pytest.raises(ValueError):
            EmbeddingBatchJob(EmbeddingCache(FakeEmbedder()), content, training, batch_size=0)
