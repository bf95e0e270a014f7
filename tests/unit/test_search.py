"""Unit tests for similarity search."""

from unittest.mock import patch

import numpy as np
import pytest

from chatbot_intelligence.embeddings.cache import EmbeddingCache
from chatbot_intelligence.errors import DimensionMismatchError, NotFoundError, TransportError
from chatbot_intelligence.search import SimilaritySearch, cosine_similarity
from chatbot_intelligence.store.memory import InMemoryItemStore
from tests.fakes import FakeEmbedder


def _embedded_store(cache, items, vector_field="embedding", text_of=None):
    store = InMemoryItemStore(vector_field)
    for item in items:
        text = text_of(item) if text_of else f"{item['title']} {item['body']}"
        store.upsert({**item, vector_field: cache.get_or_create(text), "embedding_status": "completed"})
    return store


@pytest.fixture
def search(sample_content, sample_training):
    cache = EmbeddingCache(FakeEmbedder())
    content = _embedded_store(cache, sample_content)
    training = _embedded_store(
        cache, sample_training, vector_field="question_embedding", text_of=lambda p: p["question"]
    )
    return SimilaritySearch(cache, content, training)


class TestCosineSimilarity:
    """Test cosine similarity."""

    def test_identical_vectors(self):
        v = np.array([0.3, 0.4, 0.5])
        assert cosine_similarity(v, v) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity(np.array([1.0, 0.0]), np.array([0.0, 1.0])) == pytest.approx(0.0)

    def test_opposite_vectors(self):
        assert cosine_similarity(np.array([1.0, 2.0]), np.array([-1.0, -2.0])) == pytest.approx(-1.0)

    def test_symmetric(self):
        rng = np.random.default_rng(42)
        for _ in range(50):
            a, b = rng.normal(size=16), rng.normal(size=16)
            assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
            assert -1.0 <= cosine_similarity(a, b) <= 1.0

    def test_zero_vector(self):
        assert cosine_similarity(np.zeros(3), np.ones(3)) == 0.0

    def test_dimension_mismatch_lenient(self):
        assert cosine_similarity(np.ones(3), np.ones(4)) == 0.0

    def test_dimension_mismatch_strict(self):
        with pytest.raises(DimensionMismatchError):
            cosine_similarity(np.ones(3), np.ones(4), strict=True)


class TestSimilarContent:
    """Test semantic content search."""

    def test_best_match_first(self, search):
        results = search.similar_content("Do you ship to Canada?")

        assert results[0]["id"] == "post-1"
        assert results[0]["similarity"] > 0.75
        assert results[0]["relevance_score"] == round(results[0]["similarity"] * 100, 1)

    def test_below_threshold_excluded(self, search):
        results = search.similar_content("Tell me about your team")

        assert results == []

    def test_results_sorted_and_limited(self, search):
        search.similarity_threshold = 0.0

        results = search.similar_content("shipping", limit=2)

        assert len(results) == 2
        assert results[0]["similarity"] >= results[1]["similarity"]

    def test_pending_items_ignored(self, search):
        search.content_store.upsert({"id": "post-4", "title": "Ship faster", "body": "shipping shipping"})

        results = search.similar_content("shipping")

        assert "post-4" not in [r["id"] for r in results]

    def test_keyword_fallback_when_embedding_fails(self, sample_content):
        embedder = FakeEmbedder(error=TransportError("down"))
        content = InMemoryItemStore(items=sample_content)
        search = SimilaritySearch(EmbeddingCache(embedder), content, InMemoryItemStore("question_embedding"))

        with patch.object(search, "rank", wraps=search.rank) as rank:
            results = search.similar_content("refund please")

        assert [r["id"] for r in results] == ["post-3"]
        assert results[0]["similarity"] == 0.5
        assert results[0]["relevance_score"] == 50
        # Embedding was attempted once and no vector scan ran
        assert embedder.calls == ["refund please"]
        rank.assert_not_called()

    def test_no_keyword_fallback_when_embedding_succeeds(self, search):
        with patch.object(search, "keyword_search", wraps=search.keyword_search) as keyword_search:
            results = search.similar_content("refund please")

        keyword_search.assert_not_called()
        assert [r["id"] for r in results] == ["post-3"]
        assert results[0]["similarity"] > 0.75

    def test_context_blend_keeps_relevant_items(self, search):
        results = search.similar_content("Do you ship to Canada?", context_text="shipping delivery")

        assert results[0]["id"] == "post-1"

    def test_context_blend_drops_items_pushed_below_threshold(self, search):
        search.similarity_threshold = 0.6

        results = search.similar_content("Do you ship to Canada?", context_text="refund refund refund")

        # 0.7 * ~1.0 + 0.3 * ~0.0 is above 0.6
        assert [r["id"] for r in results] == ["post-1"]

        search.similarity_threshold = 0.75
        assert search.similar_content("Do you ship to Canada?", context_text="refund refund refund") == []


class TestKeywordSearch:
    """Test keyword fallback search."""

    def test_newest_first(self, search):
        results = search.keyword_search(["to", "days"])

        assert [r["id"] for r in results] == ["post-3", "post-1"]

    def test_short_terms_ignored(self, search):
        assert search.keyword_search(["a", "to"]) == []


class TestBestTrainingMatch:
    """Test training pair matching."""

    def test_match_found(self, search):
        match = search.best_training_match("I forgot my password, how do I reset it?")

        assert match["answer"] == "Use the Forgot password link on the login page."
        assert match["confidence"] > 0.75
        assert match["explanation"].startswith("Found semantic match with confidence")
        assert match["intent"] == "support"

    def test_inactive_pairs_skipped(self, search):
        with pytest.raises(NotFoundError):
            search.best_training_match("What is your refund policy?")

    def test_no_match_raises(self, search):
        with pytest.raises(NotFoundError):
            search.best_training_match("Tell me about your team")

    def test_embedding_failure_is_not_found(self, sample_training):
        cache = EmbeddingCache(FakeEmbedder(error=TransportError("down")))
        search = SimilaritySearch(cache, InMemoryItemStore(), InMemoryItemStore("question_embedding"))

        with pytest.raises(NotFoundError):
            search.best_training_match("reset password")

    def test_invalid_threshold(self, search):
        with pytest.raises(ValueError):
            SimilaritySearch(search.cache, search.content_store, search.training_store, similarity_threshold=1.5)
