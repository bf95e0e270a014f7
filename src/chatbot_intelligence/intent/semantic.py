"""Semantic intent augmentation from canonical example phrasings."""

import logging

import numpy as np

from chatbot_intelligence.embeddings.cache import EmbeddingCache
from chatbot_intelligence.errors import ChatbotIntelligenceError
from chatbot_intelligence.intent.patterns import INTENT_EXAMPLES
from chatbot_intelligence.search import cosine_similarity
from chatbot_intelligence.store.base import CacheBackend
from chatbot_intelligence.store.memory import InMemoryCache

logger = logging.getLogger(__name__)

EXAMPLES_CACHE_KEY = "intent_example_embeddings"


class SemanticIntentAugmenter:
    """Merges embedding similarity to example phrasings into keyword intent scores."""

    def __init__(
        self,
        cache: EmbeddingCache,
        examples: dict[str, tuple[str, ...]] | None = None,
        threshold: float = 0.7,
        boost: float = 1.2,
        ttl_seconds: int = 3600,
        backend: CacheBackend | None = None,
    ):
        """
        Initialize the augmenter.

        Args:
            cache: Embedding cache for examples and messages.
            examples: Intent to example phrasings (defaults to INTENT_EXAMPLES).
            threshold: Minimum (exclusive) best-example similarity to count.
            boost: Multiplier when the intent already scored from keywords.
            ttl_seconds: How long example embeddings are reused.
            backend: Where example embeddings are kept (defaults to in-process).
        """
        self.cache = cache
        self.examples = examples if examples is not None else INTENT_EXAMPLES
        self.threshold = threshold
        self.boost = boost
        self.ttl_seconds = ttl_seconds
        self.backend = backend if backend is not None else InMemoryCache()

    def example_embeddings(self) -> dict[str, list[np.ndarray]]:
        """Return example embeddings per intent, recomputing after the TTL."""
        cached = self.backend.get(EXAMPLES_CACHE_KEY)
        if cached is not None:
            return cached

        embeddings: dict[str, list[np.ndarray]] = {}
        for intent, phrases in self.examples.items():
            embeddings[intent] = []
            for phrase in phrases:
                try:
                    embeddings[intent].append(self.cache.get_or_create(phrase))
                except ChatbotIntelligenceError as e:
                    logger.warning(f"Could not embed intent example for {intent}: {type(e).__name__}")

        self.backend.set(EXAMPLES_CACHE_KEY, embeddings, ttl_seconds=self.ttl_seconds)
        return embeddings

    def semantic_scores(self, message: str) -> dict[str, float]:
        """Best example similarity per intent, keeping only those above the threshold."""
        try:
            message_vector = self.cache.get_or_create(message)
        except ChatbotIntelligenceError as e:
            logger.debug(f"Semantic intent skipped, message embedding failed: {type(e).__name__}")
            return {}

        scores = {}
        for intent, vectors in self.example_embeddings().items():
            best = max((cosine_similarity(message_vector, v) for v in vectors), default=0.0)
            if best > self.threshold:
                scores[intent] = best
        return scores

    def augment(self, message: str, intents: dict[str, float]) -> dict[str, float]:
        """
        Merge semantic matches into keyword intent scores.

        Intents already present become ``max(existing, similarity * boost)``,
        capped at 1.0; new intents are inserted at their similarity.

        Returns:
            Merged scores sorted descending.
        """
        merged = dict(intents)
        for intent, similarity in self.semantic_scores(message).items():
            if intent in merged:
                merged[intent] = min(1.0, max(merged[intent], similarity * self.boost))
            else:
                merged[intent] = similarity
        return dict(sorted(merged.items(), key=lambda kv: kv[1], reverse=True))

    def __repr__(self) -> str:
        """String representation."""
        return f"SemanticIntentAugmenter(threshold={self.threshold}, intents={len(self.examples)})"
