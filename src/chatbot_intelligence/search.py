"""Brute-force cosine similarity search over site content and training pairs."""

import logging
from typing import Any

import numpy as np

from chatbot_intelligence.embeddings.cache import EmbeddingCache
from chatbot_intelligence.errors import (
    ChatbotIntelligenceError,
    DimensionMismatchError,
    NotFoundError,
)
from chatbot_intelligence.store.base import ItemStore
from chatbot_intelligence.types import EmbeddingStatus, ScoredContent, TrainingMatch

logger = logging.getLogger(__name__)

KEYWORD_FALLBACK_SIMILARITY = 0.5
CONTEXT_BLEND_WEIGHT = 0.7


def cosine_similarity(a: np.ndarray, b: np.ndarray, strict: bool = False) -> float:
    """
    Compute cosine similarity between two vectors.

    Args:
        a: First vector.
        b: Second vector.
        strict: Raise on a dimension mismatch instead of returning 0.0.

    Returns:
        Similarity in [-1, 1]; 0.0 when either vector has zero norm.

    Raises:
        DimensionMismatchError: Shapes differ and ``strict`` is set.
    """
    a = np.asarray(a, dtype=np.float32).reshape(-1)
    b = np.asarray(b, dtype=np.float32).reshape(-1)

    if a.shape != b.shape:
        if strict:
            raise DimensionMismatchError(a.shape[0], b.shape[0])
        logger.warning(f"Vector dimension mismatch ({a.shape[0]} != {b.shape[0]}), scoring as 0")
        return 0.0

    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    similarity = float(np.dot(a, b)) / (norm_a * norm_b)
    return float(np.clip(similarity, -1.0, 1.0))


class SimilaritySearch:
    """Semantic search over the content corpus and the training Q&A corpus."""

    def __init__(
        self,
        cache: EmbeddingCache,
        content_store: ItemStore,
        training_store: ItemStore,
        similarity_threshold: float = 0.75,
        strict_dimensions: bool = False,
    ):
        """
        Initialize the search.

        Args:
            cache: Embedding cache used for queries.
            content_store: Site content items.
            training_store: Training Q&A pairs.
            similarity_threshold: Minimum similarity (exclusive) for a hit.
            strict_dimensions: Raise on vector dimension mismatches.
        """
        if not 0.0 <= similarity_threshold <= 1.0:
            raise ValueError("similarity_threshold must be between 0 and 1")
        self.cache = cache
        self.content_store = content_store
        self.training_store = training_store
        self.similarity_threshold = similarity_threshold
        self.strict_dimensions = strict_dimensions

    def rank(
        self,
        query_vector: np.ndarray,
        candidates: list[dict[str, Any]],
        vector_field: str = "embedding",
    ) -> list[tuple[dict[str, Any], float]]:
        """
        Score candidates against a query vector.

        Args:
            query_vector: Query embedding.
            candidates: Items carrying a vector under ``vector_field``.
            vector_field: Key of the vector on each item.

        Returns:
            ``(item, similarity)`` pairs sorted descending, ties in input order.
        """
        scored = [
            (item, cosine_similarity(query_vector, item[vector_field], strict=self.strict_dimensions))
            for item in candidates
            if item.get(vector_field) is not None
        ]
        # sorted() is stable, so equal scores keep corpus order
        return sorted(scored, key=lambda pair: pair[1], reverse=True)

    def similar_content(
        self,
        query_text: str,
        limit: int = 5,
        context_text: str | None = None,
    ) -> list[ScoredContent]:
        """
        Find site content semantically similar to a query.

        Falls back to keyword search when the query cannot be embedded.

        Args:
            query_text: User query.
            limit: Maximum number of results.
            context_text: Optional conversation context used to re-rank.

        Returns:
            Results sorted by similarity, descending.
        """
        try:
            query_vector = self.cache.get_or_create(query_text)
        except ChatbotIntelligenceError as e:
            logger.warning(f"Query embedding failed ({type(e).__name__}), using keyword search")
            return self.keyword_search(query_text.split(), limit)

        candidates = [
            item
            for item in self.content_store.all()
            if item.get("embedding_status") == EmbeddingStatus.COMPLETED.value
        ]
        ranked = [
            (item, similarity)
            for item, similarity in self.rank(query_vector, candidates)
            if similarity > self.similarity_threshold
        ]

        if context_text and ranked:
            ranked = self._blend_with_context(ranked, context_text)

        results = [self._to_scored(item, similarity) for item, similarity in ranked[:limit]]
        logger.debug(f"Semantic content search returned {len(results)} results")
        return results

    def _blend_with_context(
        self,
        ranked: list[tuple[dict[str, Any], float]],
        context_text: str,
    ) -> list[tuple[dict[str, Any], float]]:
        try:
            context_vector = self.cache.get_or_create(context_text)
        except ChatbotIntelligenceError as e:
            logger.debug(f"Context embedding unavailable ({type(e).__name__}), skipping re-rank")
            return ranked

        blended = []
        for item, similarity in ranked:
            context_similarity = cosine_similarity(
                item["embedding"], context_vector, strict=self.strict_dimensions
            )
            score = CONTEXT_BLEND_WEIGHT * similarity + (1 - CONTEXT_BLEND_WEIGHT) * context_similarity
            if score > self.similarity_threshold:
                blended.append((item, score))

        return sorted(blended, key=lambda pair: pair[1], reverse=True)

    def keyword_search(self, terms: list[str], limit: int = 5) -> list[ScoredContent]:
        """
        Case-insensitive substring search over content titles and bodies.

        Args:
            terms: Search terms; terms of 2 characters or fewer are ignored.
            limit: Maximum number of results.

        Returns:
            Matching items, newest first, all with similarity 0.5.
        """
        terms = [term.lower() for term in terms if len(term) > 2]
        if not terms:
            return []

        matches = []
        for item in self.content_store.all():
            haystack = f"{item.get('title', '')} {item.get('body', '')}".lower()
            if any(term in haystack for term in terms):
                matches.append(item)

        matches.sort(key=lambda item: item.get("updated_at", 0.0), reverse=True)
        return [self._to_scored(item, KEYWORD_FALLBACK_SIMILARITY) for item in matches[:limit]]

    def best_training_match(
        self,
        message: str,
        similarity_threshold: float | None = None,
    ) -> TrainingMatch:
        """
        Find the training answer whose question best matches a message.

        Args:
            message: User message.
            similarity_threshold: Overrides the default threshold.

        Returns:
            The top match.

        Raises:
            NotFoundError: Embedding failed or no active pair is above the threshold.
        """
        threshold = self.similarity_threshold if similarity_threshold is None else similarity_threshold

        try:
            query_vector = self.cache.get_or_create(message)
        except ChatbotIntelligenceError as e:
            logger.debug(f"Training match skipped, message embedding failed: {type(e).__name__}")
            raise NotFoundError("Message could not be embedded") from e

        candidates = [
            pair
            for pair in self.training_store.all()
            if pair.get("status", "active") == "active"
            and pair.get("embedding_status") == EmbeddingStatus.COMPLETED.value
        ]
        ranked = [
            (pair, similarity)
            for pair, similarity in self.rank(query_vector, candidates, vector_field="question_embedding")
            if similarity > threshold
        ]
        if not ranked:
            raise NotFoundError("No training pair above threshold")

        pair, confidence = ranked[0]
        question = pair.get("question", "")
        return {
            "answer": pair.get("answer", ""),
            "confidence": confidence,
            "explanation": (
                f'Found semantic match with confidence {confidence:.2f} for question: "{question[:100]}"'
            ),
            "question": question,
            "intent": pair.get("intent"),
        }

    @staticmethod
    def _to_scored(item: dict[str, Any], similarity: float) -> ScoredContent:
        return {
            "id": item.get("id"),
            "title": item.get("title", ""),
            "content": item.get("body", ""),
            "url": item.get("url", ""),
            "similarity": similarity,
            "relevance_score": round(similarity * 100, 1),
        }

    def __repr__(self) -> str:
        """String representation."""
        return f"SimilaritySearch(threshold={self.similarity_threshold})"
