"""Embedding cache: normalize, hash, look up, embed on miss."""

import hashlib
import logging
import re

import numpy as np

from chatbot_intelligence.embeddings.base import Embedder
from chatbot_intelligence.errors import EmptyTextError
from chatbot_intelligence.store.base import CacheBackend
from chatbot_intelligence.store.memory import InMemoryCache

logger = logging.getLogger(__name__)

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


class EmbeddingCache:
    """
    Text-to-vector cache in front of an embedding provider.

    Equal text after normalization always maps to the same key, so repeated
    questions and unchanged content never hit the provider twice within the
    TTL. Provider errors propagate and are never cached.
    """

    def __init__(
        self,
        embedder: Embedder,
        backend: CacheBackend | None = None,
        ttl_seconds: int = 86400,
        max_text_length: int = 30000,
    ):
        """
        Initialize the cache.

        Args:
            embedder: Provider used on cache misses.
            backend: Cache backend (defaults to an in-process cache).
            ttl_seconds: Lifetime of cached vectors.
            max_text_length: Normalized text is capped at this many characters.
        """
        self.embedder = embedder
        self.backend = backend if backend is not None else InMemoryCache()
        self.ttl_seconds = ttl_seconds
        self.max_text_length = max_text_length
        self.stats = {"hits": 0, "misses": 0, "errors": 0}

    @property
    def dim(self) -> int:
        """Return the dimension of the underlying provider."""
        return self.embedder.dim

    def normalize_text(self, text: str) -> str:
        """
        Strip markup, collapse whitespace and cap the length.

        Args:
            text: Raw text, possibly HTML.

        Returns:
            Normalized text (may be empty).
        """
        text = _SCRIPT_STYLE_RE.sub(" ", text or "")
        text = _TAG_RE.sub(" ", text)
        text = _WHITESPACE_RE.sub(" ", text).strip()
        return text[: self.max_text_length]

    def cache_key(self, text: str) -> str:
        """Return the cache key for already-normalized text."""
        return "emb:" + hashlib.sha256(text.encode("utf-8")).hexdigest()

    def get_or_create(self, text: str) -> np.ndarray:
        """
        Return the embedding for ``text``, calling the provider on a miss.

        Args:
            text: Text to embed.

        Returns:
            float32 vector.

        Raises:
            EmptyTextError: Text is empty after normalization.
            ProviderError: Provider call failed.
        """
        normalized = self.normalize_text(text)
        if not normalized:
            raise EmptyTextError("Text is empty after normalization")

        key = self.cache_key(normalized)
        cached = self.backend.get(key)
        if cached is not None:
            self.stats["hits"] += 1
            logger.debug(f"Embedding cache hit: {key[:16]}... stats={self.stats}")
            return cached

        self.stats["misses"] += 1
        try:
            vector = self.embedder.embed(normalized)
        except Exception:
            self.stats["errors"] += 1
            logger.debug(f"Embedding provider failed, nothing cached. stats={self.stats}")
            raise

        vector = np.asarray(vector, dtype=np.float32)
        self.backend.set(key, vector, ttl_seconds=self.ttl_seconds)
        logger.debug(f"Embedding cache miss stored: {key[:16]}... stats={self.stats}")
        return vector

    def invalidate_all(self) -> int:
        """
        Remove every cached embedding.

        Returns:
            Number of entries removed.
        """
        removed = self.backend.invalidate()
        logger.info(f"Embedding cache cleared ({removed} entries)")
        return removed

    def __repr__(self) -> str:
        """String representation."""
        return f"EmbeddingCache(embedder={self.embedder!r}, ttl={self.ttl_seconds})"
