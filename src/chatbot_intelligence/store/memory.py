"""In-process cache and corpus stores."""

import copy
import logging
import threading
import time
from typing import Any, Callable

import numpy as np

from chatbot_intelligence.types import EmbeddingStatus

logger = logging.getLogger(__name__)


def check_completed_vector(
    item_id: str,
    vector: np.ndarray | None,
    status: str,
    vector_dim: int | None,
) -> None:
    """Reject a ``completed`` status without a correctly sized vector."""
    if status != EmbeddingStatus.COMPLETED.value:
        return
    if vector is None:
        raise ValueError(f"Item {item_id} cannot be completed without a vector")
    if vector_dim is not None and len(vector) != vector_dim:
        raise ValueError(
            f"Item {item_id} vector has dimension {len(vector)}, expected {vector_dim}"
        )


class InMemoryCache:
    """Dict-backed cache with monotonic-clock TTL."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the cache.

        Args:
            clock: Time source in seconds; injectable for tests.
        """
        self._clock = clock
        self._entries: dict[str, tuple[float | None, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Return the value for ``key`` if present and unexpired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store ``value`` under ``key``."""
        expires_at = self._clock() + ttl_seconds if ttl_seconds is not None else None
        with self._lock:
            self._entries[key] = (expires_at, value)

    def invalidate(self, key: str | None = None) -> int:
        """Remove one entry or all of them."""
        with self._lock:
            if key is None:
                removed = len(self._entries)
                self._entries.clear()
                return removed
            return 1 if self._entries.pop(key, None) is not None else 0

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        """String representation."""
        return f"InMemoryCache(entries={len(self._entries)})"


class InMemoryItemStore:
    """Corpus store kept in a dict, safe for concurrent batch runs in one process."""

    def __init__(
        self,
        vector_field: str = "embedding",
        items: list[dict[str, Any]] | None = None,
        vector_dim: int | None = None,
    ):
        """
        Initialize the store.

        Args:
            vector_field: Item key holding the vector ("embedding" for content,
                "question_embedding" for training pairs).
            items: Optional initial items.
            vector_dim: Expected vector dimension, enforced on completed writes.
        """
        self.vector_field = vector_field
        self.vector_dim = vector_dim
        self._items: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()
        for item in items or []:
            self.upsert(item)

    def all(self) -> list[dict[str, Any]]:
        with self._lock:
            return [copy.copy(item) for item in self._items.values()]

    def get(self, item_id: str) -> dict[str, Any] | None:
        with self._lock:
            item = self._items.get(item_id)
            return copy.copy(item) if item is not None else None

    def upsert(self, item: dict[str, Any]) -> None:
        if "id" not in item:
            raise ValueError("item id is required")
        stored = dict(item)
        stored.setdefault(self.vector_field, None)
        stored.setdefault("embedding_status", EmbeddingStatus.PENDING.value)
        stored.setdefault("updated_at", time.time())
        check_completed_vector(
            stored["id"], stored[self.vector_field], stored["embedding_status"], self.vector_dim
        )
        with self._lock:
            self._items[stored["id"]] = stored

    def claim(self, item_id: str) -> bool:
        with self._lock:
            item = self._items.get(item_id)
            if item is None or item["embedding_status"] != EmbeddingStatus.PENDING.value:
                return False
            item["embedding_status"] = EmbeddingStatus.PROCESSING.value
            return True

    def set_embedding(self, item_id: str, vector: np.ndarray | None, status: str) -> None:
        check_completed_vector(item_id, vector, status, self.vector_dim)
        with self._lock:
            item = self._items.get(item_id)
            if item is None:
                raise KeyError(item_id)
            item[self.vector_field] = vector
            item["embedding_status"] = status

    def reset_embeddings(self) -> int:
        with self._lock:
            for item in self._items.values():
                item[self.vector_field] = None
                item["embedding_status"] = EmbeddingStatus.PENDING.value
            logger.info(f"Reset embeddings for {len(self._items)} items")
            return len(self._items)

    def health_check(self) -> bool:
        return True

    def close(self) -> None:
        """Nothing to release."""

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        """String representation."""
        return f"InMemoryItemStore(field={self.vector_field}, items={len(self._items)})"
