"""Base protocols for cache and corpus storage."""

from typing import Any, Protocol

import numpy as np


class CacheBackend(Protocol):
    """Key/value cache with per-entry TTL."""

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""
        ...

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store a value, expiring after ``ttl_seconds`` when given."""
        ...

    def invalidate(self, key: str | None = None) -> int:
        """
        Remove one entry, or every entry when ``key`` is None.

        Returns:
            Number of entries removed.
        """
        ...


class ItemStore(Protocol):
    """
    Read/write access to one retrieval corpus (site content or training pairs).

    Items are plain dicts (``ContentItem`` or ``TrainingPair``). The store
    knows which field holds the item's vector.
    """

    vector_field: str

    def all(self) -> list[dict[str, Any]]:
        """Return every item in a stable order."""
        ...

    def get(self, item_id: str) -> dict[str, Any] | None:
        """Return one item by id."""
        ...

    def upsert(self, item: dict[str, Any]) -> None:
        """Insert or replace an item."""
        ...

    def claim(self, item_id: str) -> bool:
        """
        Move an item from ``pending`` to ``processing`` atomically.

        Returns:
            True if this caller won the claim, False if the item was not
            pending (already claimed, finished, or missing).
        """
        ...

    def set_embedding(self, item_id: str, vector: np.ndarray | None, status: str) -> None:
        """Store a vector and embedding status for an item."""
        ...

    def reset_embeddings(self) -> int:
        """Clear every vector and mark every item pending. Returns item count."""
        ...
