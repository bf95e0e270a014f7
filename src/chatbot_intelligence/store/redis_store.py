"""Redis-backed embedding cache and corpus stores."""

import json
import logging
import time
from typing import Any

import numpy as np
import redis

from chatbot_intelligence.store.memory import check_completed_vector
from chatbot_intelligence.types import EmbeddingStatus

logger = logging.getLogger(__name__)


def connect(redis_url: str = "redis://localhost:6379/0") -> redis.Redis:
    """
    Create a Redis client and verify the connection.

    Args:
        redis_url: Redis connection URL.

    Returns:
        Connected client returning raw bytes.
    """
    logger.info(f"Connecting to Redis: {redis_url}")
    client = redis.from_url(redis_url, decode_responses=False)
    try:
        client.ping()
    except redis.ConnectionError as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise
    return client


def vector_to_bytes(vector: np.ndarray | None) -> bytes:
    """Encode a vector as FLOAT32 bytes (empty for None)."""
    if vector is None:
        return b""
    return np.asarray(vector, dtype=np.float32).tobytes()


def bytes_to_vector(raw: bytes | None) -> np.ndarray | None:
    """Decode FLOAT32 bytes back into a vector."""
    if not raw:
        return None
    return np.frombuffer(raw, dtype=np.float32).copy()


def _text(raw: bytes | str | None) -> str:
    if raw is None:
        return ""
    return raw.decode("utf-8") if isinstance(raw, bytes) else raw


class RedisCache:
    """Embedding cache using SETEX keys holding FLOAT32 vectors."""

    def __init__(self, client: redis.Redis, key_prefix: str = "aic:emb:"):
        """
        Initialize the cache.

        Args:
            client: Redis client.
            key_prefix: Prefix for cache keys.
        """
        self.client = client
        self.key_prefix = key_prefix

    def get(self, key: str) -> np.ndarray | None:
        raw = self.client.get(f"{self.key_prefix}{key}")
        return bytes_to_vector(raw)

    def set(self, key: str, value: np.ndarray, ttl_seconds: int | None = None) -> None:
        payload = vector_to_bytes(value)
        if ttl_seconds is None:
            self.client.set(f"{self.key_prefix}{key}", payload)
        else:
            self.client.setex(f"{self.key_prefix}{key}", ttl_seconds, payload)

    def invalidate(self, key: str | None = None) -> int:
        if key is not None:
            return int(self.client.delete(f"{self.key_prefix}{key}"))

        removed = 0
        batch: list[bytes] = []
        for cache_key in self.client.scan_iter(match=f"{self.key_prefix}*", count=500):
            batch.append(cache_key)
            if len(batch) >= 500:
                removed += int(self.client.delete(*batch))
                batch = []
        if batch:
            removed += int(self.client.delete(*batch))

        logger.info(f"Invalidated {removed} cached embeddings")
        return removed

    def __repr__(self) -> str:
        """String representation."""
        return f"RedisCache(prefix={self.key_prefix})"


class RedisItemStore:
    """
    Corpus store keeping each item in a Redis hash.

    Hash layout: ``doc`` (JSON of the scalar fields), ``vector`` (FLOAT32
    bytes, empty when missing) and ``embedding_status``. Status claims use
    WATCH/MULTI so overlapping batch runs never process the same item twice.
    """

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = "aic:content:",
        vector_field: str = "embedding",
        vector_dim: int | None = None,
    ):
        """
        Initialize the store.

        Args:
            client: Redis client.
            key_prefix: Prefix for item keys.
            vector_field: Item key holding the vector.
            vector_dim: Expected vector dimension, enforced on completed writes.
        """
        self.client = client
        self.key_prefix = key_prefix
        self.vector_field = vector_field
        self.vector_dim = vector_dim

    def _key(self, item_id: str) -> str:
        return f"{self.key_prefix}{item_id}"

    def _decode(self, raw: dict[bytes, bytes]) -> dict[str, Any] | None:
        if not raw:
            return None
        item = json.loads(_text(raw.get(b"doc")) or "{}")
        item[self.vector_field] = bytes_to_vector(raw.get(b"vector"))
        item["embedding_status"] = _text(raw.get(b"embedding_status")) or EmbeddingStatus.PENDING.value
        return item

    def all(self) -> list[dict[str, Any]]:
        keys = sorted(self.client.scan_iter(match=f"{self.key_prefix}*"))
        if not keys:
            return []

        pipe = self.client.pipeline()
        for key in keys:
            pipe.hgetall(key)
        items = [self._decode(raw) for raw in pipe.execute()]
        return [item for item in items if item is not None]

    def get(self, item_id: str) -> dict[str, Any] | None:
        return self._decode(self.client.hgetall(self._key(item_id)))

    def upsert(self, item: dict[str, Any]) -> None:
        if "id" not in item:
            raise ValueError("item id is required")

        vector = item.get(self.vector_field)
        status = item.get("embedding_status", EmbeddingStatus.PENDING.value)
        check_completed_vector(item["id"], vector, status, self.vector_dim)

        doc = {
            k: v
            for k, v in item.items()
            if k not in (self.vector_field, "embedding_status")
        }
        doc.setdefault("updated_at", time.time())

        self.client.hset(
            self._key(item["id"]),
            mapping={
                "doc": json.dumps(doc),
                "vector": vector_to_bytes(vector),
                "embedding_status": status,
            },
        )

    def claim(self, item_id: str) -> bool:
        key = self._key(item_id)
        with self.client.pipeline() as pipe:
            try:
                pipe.watch(key)
                status = _text(pipe.hget(key, "embedding_status"))
                if status != EmbeddingStatus.PENDING.value:
                    pipe.unwatch()
                    return False
                pipe.multi()
                pipe.hset(key, "embedding_status", EmbeddingStatus.PROCESSING.value)
                pipe.execute()
                return True
            except redis.WatchError:
                logger.debug(f"Lost claim race for {key}")
                return False

    def set_embedding(self, item_id: str, vector: np.ndarray | None, status: str) -> None:
        check_completed_vector(item_id, vector, status, self.vector_dim)
        self.client.hset(
            self._key(item_id),
            mapping={"vector": vector_to_bytes(vector), "embedding_status": status},
        )

    def reset_embeddings(self) -> int:
        count = 0
        pipe = self.client.pipeline()
        for key in self.client.scan_iter(match=f"{self.key_prefix}*"):
            pipe.hset(
                key,
                mapping={"vector": b"", "embedding_status": EmbeddingStatus.PENDING.value},
            )
            count += 1
        pipe.execute()
        logger.info(f"Reset embeddings for {count} items under {self.key_prefix}")
        return count

    def health_check(self) -> bool:
        """
        Check Redis health.

        Returns:
            True if healthy, False otherwise.
        """
        try:
            self.client.ping()
            return True
        except Exception:
            return False

    def close(self) -> None:
        """Close the Redis connection."""
        self.client.close()

    def __repr__(self) -> str:
        """String representation."""
        return f"RedisItemStore(prefix={self.key_prefix}, field={self.vector_field})"
