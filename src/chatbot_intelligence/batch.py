"""Batch embedding generation for content items and training questions."""

import logging
import time
from typing import Callable, Iterator, Literal

from chatbot_intelligence.embeddings.cache import EmbeddingCache
from chatbot_intelligence.store.base import ItemStore
from chatbot_intelligence.types import BatchResult, EmbeddingStatus

logger = logging.getLogger(__name__)

BatchMode = Literal["missing", "all"]


class EmbeddingBatchJob:
    """
    Embeds pending corpus items a bounded batch at a time.

    Each call to ``run`` processes at most ``batch_size`` items and reports
    how many are still pending, so an HTTP client can poll until
    ``remaining == 0``. ``iter_batches`` drives the same loop in-process.
    """

    def __init__(
        self,
        cache: EmbeddingCache,
        content_store: ItemStore,
        training_store: ItemStore,
        batch_size: int = 10,
        delay_seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the job.

        Args:
            cache: Embedding cache (provider calls go through it).
            content_store: Site content items.
            training_store: Training Q&A pairs.
            batch_size: Default number of items per run.
            delay_seconds: Pause between items to respect upstream rate limits.
            sleep: Sleep function; injectable for tests.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.cache = cache
        self.content_store = content_store
        self.training_store = training_store
        self.batch_size = batch_size
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def _sources(self) -> list[tuple[ItemStore, Callable[[dict], str]]]:
        return [
            (
                self.content_store,
                lambda item: f"{item.get('title', '')} {item.get('body', '')}",
            ),
            (self.training_store, lambda pair: pair.get("question", "")),
        ]

    def reset(self) -> int:
        """
        Mark every item pending with a cleared vector and drop cached embeddings.

        Returns:
            Number of items reset.
        """
        count = self.content_store.reset_embeddings() + self.training_store.reset_embeddings()
        self.cache.invalidate_all()
        logger.info(f"Reset {count} items for full embedding regeneration")
        return count

    def pending_count(self) -> int:
        """Return how many items across both corpora are still pending."""
        return sum(
            1
            for store, _ in self._sources()
            for item in store.all()
            if item.get("embedding_status") == EmbeddingStatus.PENDING.value
        )

    def run(self, mode: BatchMode = "missing", batch_size: int | None = None) -> BatchResult:
        """
        Process one batch of pending items.

        Args:
            mode: ``"missing"`` embeds pending items; ``"all"`` resets everything first.
            batch_size: Overrides the default batch size.

        Returns:
            Counts of processed, failed and still-pending items.
        """
        if mode not in ("missing", "all"):
            raise ValueError(f"Unknown batch mode: {mode}")
        size = batch_size or self.batch_size
        if size < 1:
            raise ValueError("batch_size must be at least 1")

        if mode == "all":
            self.reset()

        processed = 0
        errors = 0
        attempted = 0

        for store, text_of in self._sources():
            for item in store.all():
                if attempted >= size:
                    break
                if item.get("embedding_status") != EmbeddingStatus.PENDING.value:
                    continue
                if not store.claim(item["id"]):
                    continue

                if attempted > 0 and self.delay_seconds:
                    self._sleep(self.delay_seconds)
                attempted += 1

                try:
                    vector = self.cache.get_or_create(text_of(item))
                    store.set_embedding(item["id"], vector, EmbeddingStatus.COMPLETED.value)
                    processed += 1
                except Exception as e:
                    logger.error(f"Failed to embed item {item['id']}: {e}")
                    store.set_embedding(item["id"], None, EmbeddingStatus.ERROR.value)
                    errors += 1

        remaining = self.pending_count()
        logger.info(f"Embedding batch done: processed={processed} errors={errors} remaining={remaining}")
        return {"processed": processed, "errors": errors, "remaining": remaining}

    def iter_batches(
        self,
        mode: BatchMode = "missing",
        batch_size: int | None = None,
    ) -> Iterator[BatchResult]:
        """
        Yield batch results until nothing is pending.

        ``"all"`` resets only before the first batch. Iteration also stops if a
        batch makes no progress (another worker holds the remaining items).
        """
        result = self.run(mode, batch_size)
        yield result
        while result["remaining"] > 0 and (result["processed"] + result["errors"]) > 0:
            result = self.run("missing", batch_size)
            yield result

    def status(self) -> dict[str, dict[str, float]]:
        """
        Report embedding coverage per corpus.

        Returns:
            ``{"content": {...}, "training": {...}}`` with total, completed and percentage.
        """
        report = {}
        for name, store in (("content", self.content_store), ("training", self.training_store)):
            items = store.all()
            total = len(items)
            completed = sum(
                1 for item in items if item.get("embedding_status") == EmbeddingStatus.COMPLETED.value
            )
            report[name] = {
                "total": total,
                "completed": completed,
                "percentage": round(completed / total * 100, 1) if total else 0.0,
            }
        return report

    def __repr__(self) -> str:
        """String representation."""
        return f"EmbeddingBatchJob(batch_size={self.batch_size}, delay={self.delay_seconds})"
