"""End-to-end chat message processing."""

import logging
import re
import time
from typing import Any

from chatbot_intelligence.batch import EmbeddingBatchJob
from chatbot_intelligence.config import Settings
from chatbot_intelligence.context import ContextBuilder, detect_journey_stage
from chatbot_intelligence.embeddings.base import Embedder
from chatbot_intelligence.embeddings.cache import EmbeddingCache
from chatbot_intelligence.errors import (
    ChatbotIntelligenceError,
    NotFoundError,
    PipelineTimeoutError,
    ProviderError,
)
from chatbot_intelligence.intent.classifier import IntentClassifier
from chatbot_intelligence.intent.semantic import SemanticIntentAugmenter
from chatbot_intelligence.providers.base import ChatProvider
from chatbot_intelligence.reasoning.reasoner import ResponseReasoner
from chatbot_intelligence.search import SimilaritySearch
from chatbot_intelligence.store.base import CacheBackend, ItemStore
from chatbot_intelligence.store.memory import InMemoryCache, InMemoryItemStore
from chatbot_intelligence.types import (
    BatchResult,
    ChatResult,
    ConversationTurn,
    IntentAnalysis,
    ScoredContent,
)

logger = logging.getLogger(__name__)

ERROR_RESPONSE = "I'm sorry, I'm having trouble responding right now. Please try again in a moment."

FOLLOW_UP_SUGGESTIONS = {
    "purchase": (
        "How do I place an order?",
        "What payment methods do you accept?",
        "Do you offer any discounts?",
    ),
    "support": (
        "Can you help me with something else?",
        "How do I contact support?",
        "Where can I find more help?",
    ),
    "information": (
        "Tell me more about this",
        "What are the key features?",
        "How does it work?",
    ),
}
CONTENT_SUGGESTIONS = ("Show me more details", "Are there related topics?")
MAX_SUGGESTIONS = 3

LEAD_INTENT_POINTS = {"purchase": 50, "information": 20, "support": 10}

HISTORY_SNIPPET_CHARS = 100
CONTENT_EXCERPT_CHARS = 200

_TAG_RE = re.compile(r"<[^>]+>")


class ChatbotIntelligence:
    """
    Semantic retrieval and reasoning pipeline for a website chatbot.

    A message goes through intent analysis and context assembly, then the
    first stage that produces an answer wins: a training Q&A match, a chat
    reply grounded in matching site content, or a chat reply over the full
    context. Every answer is rewritten by the response reasoner.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        embedder: Embedder | None = None,
        chat_provider: ChatProvider | None = None,
        content_store: ItemStore | None = None,
        training_store: ItemStore | None = None,
        cache_backend: CacheBackend | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Configuration. Defaults to the global settings.
            embedder: Embedding provider. Defaults to the configured provider.
            chat_provider: Chat provider. Defaults to the configured provider.
            content_store: Site content store. Defaults to Redis or in-memory.
            training_store: Training pair store. Defaults to Redis or in-memory.
            cache_backend: Embedding cache backend. Defaults to Redis or in-memory.
        """
        if settings is None:
            from chatbot_intelligence.config import settings as default_settings

            settings = default_settings
        self.settings = settings

        if embedder is None:
            from chatbot_intelligence.embeddings.registry import build_embedder

            embedder = build_embedder(settings)
        self.embedder = embedder

        # Stores enforce the dimension the embedder actually produces
        vector_dim = embedder.dim
        if vector_dim != settings.vector_dim:
            logger.warning(
                f"Embedder {embedder!r} produces {vector_dim}-dim vectors, "
                f"ignoring configured vector_dim={settings.vector_dim}"
            )

        self._redis = None
        if settings.redis_url and None in (content_store, training_store, cache_backend):
            from chatbot_intelligence.store.redis_store import RedisCache, RedisItemStore, connect

            self._redis = connect(settings.redis_url)
            content_store = content_store or RedisItemStore(
                self._redis, settings.content_key_prefix, "embedding", vector_dim
            )
            training_store = training_store or RedisItemStore(
                self._redis, settings.training_key_prefix, "question_embedding", vector_dim
            )
            cache_backend = cache_backend or RedisCache(self._redis, settings.cache_key_prefix)

        self.content_store = content_store or InMemoryItemStore("embedding", vector_dim=vector_dim)
        self.training_store = training_store or InMemoryItemStore("question_embedding", vector_dim=vector_dim)

        if chat_provider is None:
            from chatbot_intelligence.providers.registry import build_chat_provider

            chat_provider = build_chat_provider(settings)
        self.chat_provider = chat_provider

        self.cache = EmbeddingCache(
            embedder,
            backend=cache_backend or InMemoryCache(),
            ttl_seconds=settings.embedding_cache_ttl_seconds,
            max_text_length=settings.embedding_max_input_chars,
        )
        self.search = SimilaritySearch(
            self.cache,
            self.content_store,
            self.training_store,
            similarity_threshold=settings.similarity_threshold,
            strict_dimensions=settings.strict_dimensions,
        )
        self.batch_job = EmbeddingBatchJob(
            self.cache,
            self.content_store,
            self.training_store,
            batch_size=settings.embedding_batch_size,
            delay_seconds=settings.embedding_batch_delay_seconds,
        )
        self.context_builder = ContextBuilder(
            search=self.search,
            site={
                "name": settings.site_name,
                "url": settings.site_url,
                "description": settings.site_description,
                "contact": settings.site_contact,
                "language": settings.site_language,
            },
            business_facts=settings.business_facts(),
            max_context_length=settings.max_context_length,
            timezone=settings.timezone,
        )

        augmenter = None
        if settings.semantic_intents_enabled:
            augmenter = SemanticIntentAugmenter(
                self.cache,
                threshold=settings.semantic_intent_threshold,
                ttl_seconds=settings.intent_examples_ttl_seconds,
            )
        self.classifier = IntentClassifier(sensitivity=settings.intent_sensitivity, augmenter=augmenter)

        contact_parts = []
        if settings.contact_phone:
            contact_parts.append(f"Phone: {settings.contact_phone}")
        if settings.contact_email:
            contact_parts.append(f"Email: {settings.contact_email}")
        self.reasoner = ResponseReasoner(contact_info=", ".join(contact_parts))

        logger.info("ChatbotIntelligence initialized")

    def process_message(
        self,
        message: str,
        session_id: str | None = None,
        history: list[ConversationTurn] | None = None,
        page_context: dict[str, Any] | None = None,
    ) -> ChatResult:
        """
        Answer one chat message.

        Args:
            message: User message.
            session_id: Conversation session identifier.
            history: Earlier turns of this session, oldest first.
            page_context: Optional ``page_url``, ``page_title`` and ``time_on_page`` (seconds).

        Returns:
            Final response with intent, source, suggestions and insights.

        Raises:
            ValueError: The message is empty.
        """
        if not message or not message.strip():
            raise ValueError("message is required")

        page_context = page_context or {}
        deadline = time.monotonic() + self.settings.request_timeout_seconds
        intent_analysis: IntentAnalysis | None = None
        enhanced_context = ""

        try:
            base_context = self.build_base_context(history, page_context)
            enhanced_context = self.context_builder.build(message, base_context)
            self._check_deadline(deadline)

            intent_analysis = self.classifier.classify(message, enhanced_context)
            self._check_deadline(deadline)

            outcome = self._answer(message, enhanced_context, intent_analysis, deadline)
        except PipelineTimeoutError as e:
            logger.error(f"Request deadline exceeded: {e}")
            outcome = None
        except ChatbotIntelligenceError as e:
            logger.error(f"All response stages failed: {type(e).__name__}: {e}")
            outcome = None

        if outcome is None:
            outcome = {
                "response": ERROR_RESPONSE,
                "confidence": None,
                "source": "error",
                "semantic_results": [],
                "reasoning_applied": False,
            }

        intent = intent_analysis["primary_intent"] if intent_analysis else None
        turn: ConversationTurn = {
            "session_id": session_id,
            "message": message,
            "response": outcome["response"],
            "intent": intent,
            "confidence": outcome["confidence"],
            "source": outcome["source"],
            "created_at": time.time(),
        }

        return {
            "response": outcome["response"],
            "confidence": outcome["confidence"],
            "intent": intent,
            "source": outcome["source"],
            "suggestions": self.follow_up_suggestions(intent, outcome["semantic_results"]),
            "requires_human": intent_analysis["requires_human"] if intent_analysis else False,
            "intent_analysis": intent_analysis,
            "semantic_results_count": len(outcome["semantic_results"]),
            "context_used": bool(enhanced_context),
            "reasoning_applied": outcome["reasoning_applied"],
            "insights": {
                "lead_score": self.lead_score(intent, page_context),
                "engagement_level": self.engagement_level(page_context),
                "journey_stage": (detect_journey_stage(message) or {}).get("stage"),
            },
            "turn": turn,
        }

    def _answer(
        self,
        message: str,
        context: str,
        intent_analysis: IntentAnalysis,
        deadline: float,
    ) -> dict[str, Any] | None:
        """Run the fallback chain; return None only if every stage failed."""
        try:
            match = self.search.best_training_match(
                message, similarity_threshold=self.settings.training_match_threshold
            )
        except NotFoundError:
            logger.debug("No training match, trying content search")
        else:
            self._check_deadline(deadline)
            logger.info(match["explanation"])
            return {
                "response": self.reasoner.enhance(match["answer"], message, context),
                "confidence": match["confidence"],
                "source": "semantic_training",
                "semantic_results": [],
                "reasoning_applied": True,
            }

        self._check_deadline(deadline)
        content_results = self.search.similar_content(
            message, limit=self.settings.semantic_content_limit, context_text=context
        )
        if content_results:
            content_context = self.build_content_context(content_results, context)
            try:
                return self._complete(
                    message, content_context, intent_analysis, deadline, "semantic_content", content_results
                )
            except ProviderError as e:
                if not e.recoverable:
                    logger.error(f"Chat provider unavailable: {e}")
                    return None
                logger.warning(f"Content-grounded completion failed ({type(e).__name__}), retrying with full context")

        try:
            return self._complete(message, context, intent_analysis, deadline, "ai_provider_enhanced", [])
        except ProviderError as e:
            logger.error(f"Chat provider failed: {type(e).__name__}: {e}")
            return None

    def _complete(
        self,
        message: str,
        context: str,
        intent_analysis: IntentAnalysis,
        deadline: float,
        source: str,
        semantic_results: list[ScoredContent],
    ) -> dict[str, Any]:
        remaining = self._check_deadline(deadline)
        draft = self.chat_provider.complete(context, message, timeout=remaining)
        self._check_deadline(deadline)
        return {
            "response": self.reasoner.enhance(draft, message, context),
            "confidence": intent_analysis["confidence"],
            "source": source,
            "semantic_results": semantic_results,
            "reasoning_applied": True,
        }

    @staticmethod
    def _check_deadline(deadline: float) -> float:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise PipelineTimeoutError("Request deadline exceeded")
        return remaining

    def build_base_context(
        self,
        history: list[ConversationTurn] | None,
        page_context: dict[str, Any],
    ) -> str:
        """Site name, current page and the most recent conversation turns."""
        lines = [
            f"Website: {self.settings.site_name}",
            f"Description: {self.settings.site_description}",
        ]
        if page_context.get("page_url"):
            lines.append(f"Current page: {page_context['page_url']}")
        if page_context.get("page_title"):
            lines.append(f"Page title: {page_context['page_title']}")

        recent = (history or [])[-self.settings.history_turns :] if self.settings.history_turns else []
        if recent:
            lines.append("\nRecent conversation:")
            for turn in recent:
                lines.append(f"User: {turn.get('message', '')[:HISTORY_SNIPPET_CHARS]}")
                lines.append(f"AI: {turn.get('response', '')[:HISTORY_SNIPPET_CHARS]}")
        return "\n".join(lines)

    @staticmethod
    def build_content_context(results: list[ScoredContent], base_context: str) -> str:
        """Context with the matched content appended under its relevance score."""
        lines = [base_context, "\n=== RELEVANT CONTENT (SEMANTIC SEARCH) ==="]
        for result in results:
            lines.append(f"Content: {result['title']} (Relevance: {result['relevance_score']}%)")
            content = result["content"] or ""
            excerpt = _TAG_RE.sub("", content)[:CONTENT_EXCERPT_CHARS]
            if len(content) > CONTENT_EXCERPT_CHARS:
                excerpt += "..."
            lines.append(excerpt)
            lines.append("")
        return "\n".join(lines)

    @staticmethod
    def follow_up_suggestions(intent: str | None, semantic_results: list[ScoredContent]) -> list[str]:
        suggestions = FOLLOW_UP_SUGGESTIONS.get(intent or "")
        if suggestions is None:
            suggestions = CONTENT_SUGGESTIONS if semantic_results else ()
        return list(suggestions[:MAX_SUGGESTIONS])

    def lead_score(self, intent: str | None, page_context: dict[str, Any]) -> int:
        """Rough 0-100 sales interest score from intent and time on page."""
        score = LEAD_INTENT_POINTS.get(intent or "", 0)
        time_on_page = page_context.get("time_on_page") or 0
        if time_on_page > self.settings.engagement_high_seconds:
            score += 20
        if time_on_page > self.settings.lead_time_bonus_seconds:
            score += 10
        return min(score, 100)

    def engagement_level(self, page_context: dict[str, Any]) -> str:
        time_on_page = page_context.get("time_on_page") or 0
        if time_on_page > self.settings.engagement_high_seconds:
            return "high"
        if time_on_page > self.settings.engagement_medium_seconds:
            return "medium"
        return "low"

    def semantic_search(self, query: str, limit: int = 5) -> list[ScoredContent]:
        """
        Search site content the way the chat pipeline does.

        Raises:
            ValueError: The query is empty.
        """
        if not query or not query.strip():
            raise ValueError("query is required")
        return self.search.similar_content(query, limit=limit)

    def generate_embeddings(self, mode: str = "missing", batch_size: int | None = None) -> BatchResult:
        """Process one embedding batch; ``"all"`` regenerates everything."""
        return self.batch_job.run(mode, batch_size)

    def embedding_status(self) -> dict[str, Any]:
        return {"pending": self.batch_job.pending_count(), **self.batch_job.status()}

    def analyze_intent(self, message: str, context: str = "") -> IntentAnalysis:
        return self.classifier.classify(message, context)

    def add_content(self, items: list[dict[str, Any]]) -> int:
        """Upsert site content items as pending; returns the number stored."""
        for item in items:
            self.content_store.upsert({**item, "embedding": None, "embedding_status": "pending"})
        return len(items)

    def add_training_pairs(self, pairs: list[dict[str, Any]]) -> int:
        """Upsert training Q&A pairs as pending; returns the number stored."""
        for pair in pairs:
            self.training_store.upsert(
                {
                    "status": "active",
                    "intent": None,
                    **pair,
                    "question_embedding": None,
                    "embedding_status": "pending",
                }
            )
        return len(pairs)

    def health_check(self) -> bool:
        """
        Check store health.

        Returns:
            True if healthy, False otherwise.
        """
        try:
            return all(
                getattr(store, "health_check", lambda: True)()
                for store in (self.content_store, self.training_store)
            )
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return False

    def close(self) -> None:
        """Release store connections."""
        if self._redis is not None:
            self._redis.close()
            self._redis = None

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"ChatbotIntelligence(embedder={self.embedder!r}, chat={self.chat_provider!r}, "
            f"content={self.content_store!r})"
        )

    def __enter__(self) -> "ChatbotIntelligence":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()
