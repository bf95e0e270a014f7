"""Type definitions for chatbot intelligence."""

from enum import Enum
from typing import Any, Literal, TypedDict

import numpy as np


class EmbeddingStatus(str, Enum):
    """Lifecycle of an item's embedding."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class EmbeddingRecord(TypedDict):
    """Cached embedding entry."""

    text_hash: str
    vector: np.ndarray
    created_at: float


class ContentItem(TypedDict):
    """Site content available for retrieval."""

    id: str
    title: str
    body: str
    url: str
    embedding: np.ndarray | None
    embedding_status: str
    updated_at: float


class TrainingPair(TypedDict):
    """Admin-curated question and answer."""

    id: str
    question: str
    answer: str
    intent: str | None
    question_embedding: np.ndarray | None
    status: Literal["active", "inactive"]
    embedding_status: str


class ScoredContent(TypedDict):
    """Content search hit."""

    id: str | None
    title: str
    content: str
    url: str
    similarity: float
    relevance_score: float


class TrainingMatch(TypedDict):
    """Best semantic match against training data."""

    answer: str
    confidence: float
    explanation: str
    question: str
    intent: str | None


class BatchResult(TypedDict):
    """Result of one batch embedding run."""

    processed: int
    errors: int
    remaining: int


class SiteProfile(TypedDict, total=False):
    """Static website identity included in every context."""

    name: str
    url: str
    description: str
    contact: str
    language: str


class JourneyStage(TypedDict):
    """Detected user-journey stage."""

    stage: str
    intent: str
    instruction: str


class ContextSection(TypedDict):
    """One section of a context bundle."""

    name: str
    text: str
    priority: Literal["core", "supplementary"]


class EmotionalState(TypedDict):
    """Emotion bucket analysis."""

    dominant: str
    scores: dict[str, int]
    intensity: float


class IntentAnalysis(TypedDict):
    """Full intent analysis of a message."""

    primary_intent: str
    confidence: float
    all_intents: dict[str, float]
    emotional_state: EmotionalState
    urgency_level: Literal["high", "medium", "low"]
    entities: dict[str, list[str]]
    requires_human: bool
    suggested_actions: list[str]


class ConversationTurn(TypedDict):
    """A processed chat exchange, persisted by the caller."""

    session_id: str | None
    message: str
    response: str
    intent: str | None
    confidence: float | None
    source: Literal["semantic_training", "semantic_content", "ai_provider_enhanced", "error"]
    created_at: float


class ChatResult(TypedDict):
    """Response returned by the pipeline for one message."""

    response: str
    confidence: float | None
    intent: str | None
    source: str
    suggestions: list[str]
    requires_human: bool
    intent_analysis: IntentAnalysis | None
    semantic_results_count: int
    context_used: bool
    reasoning_applied: bool
    insights: dict[str, Any]
    turn: ConversationTurn
