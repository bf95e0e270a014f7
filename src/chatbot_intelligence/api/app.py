"""FastAPI application for the chatbot intelligence service."""

import logging
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from chatbot_intelligence.intent.classifier import IntentClassifier
from chatbot_intelligence.pipeline import ChatbotIntelligence

logger = logging.getLogger(__name__)

# Global pipeline instance
_pipeline: ChatbotIntelligence | None = None


def get_pipeline() -> ChatbotIntelligence:
    """Get or create pipeline instance."""
    global _pipeline
    if _pipeline is None:
        _pipeline = ChatbotIntelligence()
    return _pipeline


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    # Startup
    logger.info("Starting chatbot intelligence API")
    get_pipeline()
    logger.info("Pipeline initialized")

    yield

    # Shutdown
    logger.info("Shutting down chatbot intelligence API")
    global _pipeline
    if _pipeline:
        _pipeline.close()
        _pipeline = None


app = FastAPI(
    title="Chatbot Intelligence API",
    description="Semantic retrieval and response reasoning for website chatbots",
    version="0.1.0",
    lifespan=lifespan,
)


# Pydantic models
class HistoryTurnModel(BaseModel):
    """One earlier exchange in the conversation."""

    message: str = Field(..., description="User message")
    response: str = Field(default="", description="Assistant response")


class ChatRequest(BaseModel):
    """Request model for chat endpoint."""

    message: str = Field(..., description="User message")
    session_id: str | None = Field(default=None, description="Conversation session identifier")
    history: list[HistoryTurnModel] = Field(default_factory=list, description="Earlier turns, oldest first")
    page_url: str | None = Field(default=None, description="URL of the page the user is on")
    page_title: str | None = Field(default=None, description="Title of the page the user is on")
    time_on_page: float = Field(default=0, ge=0, description="Seconds spent on the page")


class InsightsModel(BaseModel):
    """Lead insights for the message."""

    lead_score: int = Field(..., description="0-100 sales interest score")
    engagement_level: str = Field(..., description="low, medium or high")
    journey_stage: str | None = Field(default=None, description="Detected journey stage")


class ChatResponse(BaseModel):
    """Response model for chat endpoint."""

    response: str = Field(..., description="Final response text")
    confidence: float | None = Field(default=None, description="Match or intent confidence")
    intent: str | None = Field(default=None, description="Primary intent")
    source: str = Field(..., description="Which stage produced the response")
    suggestions: list[str] = Field(..., description="Follow-up questions to offer")
    requires_human: bool = Field(..., description="Whether a human should take over")
    semantic_results_count: int = Field(..., description="Number of content matches used")
    reasoning_applied: bool = Field(..., description="Whether the reasoner rewrote the response")
    insights: InsightsModel = Field(..., description="Lead insights")


class GenerateEmbeddingsRequest(BaseModel):
    """Request model for embedding generation endpoint."""

    mode: Literal["missing", "all"] = Field(default="missing", description="missing or all")
    batch_size: int | None = Field(default=None, ge=1, le=100, description="Items per batch")


class GenerateEmbeddingsResponse(BaseModel):
    """Response model for embedding generation endpoint."""

    processed: int = Field(..., description="Items embedded in this batch")
    errors: int = Field(..., description="Items that failed")
    remaining: int = Field(..., description="Items still pending")


class CorpusStatusModel(BaseModel):
    """Embedding progress of one corpus."""

    total: int = Field(..., description="Number of items")
    completed: int = Field(..., description="Items with a completed embedding")
    percentage: float = Field(..., description="Completed share, 0-100")


class EmbeddingStatusResponse(BaseModel):
    """Response model for embedding status endpoint."""

    pending: int = Field(..., description="Items waiting for an embedding")
    content: CorpusStatusModel = Field(..., description="Site content progress")
    training: CorpusStatusModel = Field(..., description="Training pair progress")


class SearchRequest(BaseModel):
    """Request model for search test endpoint."""

    query: str = Field(..., description="Query text")
    limit: int = Field(default=5, ge=1, le=50, description="Number of results to return")


class SearchResultModel(BaseModel):
    """Search result model."""

    id: str | None = Field(default=None, description="Content identifier")
    title: str = Field(..., description="Content title")
    content: str = Field(..., description="Content body")
    url: str = Field(..., description="Content URL")
    similarity: float = Field(..., description="Similarity score")
    relevance_score: float = Field(..., description="Similarity as a percentage")


class SearchResponse(BaseModel):
    """Response model for search test endpoint."""

    query: str = Field(..., description="Query text")
    results: list[SearchResultModel] = Field(..., description="Matches, best first")
    count: int = Field(..., description="Number of results")


class IntentRequest(BaseModel):
    """Request model for intent analysis endpoint."""

    message: str = Field(..., description="Message to analyze")
    context: str = Field(default="", description="Optional context text")


class IntentResponse(BaseModel):
    """Response model for intent analysis endpoint."""

    primary_intent: str = Field(..., description="Best intent")
    confidence: float = Field(..., description="Confidence of the best intent")
    all_intents: dict[str, float] = Field(..., description="Scores of every matched intent")
    emotional_state: dict = Field(..., description="Dominant emotion and intensity")
    urgency_level: str = Field(..., description="low, medium or high")
    entities: dict[str, list[str]] = Field(..., description="Extracted entities")
    requires_human: bool = Field(..., description="Whether a human should take over")
    suggested_actions: list[str] = Field(..., description="Suggested next actions")
    explanation: str = Field(..., description="Human-readable summary")


class ContentItemModel(BaseModel):
    """Site content item."""

    id: str = Field(..., description="Content identifier")
    title: str = Field(..., description="Title")
    body: str = Field(default="", description="Body text, HTML allowed")
    url: str = Field(default="", description="Public URL")


class TrainingPairModel(BaseModel):
    """Admin-curated question and answer."""

    id: str = Field(..., description="Pair identifier")
    question: str = Field(..., description="Question")
    answer: str = Field(..., description="Answer")
    intent: str | None = Field(default=None, description="Optional intent label")
    status: Literal["active", "inactive"] = Field(default="active", description="active or inactive")


class CorpusWriteResponse(BaseModel):
    """Response model for corpus write endpoints."""

    status: str = Field(..., description="Status")
    stored: int = Field(..., description="Number of items stored")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Status")
    healthy: bool = Field(..., description="Health check result")


# API endpoints. Handlers that reach stores or providers are plain functions so
# FastAPI runs them in its threadpool instead of on the event loop.
@app.post("/chat", response_model=ChatResponse, tags=["Chat"])
def chat(request: ChatRequest) -> ChatResponse:
    """
    Answer a chat message.

    Tries training answers, then content-grounded completion, then a plain
    completion. Provider failures degrade to a generic apology.
    """
    try:
        pipeline = get_pipeline()
        result = pipeline.process_message(
            request.message,
            session_id=request.session_id,
            history=[turn.model_dump() for turn in request.history],
            page_context={
                "page_url": request.page_url,
                "page_title": request.page_title,
                "time_on_page": request.time_on_page,
            },
        )

        return ChatResponse(
            response=result["response"],
            confidence=result["confidence"],
            intent=result["intent"],
            source=result["source"],
            suggestions=result["suggestions"],
            requires_human=result["requires_human"],
            semantic_results_count=result["semantic_results_count"],
            reasoning_applied=result["reasoning_applied"],
            insights=InsightsModel(**result["insights"]),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error processing chat message: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/embeddings/generate", response_model=GenerateEmbeddingsResponse, tags=["Embeddings"])
def generate_embeddings(request: GenerateEmbeddingsRequest) -> GenerateEmbeddingsResponse:
    """
    Embed one batch of pending items.

    Call repeatedly until ``remaining`` is 0. Mode ``all`` resets every
    embedding first, so follow-up calls should use ``missing``.
    """
    try:
        pipeline = get_pipeline()
        result = pipeline.generate_embeddings(mode=request.mode, batch_size=request.batch_size)
        return GenerateEmbeddingsResponse(**result)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error generating embeddings: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/embeddings/status", response_model=EmbeddingStatusResponse, tags=["Embeddings"])
def embedding_status() -> EmbeddingStatusResponse:
    """Embedding progress per corpus."""
    try:
        pipeline = get_pipeline()
        status = pipeline.embedding_status()
        return EmbeddingStatusResponse(
            pending=status["pending"],
            content=CorpusStatusModel(**status["content"]),
            training=CorpusStatusModel(**status["training"]),
        )
    except Exception as e:
        logger.error(f"Error reading embedding status: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/search/test", response_model=SearchResponse, tags=["Search"])
def search_test(request: SearchRequest) -> SearchResponse:
    """Run a semantic content search the way the chat pipeline does."""
    try:
        pipeline = get_pipeline()
        results = pipeline.semantic_search(request.query, limit=request.limit)
        return SearchResponse(
            query=request.query,
            results=[SearchResultModel(**r) for r in results],
            count=len(results),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error searching content: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/intent/analyze", response_model=IntentResponse, tags=["Intent"])
def analyze_intent(request: IntentRequest) -> IntentResponse:
    """Classify a message without generating a response."""
    try:
        pipeline = get_pipeline()
        analysis = pipeline.analyze_intent(request.message, request.context)
        return IntentResponse(**analysis, explanation=IntentClassifier.explain(analysis))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error analyzing intent: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/content", response_model=CorpusWriteResponse, tags=["Corpus"])
def add_content(items: list[ContentItemModel]) -> CorpusWriteResponse:
    """Store site content items; their embeddings start out pending."""
    try:
        pipeline = get_pipeline()
        stored = pipeline.add_content([item.model_dump() for item in items])
        return CorpusWriteResponse(status="ok", stored=stored)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error storing content: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/training", response_model=CorpusWriteResponse, tags=["Corpus"])
def add_training(pairs: list[TrainingPairModel]) -> CorpusWriteResponse:
    """Store training Q&A pairs; their embeddings start out pending."""
    try:
        pipeline = get_pipeline()
        stored = pipeline.add_training_pairs([pair.model_dump() for pair in pairs])
        return CorpusWriteResponse(status="ok", stored=stored)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error storing training pairs: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/healthz", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Returns the health status of the API and its stores.
    """
    try:
        pipeline = get_pipeline()
        healthy = pipeline.health_check()

        return HealthResponse(
            status="ok" if healthy else "error",
            healthy=healthy,
        )
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return HealthResponse(status="error", healthy=False)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "name": "Chatbot Intelligence API",
        "version": "0.1.0",
        "status": "running",
    }
