"""CLI for chatbot intelligence."""

import json
import logging
import sys
from pathlib import Path

import typer

from chatbot_intelligence.config import settings

# Initialize logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="chatbot-intelligence",
    help="Chatbot Intelligence CLI",
    add_completion=False,
)


def _pipeline(redis_url: str | None):
    from chatbot_intelligence.pipeline import ChatbotIntelligence

    if redis_url:
        return ChatbotIntelligence(settings=settings.model_copy(update={"redis_url": redis_url}))
    return ChatbotIntelligence()


@app.command()
def serve(
    host: str = typer.Option(settings.host, "--host", "-H", help="Host to bind"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """
    Start the FastAPI server.

    Example:
        chatbot-intelligence serve --host 0.0.0.0 --port 8080
    """
    import uvicorn

    logger.info(f"Starting server on {host}:{port}")
    uvicorn.run(
        "chatbot_intelligence.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@app.command()
def ingest(
    file: Path = typer.Option(..., "--file", "-f", exists=True, help="JSON file with content and training lists"),
    redis_url: str = typer.Option(None, "--redis-url", "-r", help="Redis URL"),
) -> None:
    """
    Store site content and training pairs from a JSON file.

    The file holds ``{"content": [...], "training": [...]}``. Items are stored
    with pending embeddings; run ``embed`` afterwards.

    Example:
        chatbot-intelligence ingest --file corpus.json
    """
    try:
        data = json.loads(file.read_text(encoding="utf-8"))

        with _pipeline(redis_url) as pipeline:
            content_count = pipeline.add_content(data.get("content", []))
            training_count = pipeline.add_training_pairs(data.get("training", []))

        print(f"✓ Stored {content_count} content items")
        print(f"✓ Stored {training_count} training pairs")
    except Exception as e:
        logger.error(f"Error ingesting corpus: {e}")
        sys.exit(1)


@app.command()
def embed(
    mode: str = typer.Option("missing", "--mode", "-m", help="missing or all"),
    batch_size: int = typer.Option(None, "--batch-size", "-b", help="Items per batch"),
    redis_url: str = typer.Option(None, "--redis-url", "-r", help="Redis URL"),
) -> None:
    """
    Generate embeddings until nothing is pending.

    Example:
        chatbot-intelligence embed --mode all --batch-size 20
    """
    if mode not in ("missing", "all"):
        print(f"✗ Unknown mode '{mode}', expected 'missing' or 'all'")
        sys.exit(1)

    try:
        with _pipeline(redis_url) as pipeline:
            processed = errors = 0
            for result in pipeline.batch_job.iter_batches(mode, batch_size):
                processed += result["processed"]
                errors += result["errors"]
                print(f"  Batch: {result['processed']} processed, {result['remaining']} remaining")

        print(f"✓ Embedded {processed} items ({errors} errors)")
    except Exception as e:
        logger.error(f"Error generating embeddings: {e}")
        sys.exit(1)


@app.command()
def status(
    redis_url: str = typer.Option(None, "--redis-url", "-r", help="Redis URL"),
) -> None:
    """Show embedding progress per corpus."""
    try:
        with _pipeline(redis_url) as pipeline:
            progress = pipeline.embedding_status()

        print(f"Pending: {progress['pending']}")
        for corpus in ("content", "training"):
            stats = progress[corpus]
            print(f"{corpus.title()}: {stats['completed']}/{stats['total']} ({stats['percentage']:.1f}%)")
    except Exception as e:
        logger.error(f"Error reading embedding status: {e}")
        sys.exit(1)


@app.command()
def search(
    query: str = typer.Option(..., "--query", "-q", help="Query text"),
    limit: int = typer.Option(5, "--limit", "-k", help="Number of results"),
    redis_url: str = typer.Option(None, "--redis-url", "-r", help="Redis URL"),
) -> None:
    """
    Search site content semantically.

    Example:
        chatbot-intelligence search --query "shipping times" --limit 3
    """
    try:
        with _pipeline(redis_url) as pipeline:
            results = pipeline.semantic_search(query, limit=limit)

        if results:
            print(f"✓ Found {len(results)} results:")
            for i, result in enumerate(results, 1):
                print(f"  {i}. {result['title']} ({result['relevance_score']}%) {result['url']}")
        else:
            print("✗ No matching content")
    except Exception as e:
        logger.error(f"Error searching content: {e}")
        sys.exit(1)


@app.command()
def classify(
    message: str = typer.Option(..., "--message", "-m", help="Message to classify"),
) -> None:
    """
    Analyze the intent of a message with the keyword classifier.

    Example:
        chatbot-intelligence classify --message "How much does the pro plan cost?"
    """
    from chatbot_intelligence.intent.classifier import IntentClassifier

    try:
        classifier = IntentClassifier(sensitivity=settings.intent_sensitivity)
        analysis = classifier.classify(message)

        print(f"✓ {IntentClassifier.explain(analysis)}")
        if analysis["suggested_actions"]:
            print(f"  Actions: {', '.join(analysis['suggested_actions'])}")
    except Exception as e:
        logger.error(f"Error classifying message: {e}")
        sys.exit(1)


@app.command()
def chat(
    message: str = typer.Option(..., "--message", "-m", help="User message"),
    redis_url: str = typer.Option(None, "--redis-url", "-r", help="Redis URL"),
) -> None:
    """
    Answer one message through the full pipeline.

    Example:
        chatbot-intelligence chat --message "Do you ship to Canada?"
    """
    try:
        with _pipeline(redis_url) as pipeline:
            result = pipeline.process_message(message)

        print(result["response"])
        print(f"\n  Source: {result['source']}  Intent: {result['intent']}  Confidence: {result['confidence']}")
        for suggestion in result["suggestions"]:
            print(f"  → {suggestion}")
    except Exception as e:
        logger.error(f"Error processing message: {e}")
        sys.exit(1)


@app.command()
def info() -> None:
    """Display configuration information."""
    print(f"Redis URL: {settings.redis_url or '(in-memory)'}")
    print(f"Embed provider: {settings.embed_provider}")
    print(f"Embed model: {settings.embed_model_name}")
    print(f"Vector dimension: {settings.vector_dim}")
    print(f"Chat provider: {settings.chat_provider}")
    print(f"Similarity threshold: {settings.similarity_threshold}")
    print(f"Site: {settings.site_name} ({settings.site_url})")


if __name__ == "__main__":
    app()
