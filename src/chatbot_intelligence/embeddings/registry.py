"""Embedding provider factory."""

import logging

from chatbot_intelligence.config import Settings
from chatbot_intelligence.embeddings.base import Embedder

logger = logging.getLogger(__name__)


def _build_openai(settings: Settings) -> Embedder:
    from chatbot_intelligence.embeddings.openai_embedder import OpenAIEmbedder

    return OpenAIEmbedder(
        api_key=settings.openai_api_key,
        model=settings.embed_model_name,
        base_url=settings.openai_base_url,
        vector_dim=settings.vector_dim,
        timeout=settings.embedding_timeout_seconds,
        max_input_chars=settings.embedding_max_input_chars,
    )


def _build_local(settings: Settings) -> Embedder:
    from chatbot_intelligence.embeddings.st_local import SentenceTransformerEmbedder

    return SentenceTransformerEmbedder(
        model_name=settings.embed_model_name,
        max_input_chars=settings.embedding_max_input_chars,
    )


def _build_titan(settings: Settings) -> Embedder:
    from chatbot_intelligence.embeddings.titan_embedder import TitanEmbedder

    return TitanEmbedder(
        model_id=settings.embed_model_name,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        aws_region=settings.aws_region,
        vector_dim=settings.vector_dim,
        timeout=settings.embedding_timeout_seconds,
        max_input_chars=settings.embedding_max_input_chars,
    )


EMBEDDERS = {
    "openai": _build_openai,
    "local": _build_local,
    "titan": _build_titan,
}


def build_embedder(settings: Settings) -> Embedder:
    """
    Create the embedding provider named by ``settings.embed_provider``.

    Args:
        settings: Application settings.

    Returns:
        Embedder instance.

    Raises:
        ValueError: Unknown provider name.
    """
    factory = EMBEDDERS.get(settings.embed_provider)
    if factory is None:
        raise ValueError(
            f"Unknown embed_provider: {settings.embed_provider}. "
            f"Must be one of: {', '.join(EMBEDDERS)}"
        )
    logger.info(f"Using {settings.embed_provider} embeddings with model: {settings.embed_model_name}")
    return factory(settings)
