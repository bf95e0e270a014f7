"""Embedding providers and cache for chatbot intelligence."""

from chatbot_intelligence.embeddings.base import Embedder
from chatbot_intelligence.embeddings.cache import EmbeddingCache
from chatbot_intelligence.embeddings.openai_embedder import OpenAIEmbedder
from chatbot_intelligence.embeddings.registry import build_embedder

__all__ = ["Embedder", "EmbeddingCache", "OpenAIEmbedder", "build_embedder"]
