"""Chat completion providers."""

from chatbot_intelligence.providers.base import ChatProvider
from chatbot_intelligence.providers.registry import build_chat_provider

__all__ = ["ChatProvider", "build_chat_provider"]
