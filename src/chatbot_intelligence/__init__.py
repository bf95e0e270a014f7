"""Chatbot Intelligence - semantic retrieval and response reasoning for website chatbots."""

from chatbot_intelligence.pipeline import ChatbotIntelligence

__all__ = ["ChatbotIntelligence"]
__version__ = "0.1.0"
