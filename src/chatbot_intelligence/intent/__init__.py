"""Intent recognition for chat messages."""

from chatbot_intelligence.intent.classifier import IntentClassifier
from chatbot_intelligence.intent.entities import extract_entities
from chatbot_intelligence.intent.semantic import SemanticIntentAugmenter

__all__ = ["IntentClassifier", "SemanticIntentAugmenter", "extract_entities"]
