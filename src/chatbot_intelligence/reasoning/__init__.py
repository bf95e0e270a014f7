"""Response reasoning: rewrite chain applied to draft answers."""

from chatbot_intelligence.reasoning.quality import quality_score
from chatbot_intelligence.reasoning.reasoner import ResponseReasoner

__all__ = ["ResponseReasoner", "quality_score"]
