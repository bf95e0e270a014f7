"""Multi-pass rewrite of draft chat responses."""

import logging
import random
import re
from typing import Any, Callable

from chatbot_intelligence.reasoning import quality, rules

logger = logging.getLogger(__name__)

_CONTRACTION_RES = [
    (re.compile(rf"\b{re.escape(k)}\b", re.IGNORECASE), v) for k, v in rules.CONTRACTIONS.items()
]
_SIMPLIFICATION_RES = [
    (re.compile(rf"\b{re.escape(k)}\b", re.IGNORECASE), v)
    for k, v in rules.TECHNICAL_SIMPLIFICATIONS.items()
]


def _expand(match: re.Match, expansion: str) -> str:
    """Keep a leading capital when expanding a contraction."""
    if match.group(0)[0].isupper():
        return expansion[0].upper() + expansion[1:]
    return expansion


class ResponseReasoner:
    """
    Rewrites a draft response in six fixed stages.

    1. contextual augmentation (insight extraction plus hook points)
    2. structure by message type
    3. personalization: name, tone, expertise
    4. helpful suggestion line
    5. completeness fill-ins and terminal punctuation
    6. quality check and length bounds

    Stages never raise. A stage that fails on unexpected data logs the error
    and passes its input through unchanged.
    """

    def __init__(
        self,
        contact_info: str = "",
        min_length: int = 20,
        max_length: int = 1000,
        quality_threshold: float = 0.7,
        rng: random.Random | None = None,
    ):
        """
        Initialize the reasoner.

        Args:
            contact_info: Text offered when the user asks how to get in touch,
                e.g. "Phone: 555-0100, Email: hi@example.com".
            min_length: Responses shorter than this are expanded.
            max_length: Responses longer than this are condensed.
            quality_threshold: Quality scores below this get a helpful opener.
            rng: Random source for opener selection; seed it in tests.
        """
        self.contact_info = contact_info
        self.min_length = min_length
        self.max_length = max_length
        self.quality_threshold = quality_threshold
        self.rng = rng or random.Random()

    def enhance(self, response: str, message: str, context: str = "") -> str:
        """
        Run all stages over a draft response.

        Args:
            response: Draft from the chat provider or a training answer.
            message: User message the draft answers.
            context: Context string the draft was generated with.

        Returns:
            Final response text.
        """
        text = response or ""
        message = message or ""
        context = context or ""

        if message.strip():
            stages: list[tuple[str, Callable[[str], str]]] = [
                ("contextual", lambda t: self.apply_contextual_reasoning(t, context)),
                ("structure", lambda t: self.improve_structure(t, message)),
                ("personalization", lambda t: self.personalize(t, message, context)),
                ("suggestions", lambda t: self.add_suggestions(t, message)),
                ("completeness", lambda t: self.ensure_completeness(t, message)),
                ("quality", lambda t: self.validate_quality(t, message)),
            ]
        else:
            stages = []
        stages.append(("length", self.enforce_length))

        for name, stage in stages:
            try:
                text = stage(text)
            except Exception:
                logger.exception(f"Reasoning stage '{name}' failed, keeping its input")
        return text

    # Stage 1

    def analyze_context_insights(self, context: str) -> dict[str, Any]:
        """Pull recent user turns, business facts and temporal facts out of a context string."""
        history = [m.strip() for m in rules.HISTORY_RE.findall(context)][-rules.HISTORY_TURNS :]
        business = rules.BUSINESS_BLOCK_RE.search(context)
        temporal = rules.TEMPORAL_BLOCK_RE.search(context)
        return {
            "user_history": history,
            "business_context": business.group(1).strip() if business else "",
            "temporal_context": temporal.group(1).strip() if temporal else "",
        }

    def apply_contextual_reasoning(self, response: str, context: str) -> str:
        insights = self.analyze_context_insights(context)
        if insights["user_history"]:
            response = self.add_historical_context(response, insights["user_history"])
        if insights["business_context"]:
            response = self.add_business_context(response, insights["business_context"])
        if insights["temporal_context"]:
            response = self.add_temporal_context(response, insights["temporal_context"])
        return response

    # Hook points for subclasses; the base reasoner leaves the response as is.

    def add_historical_context(self, response: str, history: list[str]) -> str:
        return response

    def add_business_context(self, response: str, business_context: str) -> str:
        return response

    def add_temporal_context(self, response: str, temporal_context: str) -> str:
        return response

    # Stage 2

    @staticmethod
    def classify_message_type(message: str) -> str:
        """Return question, problem, request, complaint or general."""
        for message_type, pattern in rules.MESSAGE_TYPE_RULES:
            if pattern.search(message):
                return message_type
        return "general"

    @staticmethod
    def direct_answer_intro(message: str) -> str:
        lowered = message.strip().lower()
        for question_word, intro in rules.DIRECT_ANSWER_INTROS.items():
            if lowered.startswith(question_word):
                return intro
        return rules.DEFAULT_ANSWER_INTRO

    def improve_structure(self, response: str, message: str) -> str:
        message_type = self.classify_message_type(message)

        if message_type == "question":
            if rules.DIRECT_ANSWER_RE.search(response.strip()):
                return response
            return f"{self.direct_answer_intro(message)} {response}"

        if message_type == "problem":
            body = response if rules.STEPS_RE.search(response) else rules.PROBLEM_STEPS_LEAD + response
            return " ".join([rules.PROBLEM_ACKNOWLEDGEMENT, body, rules.PROBLEM_FOLLOW_UP])

        if message_type == "request":
            return rules.REQUEST_LEAD + response

        if message_type == "complaint":
            return rules.COMPLAINT_LEAD + response + rules.COMPLAINT_CLOSE

        return response

    # Stage 3

    @staticmethod
    def detect_tone(message: str) -> str:
        """Return formal, casual, urgent, empathetic or neutral."""
        for tone, pattern in rules.TONE_RULES:
            if pattern.search(message):
                return tone
            if tone == "urgent" and message.count("!") > rules.URGENT_EXCLAMATIONS:
                return tone
        return "neutral"

    @staticmethod
    def detect_expertise(message: str, context: str = "") -> str:
        """Return beginner, intermediate or advanced from technical-term hits."""
        text = f"{message} {context}".lower()
        hits = sum(1 for term in rules.TECHNICAL_TERMS if re.search(rf"\b{term}\b", text))
        if hits >= 2:
            return "advanced"
        if hits >= 1:
            return "intermediate"
        return "beginner"

    @staticmethod
    def detect_name(message: str, context: str = "") -> str | None:
        match = rules.NAME_RE.search(f"{message} {context}")
        return match.group(1) if match else None

    def personalize(self, response: str, message: str, context: str = "") -> str:
        name = self.detect_name(message, context)
        if name:
            response = f"{name}, {response}"

        response = self.match_tone(response, self.detect_tone(message))

        if self.detect_expertise(message, context) == "beginner":
            response = self.simplify_technical_language(response)
        return response

    def match_tone(self, response: str, tone: str) -> str:
        if tone == "formal":
            for pattern, expansion in _CONTRACTION_RES:
                response = pattern.sub(lambda m, e=expansion: _expand(m, e), response)
            if not rules.FORMAL_MARKERS_RE.search(response):
                response += rules.FORMAL_CLOSING
            return response

        if tone == "casual":
            if len(response) > rules.CASUAL_MIN_LENGTH and not rules.CASUAL_MARKERS_RE.search(response):
                response = self.rng.choice(rules.CASUAL_OPENERS) + response
            return rules.FORMAL_CLOSING_RE.sub(rules.CASUAL_CLOSING, response)

        if tone == "urgent":
            return rules.URGENT_OPENER + response

        if tone == "empathetic":
            return self.rng.choice(rules.EMPATHY_OPENERS) + response

        return response

    @staticmethod
    def simplify_technical_language(response: str) -> str:
        for pattern, replacement in _SIMPLIFICATION_RES:
            response = pattern.sub(replacement, response)
        return response

    # Stage 4

    def contextual_suggestions(self, message: str) -> list[str]:
        suggestions = []
        if "?" in message:
            suggestions.append(rules.QUESTION_SUGGESTION)
        if rules.PROBLEM_MENTION_RE.search(message):
            suggestions.append(rules.PROBLEM_SUGGESTION)
        if rules.CONTACT_MENTION_RE.search(message) and self.contact_info:
            suggestions.append(rules.CONTACT_SUGGESTION + self.contact_info)
        if not suggestions:
            suggestions.append(rules.GENERIC_SUGGESTION)
        return suggestions

    @staticmethod
    def format_suggestions(suggestions: list[str]) -> str:
        if len(suggestions) == 1:
            return suggestions[0]
        return rules.SUGGESTIONS_HEADER + "\n".join(f"• {s}" for s in suggestions)

    def add_suggestions(self, response: str, message: str) -> str:
        suggestions = self.contextual_suggestions(message)
        return f"{response}\n\n{self.format_suggestions(suggestions)}"

    # Stage 5

    def ensure_completeness(self, response: str, message: str) -> str:
        if not quality.addresses_main_question(response, message):
            intro = self.direct_answer_intro(message)
            if not response.startswith(intro):
                response = f"{intro} {response}"

        lowered_message = message.lower()
        if "how much" in lowered_message and "cost" not in response.lower():
            response += rules.PRICING_FILL_IN
        if "when" in lowered_message and not rules.TIMING_PRESENT_RE.search(response):
            response += rules.TIMING_FILL_IN

        response = response.strip()
        if not rules.TERMINAL_PUNCTUATION_RE.search(response):
            response += "."
        return response

    # Stage 6

    def quality_score(self, response: str, message: str) -> float:
        return quality.quality_score(response, message)

    def validate_quality(self, response: str, message: str) -> str:
        score = self.quality_score(response, message)
        logger.debug(f"Response quality score: {score:.2f}")
        if score < self.quality_threshold:
            # The opener itself mentions help, so only the reply is checked
            offers_help = rules.HELP_MARKERS_RE.search(response) is not None
            response = rules.QUALITY_FALLBACK_OPENER + response
            if not offers_help:
                response += rules.QUALITY_FALLBACK_CLOSE
        return response

    def enforce_length(self, response: str) -> str:
        """Condense very long responses and expand very short ones."""
        if len(response) > self.max_length:
            sentences = re.split(r"[.!?]+", response)[: rules.CONDENSED_SENTENCES]
            response = ". ".join(s.strip() for s in sentences if s.strip()) + "."
            if len(response) > rules.CONDENSED_MAX_CHARS:
                response = response[: rules.CONDENSED_MAX_CHARS] + "..."

        if len(response.strip()) < self.min_length:
            parts = [rules.BRIEF_OPENER, response.strip(), rules.BRIEF_CLOSE]
            response = " ".join(p for p in parts if p)

        return response

    def __repr__(self) -> str:
        """String representation."""
        return f"ResponseReasoner(bounds=[{self.min_length}, {self.max_length}], threshold={self.quality_threshold})"
