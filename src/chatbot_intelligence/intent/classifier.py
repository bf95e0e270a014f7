"""Weighted keyword, phrase and regex intent classification."""

import logging
import re
from functools import lru_cache
from typing import TYPE_CHECKING

from chatbot_intelligence.intent.entities import extract_entities
from chatbot_intelligence.intent.patterns import (
    CONTEXT_BOOST,
    CONTEXT_WEIGHTS,
    DEFAULT_ACTIONS,
    DEFAULT_CONFIDENCE,
    DEFAULT_INTENT,
    EMOTION_KEYWORDS,
    ENTITY_ACTIONS,
    INTENT_ACTIONS,
    INTENT_PATTERNS,
    SENSITIVITY_THRESHOLDS,
    URGENCY_INDICATORS,
)
from chatbot_intelligence.types import EmotionalState, IntentAnalysis

if TYPE_CHECKING:
    from chatbot_intelligence.intent.semantic import SemanticIntentAugmenter

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^\w\s?!.,\-()@']")


@lru_cache(maxsize=512)
def _term_re(term: str) -> re.Pattern:
    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)")


def contains_term(text: str, term: str) -> bool:
    """True if ``term`` occurs in ``text`` on word boundaries."""
    return _term_re(term).search(text) is not None


def clean_message(message: str) -> str:
    """Lowercase, collapse whitespace and drop characters that never matter for matching."""
    cleaned = _WHITESPACE_RE.sub(" ", (message or "").strip().lower())
    return _DISALLOWED_RE.sub("", cleaned)


def caps_ratio(message: str) -> float:
    """Share of ASCII letters that are upper case."""
    letters = [c for c in message if c.isascii() and c.isalpha()]
    if not letters:
        return 0.0
    return sum(1 for c in letters if c.isupper()) / len(letters)


def max_possible_score(patterns: dict[str, dict[str, float]]) -> float:
    """Best single hit per category: top keyword + top phrase + top regex weight."""
    return sum(max(weights.values()) for weights in patterns.values() if weights)


class IntentClassifier:
    """
    Classifies messages into intents with emotion, urgency and entities.

    Stateless per call. Pattern tables are plain data so they can be swapped
    in tests or extended without touching the scoring code.
    """

    def __init__(
        self,
        sensitivity: str = "medium",
        patterns: dict[str, dict[str, dict[str, float]]] | None = None,
        augmenter: "SemanticIntentAugmenter | None" = None,
    ):
        """
        Initialize the classifier.

        Args:
            sensitivity: "high", "medium" or "low"; sets the confidence threshold.
            patterns: Intent pattern table (defaults to INTENT_PATTERNS).
            augmenter: Optional semantic augmenter merged into keyword scores.
        """
        if sensitivity not in SENSITIVITY_THRESHOLDS:
            raise ValueError(f"Unknown sensitivity: {sensitivity}")
        self.sensitivity = sensitivity
        self.threshold = SENSITIVITY_THRESHOLDS[sensitivity]
        self.patterns = patterns if patterns is not None else INTENT_PATTERNS
        self.augmenter = augmenter
        self._regexes = {
            intent: [(re.compile(p, re.IGNORECASE), w) for p, w in table.get("patterns", {}).items()]
            for intent, table in self.patterns.items()
        }

    def classify(self, message: str, context: str = "") -> IntentAnalysis:
        """
        Analyze a message.

        Args:
            message: Raw user message.
            context: Optional conversation or page context used to weight intents.

        Returns:
            Intent analysis with the intents sorted by confidence.
        """
        message = message or ""
        cleaned = clean_message(message)

        intents = self.score_intents(cleaned)
        if context:
            intents = self.apply_context_weighting(intents, context)
        if self.augmenter is not None and cleaned:
            intents = self.augmenter.augment(message, intents)

        # Stable sort keeps table order on ties
        intents = dict(sorted(intents.items(), key=lambda kv: kv[1], reverse=True))
        if not intents or next(iter(intents.values())) < self.threshold:
            # Weak intents stay visible in all_intents but never become primary
            intents.pop(DEFAULT_INTENT, None)
            intents = {DEFAULT_INTENT: DEFAULT_CONFIDENCE, **intents}
        primary_intent, confidence = next(iter(intents.items()))

        emotional_state = self.analyze_emotion(cleaned)
        urgency_level = self.analyze_urgency(message)
        entities = extract_entities(message)

        analysis: IntentAnalysis = {
            "primary_intent": primary_intent,
            "confidence": confidence,
            "all_intents": intents,
            "emotional_state": emotional_state,
            "urgency_level": urgency_level,
            "entities": entities,
            "requires_human": self.requires_human(intents, emotional_state, urgency_level),
            "suggested_actions": self.suggest_actions(primary_intent, entities, urgency_level),
        }
        logger.debug(f"Intent analysis: {self.explain(analysis)}")
        return analysis

    def score_intents(self, cleaned: str) -> dict[str, float]:
        """
        Score every intent against a cleaned message.

        Returns:
            Intent to confidence for every intent that matched. The ``general``
            default is applied by ``classify`` after weighting.
        """
        scores: dict[str, float] = {}
        if cleaned:
            for intent, table in self.patterns.items():
                score = 0.0
                for term, weight in table.get("keywords", {}).items():
                    if contains_term(cleaned, term):
                        score += weight
                for phrase, weight in table.get("phrases", {}).items():
                    if contains_term(cleaned, phrase):
                        score += weight
                for regex, weight in self._regexes[intent]:
                    if regex.search(cleaned):
                        score += weight

                ceiling = max_possible_score(table)
                confidence = min(1.0, score / ceiling) if ceiling > 0 else 0.0
                if confidence > 0:
                    scores[intent] = confidence
        return scores

    def apply_context_weighting(self, intents: dict[str, float], context: str) -> dict[str, float]:
        """Boost intents the context hints at, only when they already scored."""
        lowered = context.lower()
        boosted = set()
        for marker, targets in CONTEXT_WEIGHTS.items():
            if marker in lowered:
                boosted.update(targets)

        weighted = dict(intents)
        for intent in boosted:
            if weighted.get(intent, 0) > 0:
                weighted[intent] = min(1.0, weighted[intent] * CONTEXT_BOOST)
        return weighted

    def analyze_emotion(self, cleaned: str) -> EmotionalState:
        scores = {
            emotion: sum(1 for keyword in keywords if contains_term(cleaned, keyword))
            for emotion, keywords in EMOTION_KEYWORDS.items()
        }
        dominant = "neutral"
        max_count = 0
        for emotion, count in scores.items():
            if count > max_count:
                dominant = emotion
                max_count = count
        return {"dominant": dominant, "scores": scores, "intensity": min(1.0, max_count / 3)}

    def analyze_urgency(self, message: str) -> str:
        """
        Urgency from indicator words, then punctuation and capitals.

        Args:
            message: Raw message; capitals are counted before lowercasing.
        """
        cleaned = clean_message(message)
        for level, indicators in URGENCY_INDICATORS.items():
            if any(contains_term(cleaned, indicator) for indicator in indicators):
                return level

        exclamations = message.count("!")
        ratio = caps_ratio(message)
        if exclamations > 2 or ratio > 0.5:
            return "high"
        if exclamations > 0 or ratio > 0.2:
            return "medium"
        return "low"

    @staticmethod
    def requires_human(
        intents: dict[str, float],
        emotional_state: EmotionalState,
        urgency_level: str,
    ) -> bool:
        if urgency_level == "high":
            return True
        if emotional_state["dominant"] == "negative" and emotional_state["intensity"] > 0.7:
            return True
        if intents.get("complaint", 0) > 0.7:
            return True
        return intents.get("support", 0) > 0.8 and urgency_level == "medium"

    @staticmethod
    def suggest_actions(primary_intent: str, entities: dict[str, list[str]], urgency_level: str) -> list[str]:
        actions = list(INTENT_ACTIONS.get(primary_intent, DEFAULT_ACTIONS))
        if primary_intent == "support" and urgency_level == "high":
            actions.append("escalate_to_human")
        for kind, action in ENTITY_ACTIONS.items():
            if entities.get(kind):
                actions.append(action)
        return list(dict.fromkeys(actions))

    @staticmethod
    def explain(analysis: IntentAnalysis) -> str:
        """
        One-line human-readable summary of an analysis.

        Example: ``Primary Intent: Pricing (100.0% confidence) | Emotional State: Neutral (intensity: 0.0)``
        """
        parts = [
            f"Primary Intent: {analysis['primary_intent'].capitalize()} "
            f"({analysis['confidence'] * 100:.1f}% confidence)"
        ]
        emotional_state = analysis.get("emotional_state")
        if emotional_state:
            parts.append(
                f"Emotional State: {emotional_state['dominant'].capitalize()} "
                f"(intensity: {emotional_state['intensity']:.1f})"
            )
        if analysis["urgency_level"] != "low":
            parts.append(f"Urgency Level: {analysis['urgency_level'].capitalize()}")
        if analysis["entities"]:
            parts.append(f"Entities Found: {', '.join(analysis['entities'])}")
        if analysis["requires_human"]:
            parts.append("⚠️ Human intervention recommended")
        return " | ".join(parts)

    def __repr__(self) -> str:
        """String representation."""
        return f"IntentClassifier(sensitivity={self.sensitivity}, intents={len(self.patterns)})"
