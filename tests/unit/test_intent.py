"""Unit tests for intent classification."""

import pytest

from chatbot_intelligence.embeddings.cache import EmbeddingCache
from chatbot_intelligence.errors import TransportError
from chatbot_intelligence.intent.classifier import (
    IntentClassifier,
    caps_ratio,
    clean_message,
    contains_term,
)
from chatbot_intelligence.intent.entities import extract_entities, extract_phones
from chatbot_intelligence.intent.semantic import SemanticIntentAugmenter
from tests.fakes import FakeEmbedder


@pytest.fixture
def classifier():
    return IntentClassifier()


class TestHelpers:
    """Test matching helpers."""

    def test_contains_term_word_boundaries(self):
        assert contains_term("hi there", "hi")
        assert not contains_term("is this on", "hi")
        assert contains_term("that's all, thanks", "that's all")

    def test_clean_message(self):
        assert clean_message("  Hello   WORLD #1 ") == "hello world 1"

    def test_caps_ratio(self):
        assert caps_ratio("HELLO") == 1.0
        assert caps_ratio("1234") == 0.0


class TestIntentClassifier:
    """Test keyword intent classification."""

    def test_greeting(self, classifier):
        analysis = classifier.classify("Hello!")

        assert analysis["primary_intent"] == "greeting"
        assert analysis["suggested_actions"] == ["respond_warmly", "offer_help"]

    def test_pricing_question(self, classifier):
        analysis = classifier.classify("How much does this cost?")

        assert analysis["primary_intent"] == "pricing"
        assert analysis["confidence"] == 1.0
        assert analysis["all_intents"]["question"] == pytest.approx(0.625)
        assert analysis["urgency_level"] == "low"
        assert analysis["requires_human"] is False
        assert list(analysis["all_intents"].values()) == sorted(analysis["all_intents"].values(), reverse=True)

    def test_frustrated_message_needs_human(self, classifier):
        analysis = classifier.classify("This is broken and I'm really frustrated!!!")

        assert analysis["urgency_level"] == "high"
        assert analysis["emotional_state"]["dominant"] == "negative"
        assert analysis["requires_human"] is True

    def test_no_match_is_general(self, classifier):
        analysis = classifier.classify("xyzzy")

        assert analysis["primary_intent"] == "general"
        assert analysis["confidence"] == 0.5
        assert analysis["all_intents"] == {"general": 0.5}
        assert analysis["suggested_actions"] == ["general_assistance"]

    def test_weak_intent_below_threshold_is_general(self, classifier):
        # goodbye scores 1.0 / 1.9, above 0.5 but below the medium threshold
        analysis = classifier.classify("bye")

        assert analysis["primary_intent"] == "general"
        assert analysis["confidence"] == 0.5
        assert analysis["all_intents"]["goodbye"] == pytest.approx(1.0 / 1.9)
        assert next(iter(analysis["all_intents"])) == "general"
        assert analysis["suggested_actions"] == ["general_assistance"]

    def test_weak_intent_kept_at_high_sensitivity(self):
        analysis = IntentClassifier(sensitivity="high").classify("bye")

        assert analysis["primary_intent"] == "goodbye"

    def test_empty_message_is_general(self, classifier):
        analysis = classifier.classify("")

        assert analysis["primary_intent"] == "general"
        assert analysis["entities"] == {}

    def test_short_keyword_not_matched_inside_word(self, classifier):
        analysis = classifier.classify("Is this thing on")

        assert "greeting" not in analysis["all_intents"]

    def test_high_sensitivity_keeps_weak_intents(self):
        analysis = IntentClassifier(sensitivity="high").classify("This is broken and I'm really frustrated!!!")

        assert analysis["primary_intent"] == "complaint"
        assert "general" not in analysis["all_intents"]

    def test_unknown_sensitivity(self):
        with pytest.raises(ValueError):
            IntentClassifier(sensitivity="extreme")

    def test_context_weighting(self, classifier):
        weighted = classifier.apply_context_weighting(
            {"pricing": 0.5, "question": 0.6, "contact": 0.9}, "See our PRICING page or contact us"
        )

        assert weighted["pricing"] == pytest.approx(0.65)
        assert weighted["question"] == 0.6
        assert weighted["contact"] == 1.0
        assert "support" not in weighted

    def test_support_with_medium_urgency_needs_human(self, classifier):
        analysis = classifier.classify("I need help, my order has a problem, please fix it soon")

        assert analysis["primary_intent"] == "support"
        assert analysis["urgency_level"] == "medium"
        assert analysis["requires_human"] is True

    @pytest.mark.parametrize(
        "message,level",
        [
            ("Help!!! I need this now!!!", "high"),
            ("PLEASE ANSWER ME", "high"),
            ("Could you reply soon?", "medium"),
            ("Thanks!", "medium"),
            ("Send it when possible", "low"),
            ("what are your hours", "low"),
        ],
    )
    def test_urgency(self, classifier, message, level):
        assert classifier.analyze_urgency(message) == level

    def test_entity_actions(self, classifier):
        analysis = classifier.classify("How much is the fee? Email me at jane@example.com")

        assert analysis["primary_intent"] == "pricing"
        assert "acknowledge_email" in analysis["suggested_actions"]

    def test_explain(self, classifier):
        explanation = IntentClassifier.explain(classifier.classify("How much does this cost?"))

        assert explanation == (
            "Primary Intent: Pricing (100.0% confidence) | Emotional State: Neutral (intensity: 0.0)"
        )

    def test_explain_flags_human(self, classifier):
        explanation = IntentClassifier.explain(classifier.classify("URGENT: the site is broken"))

        assert "Urgency Level: High" in explanation
        assert explanation.endswith("⚠️ Human intervention recommended")


class TestEntities:
    """Test entity extraction."""

    def test_mixed_entities(self):
        entities = extract_entities(
            "Email me at jane.doe@example.com or call 555-123-4567 tomorrow. My name is Jane Doe."
        )

        assert entities["emails"] == ["jane.doe@example.com"]
        assert entities["phones"] == ["555-123-4567"]
        assert entities["dates"] == ["tomorrow"]
        assert entities["names"] == ["Jane Doe"]
        assert "urls" not in entities

    def test_phone_formats(self):
        phones = extract_phones("(555) 123-4567, 555 123 4567 and 5551234567")

        assert phones == ["(555) 123-4567", "555 123 4567", "5551234567"]

    def test_urls_and_iso_dates(self):
        entities = extract_entities("See https://example.com/docs before 2024-05-01")

        assert entities["urls"] == ["https://example.com/docs"]
        assert entities["dates"] == ["2024-05-01"]

    def test_name_must_be_capitalized(self):
        assert "names" not in extract_entities("i'm really confused")

    def test_products_whole_words(self):
        entities = extract_entities("I'm happy with the subscription plans")

        assert entities["products"] == ["plan", "subscription"]


class TestSemanticIntentAugmenter:
    """Test semantic intent augmentation."""

    def test_new_intent_inserted(self):
        augmenter = SemanticIntentAugmenter(EmbeddingCache(FakeEmbedder()))

        merged = augmenter.augment("What's the cost of the pro tier?", {"question": 0.625})

        assert merged["purchase"] > 0.9
        assert next(iter(merged)) == "purchase"

    def test_existing_intent_boosted_and_capped(self):
        augmenter = SemanticIntentAugmenter(
            EmbeddingCache(FakeEmbedder()), examples={"support": ("reset my password",)}
        )

        merged = augmenter.augment("password reset please", {"support": 0.5})

        assert merged["support"] == 1.0

    def test_low_similarity_ignored(self):
        augmenter = SemanticIntentAugmenter(
            EmbeddingCache(FakeEmbedder()), examples={"support": ("reset my password",)}
        )

        assert augmenter.augment("shipping to Canada", {"question": 0.7}) == {"question": 0.7}

    def test_example_embeddings_computed_once(self):
        embedder = FakeEmbedder()
        augmenter = SemanticIntentAugmenter(EmbeddingCache(embedder), examples={"support": ("reset my password",)})

        augmenter.augment("reset", {})
        calls = len(embedder.calls)
        augmenter.augment("login", {})

        # Only the new message is embedded
        assert len(embedder.calls) == calls + 1

    def test_embedding_failure_leaves_scores(self):
        augmenter = SemanticIntentAugmenter(EmbeddingCache(FakeEmbedder(error=TransportError("down"))))

        assert augmenter.augment("anything", {"question": 0.7}) == {"question": 0.7}

    def test_classifier_uses_augmenter(self):
        augmenter = SemanticIntentAugmenter(EmbeddingCache(FakeEmbedder()))
        classifier = IntentClassifier(augmenter=augmenter)

        analysis = classifier.classify("What's the cost of the pro tier?")

        assert analysis["primary_intent"] == "purchase"
        assert analysis["suggested_actions"] == ["general_assistance"]
