"""Unit tests for response reasoning."""

import random
from unittest.mock import patch

import pytest

from chatbot_intelligence.reasoning import rules
from chatbot_intelligence.reasoning.quality import addresses_main_question, quality_score
from chatbot_intelligence.reasoning.reasoner import ResponseReasoner


@pytest.fixture
def reasoner():
    return ResponseReasoner(contact_info="Phone: 555-0100, Email: hi@example.com", rng=random.Random(7))


class TestEnhance:
    """Test the full rewrite chain."""

    def test_pricing_fill_in(self, reasoner):
        response = reasoner.enhance(
            "Our plans start at $10 per month.",
            "How much does this cost?",
            "WEBSITE INFORMATION:\nName: Acme",
        )

        assert "For specific pricing information, please contact our sales team." in response
        assert response[-1] in ".!?"
        assert "Would you like more specific information about any aspect?" in response

    def test_short_response_expanded(self, reasoner):
        response = reasoner.enhance("Ok", "")

        assert len(response) >= reasoner.min_length
        assert response.startswith(rules.BRIEF_OPENER)

    @pytest.mark.parametrize("draft", ["Yes.", "x" * 5])
    def test_bounds_short_drafts(self, reasoner, draft):
        response = reasoner.enhance(draft, "Is it free?")

        assert reasoner.min_length <= len(response) <= reasoner.max_length

    def test_bounds_long_draft(self, reasoner):
        response = reasoner.enhance("This is a sentence about tents. " * 160, "Tell me everything about tents")

        assert reasoner.min_length <= len(response) <= reasoner.max_length

    def test_bounds_long_draft_without_punctuation(self, reasoner):
        response = reasoner.enhance("word " * 1000, "Tell me about words")

        assert reasoner.min_length <= len(response) <= reasoner.max_length

    def test_failing_stage_is_skipped(self, reasoner):
        with patch.object(reasoner, "improve_structure", side_effect=RuntimeError("boom")):
            response = reasoner.enhance("It ships in two days.", "When will it ship?")

        assert "It ships in two days" in response

    def test_empty_inputs(self, reasoner):
        response = reasoner.enhance("", "")

        assert len(response) >= reasoner.min_length


class TestStructure:
    """Test message typing and structure."""

    @pytest.mark.parametrize(
        "message,message_type",
        [
            ("How do I reset my password?", "question"),
            ("Is shipping free", "question"),
            ("My login is broken", "problem"),
            ("Please send the invoice", "request"),
            ("I am disappointed", "complaint"),
            ("Good morning", "general"),
        ],
    )
    def test_classify_message_type(self, message, message_type):
        assert ResponseReasoner.classify_message_type(message) == message_type

    def test_direct_answer_kept(self, reasoner):
        assert reasoner.improve_structure("Yes, you can.", "Can I return it?") == "Yes, you can."

    def test_question_gets_intro(self, reasoner):
        structured = reasoner.improve_structure("It takes two days.", "How long is shipping?")

        assert structured == "To answer your question: It takes two days."

    def test_problem_gets_steps(self, reasoner):
        structured = reasoner.improve_structure("Restart the router.", "My login is broken")

        assert structured == (
            "I understand you're experiencing an issue. Here's how to resolve this:\n\n1. "
            "Restart the router. Let me know if you need any clarification on these steps!"
        )

    def test_complaint_wrapped(self, reasoner):
        structured = reasoner.improve_structure("We will refund you.", "I am disappointed")

        assert structured.startswith("I understand your concern. ")
        assert structured.endswith("We value your feedback and want to make this right.")


class TestPersonalization:
    """Test tone, name and expertise handling."""

    @pytest.mark.parametrize(
        "message,tone",
        [
            ("Could you send the invoice?", "formal"),
            ("hey thanks", "casual"),
            ("I need this ASAP", "urgent"),
            ("Why is this happening!!", "urgent"),
            ("I am so frustrated", "empathetic"),
            ("Where is my order", "neutral"),
        ],
    )
    def test_detect_tone(self, message, tone):
        assert ResponseReasoner.detect_tone(message) == tone

    def test_formal_expands_contractions(self, reasoner):
        matched = reasoner.match_tone("It's ready and we're done.", "formal")

        assert matched == "It is ready and we are done. Please let me know if you require any additional assistance."

    def test_casual_swaps_formal_closing(self, reasoner):
        matched = reasoner.match_tone("Done. Please let me know if you require any additional assistance.", "casual")

        assert matched == "Done. Let me know if you need anything else! 😊"

    def test_casual_opener_for_long_response(self, reasoner):
        matched = reasoner.match_tone("The tent packs down small and weighs under two kilograms. " * 2, "casual")

        assert matched.startswith(rules.CASUAL_OPENERS)

    def test_urgent_opener(self, reasoner):
        assert reasoner.match_tone("Done.", "urgent") == "I'll help you resolve this quickly. Done."

    def test_empathetic_opener(self, reasoner):
        assert reasoner.match_tone("Done.", "empathetic").startswith(rules.EMPATHY_OPENERS)

    def test_detect_name(self):
        assert ResponseReasoner.detect_name("Hi, I'm Sarah and I need help") == "Sarah"
        assert ResponseReasoner.detect_name("i'm not sure") is None

    def test_personalize_with_name(self, reasoner):
        assert reasoner.personalize("Happy to help.", "My name is Sarah").startswith("Sarah, ")

    @pytest.mark.parametrize(
        "message,level",
        [
            ("My API returns a database error", "advanced"),
            ("The server is down", "intermediate"),
            ("The page looks odd", "beginner"),
        ],
    )
    def test_detect_expertise(self, message, level):
        assert ResponseReasoner.detect_expertise(message) == level

    def test_beginner_gets_simplified_language(self, reasoner):
        personalized = reasoner.personalize("The API talks to the database.", "Where is my order")

        assert personalized == "The interface talks to the data storage."


class TestSuggestionsAndCompleteness:
    """Test suggestions and completeness fill-ins."""

    def test_question_suggestion(self, reasoner):
        assert reasoner.contextual_suggestions("Is it free?") == [rules.QUESTION_SUGGESTION]

    def test_contact_and_question(self, reasoner):
        suggestions = reasoner.contextual_suggestions("How do I contact you?")

        assert suggestions == [
            rules.QUESTION_SUGGESTION,
            "Here's our contact information: Phone: 555-0100, Email: hi@example.com",
        ]
        formatted = reasoner.format_suggestions(suggestions)
        assert formatted.startswith("Here are some additional suggestions:\n• ")

    def test_contact_without_info(self):
        assert ResponseReasoner().contextual_suggestions("contact") == [rules.GENERIC_SUGGESTION]

    def test_timing_fill_in(self, reasoner):
        completed = reasoner.ensure_completeness("Soon.", "When does it ship?")

        assert completed == "Here's the answer: Soon. The timeframe can vary depending on your specific needs."

    def test_terminal_punctuation(self, reasoner):
        assert reasoner.ensure_completeness("Thanks", "ok") == "Thanks."

    def test_intro_not_repeated(self, reasoner):
        completed = reasoner.ensure_completeness("To answer your question: it varies.", "How much is it?")

        assert completed.count("To answer your question:") == 1


class TestQuality:
    """Test quality scoring."""

    def test_relevant_answer_scores_higher(self):
        message = "How do I reset my password?"
        good = "To reset your password, first click Forgot password, then follow the email link. Let me know if you need help."
        bad = "No."

        assert quality_score(good, message) > quality_score(bad, message)
        assert 0.0 <= quality_score(bad, message) <= 1.0

    def test_addresses_question_by_answer_words(self):
        assert addresses_main_question("Because the warehouse is closed.", "Why is it late?")

    def test_low_quality_gets_opener(self, reasoner):
        validated = reasoner.validate_quality("No.", "How do I reset my password?")

        assert validated.startswith(rules.QUALITY_FALLBACK_OPENER)
        assert validated.endswith(rules.QUALITY_FALLBACK_CLOSE)

    def test_low_quality_offering_help_skips_close(self, reasoner):
        validated = reasoner.validate_quality("We can assist.", "How do I reset my password?")

        assert validated == rules.QUALITY_FALLBACK_OPENER + "We can assist."

    def test_context_insights(self, reasoner):
        context = (
            "User: hi\nAI: hello\nUser: prices?\nAI: from $10\n\n"
            "BUSINESS INFORMATION:\nPhone: 555-0100\n\nCURRENT CONTEXT:\nDate: 2024-07-15"
        )

        insights = reasoner.analyze_context_insights(context)

        assert insights["user_history"] == ["hi", "prices?"]
        assert insights["business_context"] == "Phone: 555-0100"
        assert insights["temporal_context"] == "Date: 2024-07-15"
