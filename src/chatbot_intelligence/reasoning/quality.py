"""Heuristic quality scoring for chat responses."""

import re

from chatbot_intelligence.reasoning.rules import (
    ANSWER_PATTERNS,
    FOLLOW_UP_OFFER_RE,
    HELPFUL_INDICATORS,
    KEYWORD_STOP_WORDS,
    TERMINAL_PUNCTUATION_RE,
)

_NON_WORD_SPLIT_RE = re.compile(r"\W+")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_WORD_RE = re.compile(r"[A-Za-z'-]+")


def _keywords(text: str) -> list[str]:
    words = _NON_WORD_SPLIT_RE.split((text or "").lower())
    return [w for w in words if len(w) > 2 and w not in KEYWORD_STOP_WORDS]


def addresses_main_question(response: str, message: str) -> bool:
    """
    Whether the response plausibly answers the message.

    Wh-questions pass if the response carries a word typical of that kind of
    answer. Otherwise the response must share enough keywords with the message.
    """
    lowered_message = message.lower()
    lowered_response = response.lower()
    for question_word, answer_words in ANSWER_PATTERNS.items():
        if lowered_message.startswith(question_word):
            if any(word in lowered_response for word in answer_words):
                return True

    message_keywords = _keywords(message)
    response_keywords = set(_keywords(response))
    overlap = [w for w in message_keywords if w in response_keywords]
    return len(overlap) >= min(2, len(message_keywords) * 0.3)


def relevance(response: str, message: str) -> float:
    message_keywords = _keywords(message)
    if not message_keywords:
        return 0.5
    response_keywords = set(_keywords(response))
    matches = [w for w in message_keywords if w in response_keywords]
    return len(matches) / len(message_keywords)


def helpfulness(response: str) -> float:
    lowered = response.lower()
    hits = sum(1 for words in HELPFUL_INDICATORS.values() for word in words if word in lowered)
    return min(1.0, hits * 0.1)


def clarity(response: str) -> float:
    score = 1.0
    for sentence in _SENTENCE_SPLIT_RE.split(response):
        if len(sentence.strip()) > 150:
            score -= 0.1

    if TERMINAL_PUNCTUATION_RE.search(response.strip()):
        score += 0.1

    words = _WORD_RE.findall(response)
    if words and len(set(words)) / len(words) < 0.7:
        score -= 0.2

    return max(0.0, min(1.0, score))


def completeness(response: str, message: str) -> float:
    score = 0.5
    if addresses_main_question(response, message):
        score += 0.3
    if FOLLOW_UP_OFFER_RE.search(response):
        score += 0.2
    return min(1.0, score)


def quality_score(response: str, message: str) -> float:
    """
    Weighted 0-1 quality score.

    Points out of 100: length in range 20, keyword relevance 30,
    helpfulness 25, clarity 15, completeness 10.
    """
    score = 0.0
    length = len(response)
    if 20 <= length <= 1000:
        score += 20
    elif length > 10:
        score += 10

    score += relevance(response, message) * 30
    score += helpfulness(response) * 25
    score += clarity(response) * 15
    score += completeness(response, message) * 10
    return min(1.0, score / 100)
