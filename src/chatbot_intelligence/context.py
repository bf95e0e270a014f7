"""Bounded-length prompt context assembly."""

import logging
import re
from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from chatbot_intelligence.search import SimilaritySearch
from chatbot_intelligence.types import ContextSection, JourneyStage, ScoredContent, SiteProfile

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "is", "are", "was", "were", "be", "been", "have",
        "has", "had", "do", "does", "did", "will", "would", "could", "should",
        "can", "what", "how", "when", "where", "why", "who", "i", "you", "we",
        "they", "it", "this", "that", "these", "those",
    }
)

# Checked in order; first keyword hit wins
JOURNEY_STAGES: dict[str, dict] = {
    "awareness": {
        "keywords": ["what is", "tell me about", "explain", "learn", "information"],
        "intent": "Information seeking",
        "instruction": "Focus on educational content and building understanding",
    },
    "consideration": {
        "keywords": ["compare", "difference", "vs", "better", "options", "features"],
        "intent": "Comparison and evaluation",
        "instruction": "Provide comparisons, benefits, and detailed information",
    },
    "decision": {
        "keywords": ["price", "cost", "buy", "purchase", "order", "sign up"],
        "intent": "Ready to purchase",
        "instruction": "Offer clear next steps, pricing, and purchase assistance",
    },
    "support": {
        "keywords": ["help", "problem", "issue", "error", "not working", "fix"],
        "intent": "Needs assistance",
        "instruction": "Provide helpful troubleshooting and problem resolution",
    },
    "retention": {
        "keywords": ["upgrade", "more features", "additional", "expand", "cancel"],
        "intent": "Account management",
        "instruction": "Focus on account features and upgrade opportunities",
    },
}

SEASONS = {
    "Winter": (12, 1, 2),
    "Spring": (3, 4, 5),
    "Summer": (6, 7, 8),
    "Fall": (9, 10, 11),
}

SECTION_SEPARATOR = "\n\n"
RELEVANT_CONTENT_LIMIT = 3
EXCERPT_WINDOW_WORDS = 30
EXCERPT_WORDS = 25
EXCERPT_LENGTH = 150

_NON_WORD_RE = re.compile(r"[^\w\s]")
_TAG_RE = re.compile(r"<[^>]+>")


def extract_keywords(text: str) -> list[str]:
    """
    Extract meaningful keywords from text.

    Lowercases, strips punctuation, drops stop words and words of two
    characters or fewer, and de-duplicates preserving first occurrence.
    """
    words = _NON_WORD_RE.sub("", (text or "").lower()).split()
    keywords = [w for w in words if len(w) > 2 and w not in STOP_WORDS]
    return list(dict.fromkeys(keywords))


def detect_journey_stage(message: str) -> JourneyStage | None:
    """Return the first journey stage whose keyword appears in the message."""
    lowered = (message or "").lower()
    for stage, data in JOURNEY_STAGES.items():
        if any(keyword in lowered for keyword in data["keywords"]):
            return {"stage": stage, "intent": data["intent"], "instruction": data["instruction"]}
    return None


def create_smart_excerpt(content: str, message: str, length: int = EXCERPT_LENGTH) -> str:
    """
    Excerpt the part of ``content`` densest in the message's keywords.

    Slides a 30-word window over the content, keeps the start of the window
    with the most keyword occurrences, and returns 25 words from there, cut to
    ``length`` characters.
    """
    plain = _TAG_RE.sub("", content or "")
    keywords = extract_keywords(message)
    if not keywords:
        return plain[:length] + "..."

    words = plain.split(" ")
    best_position = 0
    best_score = 0
    for i in range(len(words) - 20):
        window = " ".join(words[i : i + EXCERPT_WINDOW_WORDS]).lower()
        score = sum(window.count(keyword) for keyword in keywords)
        if score > best_score:
            best_score = score
            best_position = i

    excerpt = " ".join(words[best_position : best_position + EXCERPT_WORDS])
    if len(excerpt) > length:
        excerpt = excerpt[:length] + "..."
    return excerpt


def season_for_month(month: int) -> str:
    for season, months in SEASONS.items():
        if month in months:
            return season
    raise ValueError(f"Invalid month: {month}")


class ContextBuilder:
    """
    Builds the context passed to the chat provider alongside the message.

    Sections are computed independently and joined with blank lines. When the
    result is longer than ``max_context_length``, the website identity and
    relevant content sections are kept and the others are added back in
    order while they fit. No section is ever cut partway.
    """

    def __init__(
        self,
        search: SimilaritySearch | None = None,
        site: SiteProfile | None = None,
        business_facts: dict[str, str] | None = None,
        max_context_length: int = 4000,
        timezone: str = "UTC",
        now: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the builder.

        Args:
            search: Similarity search for relevant content (omitted: no content section).
            site: Website identity.
            business_facts: Display label to value; empty values are skipped.
            max_context_length: Maximum context length in characters.
            timezone: IANA timezone for the temporal section.
            now: Clock returning an aware datetime; injectable for tests.
        """
        if max_context_length < 1:
            raise ValueError("max_context_length must be positive")
        self.search = search
        self.site: SiteProfile = site or {}
        self.business_facts = business_facts or {}
        self.max_context_length = max_context_length
        self.timezone = timezone
        self._now = now or (lambda: datetime.now(ZoneInfo(self.timezone)))

    def build(self, message: str, base_context: str = "") -> str:
        """
        Build the context string for a message.

        Args:
            message: Current user message.
            base_context: Caller-supplied context (page, recent conversation).

        Returns:
            Context no longer than ``max_context_length`` unless the website
            identity alone is longer.
        """
        return self.render(self.build_bundle(message, base_context))

    def build_bundle(self, message: str, base_context: str = "") -> list[ContextSection]:
        """Build the ordered, untruncated context sections."""
        sections: list[ContextSection] = []
        if base_context:
            sections.append({"name": "base", "text": base_context, "priority": "supplementary"})

        sections.append({"name": "website", "text": self.website_section(), "priority": "core"})

        content = self.relevant_content_section(message)
        if content:
            sections.append({"name": "relevant_content", "text": content, "priority": "core"})

        for name, text in (
            ("journey", self.journey_section(message)),
            ("business", self.business_section()),
            ("temporal", self.temporal_section()),
        ):
            if text:
                sections.append({"name": name, "text": text, "priority": "supplementary"})

        return sections

    def render(self, sections: list[ContextSection]) -> str:
        """Join sections, truncating by priority when over the limit."""
        full = SECTION_SEPARATOR.join(s["text"] for s in sections)
        if len(full) <= self.max_context_length:
            return full

        core = [s for s in sections if s["priority"] == "core"]
        other = [s for s in sections if s["priority"] != "core"]

        truncated = SECTION_SEPARATOR.join(s["text"] for s in core)
        if len(truncated) > self.max_context_length:
            logger.warning("Core context exceeds limit, dropping relevant content")
            truncated = SECTION_SEPARATOR.join(s["text"] for s in core if s["name"] == "website")

        for section in other:
            candidate = truncated + SECTION_SEPARATOR + section["text"]
            if len(candidate) > self.max_context_length:
                break
            truncated = candidate

        logger.debug(f"Context truncated from {len(full)} to {len(truncated)} characters")
        return truncated

    def website_section(self) -> str:
        lines = [
            "WEBSITE INFORMATION:",
            f"Name: {self.site.get('name', '')}",
            f"URL: {self.site.get('url', '')}",
            f"Description: {self.site.get('description', '')}",
        ]
        if self.site.get("contact"):
            lines.append(f"Contact: {self.site['contact']}")
        lines.append(f"Language: {self.site.get('language', '')}")
        return "\n".join(lines)

    def relevant_content(self, message: str) -> list[ScoredContent]:
        """Semantic matches for the message, or keyword matches if there are none."""
        if self.search is None:
            return []
        results = self.search.similar_content(message, limit=RELEVANT_CONTENT_LIMIT)
        if not results:
            results = self.search.keyword_search(extract_keywords(message), limit=RELEVANT_CONTENT_LIMIT)
        return results

    def relevant_content_section(self, message: str) -> str:
        results = self.relevant_content(message)
        if not results:
            return ""

        lines = ["RELEVANT WEBSITE CONTENT:"]
        for item in results:
            lines.append(f"- Title: {item['title']}")
            lines.append(f"  Content: {create_smart_excerpt(item['content'], message)}")
            if item.get("url"):
                lines.append(f"  URL: {item['url']}")
            lines.append("")
        return "\n".join(lines).rstrip("\n")

    def journey_section(self, message: str) -> str:
        stage = detect_journey_stage(message)
        if stage is None:
            return ""
        return "\n".join(
            [
                "USER JOURNEY:",
                f"Current Stage: {stage['stage']}",
                f"Intent: {stage['intent']}",
                f"Stage Context: {stage['instruction']}",
            ]
        )

    def business_section(self) -> str:
        facts = [f"{label}: {value}" for label, value in self.business_facts.items() if value]
        if not facts:
            return ""
        return "\n".join(["BUSINESS INFORMATION:", *facts])

    def temporal_section(self) -> str:
        now = self._now()
        return "\n".join(
            [
                "CURRENT CONTEXT:",
                f"Date: {now.strftime('%Y-%m-%d')}",
                f"Time: {now.strftime('%H:%M %Z')}".rstrip(),
                f"Day: {now.strftime('%A')}",
                f"Season: {season_for_month(now.month)}",
            ]
        )

    def __repr__(self) -> str:
        """String representation."""
        return f"ContextBuilder(max_length={self.max_context_length})"
