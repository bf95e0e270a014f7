"""Rule tables for response reasoning."""

import re

# Message shape, checked in order
MESSAGE_TYPE_RULES: tuple[tuple[str, re.Pattern], ...] = (
    ("question", re.compile(r"\?|^\s*(what|how|why|when|where|who|which|can|do|does|is|are)\b", re.IGNORECASE)),
    ("problem", re.compile(r"\b(problem|issue|error|not working|broken|trouble|help)\b", re.IGNORECASE)),
    ("request", re.compile(r"\b(can you|could you|please|would you|i need|i want)\b", re.IGNORECASE)),
    ("complaint", re.compile(r"\b(disappointed|frustrated|angry|terrible|awful|complaint)\b", re.IGNORECASE)),
)

DIRECT_ANSWER_RE = re.compile(r"^(yes|no|the answer is|you can|you should|to do this)\b", re.IGNORECASE)
STEPS_RE = re.compile(r"\b(step|first|then|next|finally)\b|\d+\.", re.IGNORECASE)

# Leading question word -> intro for answers that do not open directly
DIRECT_ANSWER_INTROS = {
    "how": "To answer your question:",
    "what": "Here's what you need to know:",
    "why": "The reason is:",
}
DEFAULT_ANSWER_INTRO = "Here's the answer:"

PROBLEM_ACKNOWLEDGEMENT = "I understand you're experiencing an issue."
PROBLEM_STEPS_LEAD = "Here's how to resolve this:\n\n1. "
PROBLEM_FOLLOW_UP = "Let me know if you need any clarification on these steps!"
REQUEST_LEAD = "Here's how I can help: "
COMPLAINT_LEAD = "I understand your concern. "
COMPLAINT_CLOSE = " We value your feedback and want to make this right."

TONE_RULES: tuple[tuple[str, re.Pattern], ...] = (
    ("formal", re.compile(r"\b(dear|sincerely|regards|please|thank you|could you|would you)\b", re.IGNORECASE)),
    ("casual", re.compile(r"\b(hey|hi|thanks|thx|cool|awesome|yeah|nah)\b", re.IGNORECASE)),
    ("urgent", re.compile(r"\b(urgent|asap|immediately|quickly|help)\b", re.IGNORECASE)),
    ("empathetic", re.compile(r"\b(frustrated|angry|disappointed|terrible|awful)\b", re.IGNORECASE)),
)
URGENT_EXCLAMATIONS = 1

CONTRACTIONS = {
    "don't": "do not",
    "can't": "cannot",
    "won't": "will not",
    "it's": "it is",
    "that's": "that is",
    "we're": "we are",
    "you're": "you are",
}
FORMAL_MARKERS_RE = re.compile(r"\b(please|thank you|sincerely)\b", re.IGNORECASE)
FORMAL_CLOSING = " Please let me know if you require any additional assistance."
FORMAL_CLOSING_RE = re.compile(r"Please let me know if you require any additional assistance\.?", re.IGNORECASE)

CASUAL_MIN_LENGTH = 100
CASUAL_MARKERS_RE = re.compile(r"\b(hey|hi|thanks|cool|awesome)\b", re.IGNORECASE)
CASUAL_OPENERS = ("Hey! ", "Hi there! ", "Sure thing! ")
CASUAL_CLOSING = "Let me know if you need anything else! 😊"

URGENT_OPENER = "I'll help you resolve this quickly. "
EMPATHY_OPENERS = (
    "I understand how frustrating this must be. ",
    "I can see why you'd be concerned about this. ",
    "I appreciate you bringing this to my attention. ",
)

TECHNICAL_TERMS = ("api", "database", "server", "code", "programming", "sql", "html", "css", "javascript")
TECHNICAL_SIMPLIFICATIONS = {
    "API": "interface",
    "database": "data storage",
    "server": "computer system",
    "implementation": "setup",
}

NAME_RE = re.compile(r"(?i:my name is|i'm|i am|call me)\s+([A-Z][a-z]+)")

QUESTION_SUGGESTION = "Would you like more specific information about any aspect?"
PROBLEM_SUGGESTION = (
    "If this doesn't resolve your issue, please let me know what specific error messages you're seeing."
)
CONTACT_SUGGESTION = "Here's our contact information: "
GENERIC_SUGGESTION = "Is there anything else I can help you with?"
PROBLEM_MENTION_RE = re.compile(r"\b(problem|issue|error)\b", re.IGNORECASE)
CONTACT_MENTION_RE = re.compile(r"\b(contact|email|phone|speak to someone)\b", re.IGNORECASE)
SUGGESTIONS_HEADER = "Here are some additional suggestions:\n"

# Question word -> words whose presence suggests the answer addresses it
ANSWER_PATTERNS = {
    "what": ("is", "are", "means", "definition"),
    "how": ("by", "through", "step", "process", "way"),
    "why": ("because", "since", "due to", "reason"),
    "when": ("time", "date", "schedule", "hour"),
    "where": ("location", "address", "place", "at"),
    "who": ("person", "team", "contact", "responsible"),
    "which": ("option", "choice", "better", "recommend"),
}

PRICING_FILL_IN = " For specific pricing information, please contact our sales team."
TIMING_FILL_IN = " The timeframe can vary depending on your specific needs."
TIMING_PRESENT_RE = re.compile(r"\d+|\b(time|hour|day|week)", re.IGNORECASE)
TERMINAL_PUNCTUATION_RE = re.compile(r"[.!?]$")

KEYWORD_STOP_WORDS = frozenset(
    {"the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"}
)

HELPFUL_INDICATORS = {
    "actionable": ("try", "click", "go to", "visit", "check", "contact", "call"),
    "explanatory": ("because", "since", "due to", "reason", "explain"),
    "solution": ("solution", "fix", "resolve", "solve", "help"),
    "guidance": ("step", "first", "then", "next", "finally"),
}
FOLLOW_UP_OFFER_RE = re.compile(r"let me know|feel free|any questions|anything else|help you", re.IGNORECASE)

QUALITY_FALLBACK_OPENER = "Let me help you with that. "
QUALITY_FALLBACK_CLOSE = " Is there anything specific you'd like me to explain further?"
HELP_MARKERS_RE = re.compile(r"help|assist|question", re.IGNORECASE)

BRIEF_OPENER = "Thank you for your question."
BRIEF_CLOSE = "Please let me know if you need any clarification or have additional questions!"
CONDENSED_SENTENCES = 4
CONDENSED_MAX_CHARS = 800

HISTORY_RE = re.compile(r"User: (.+?)(?=AI:|$)", re.DOTALL)
BUSINESS_BLOCK_RE = re.compile(r"BUSINESS INFORMATION:(.*?)(?=\n[A-Z][A-Z ]*:|$)", re.DOTALL)
TEMPORAL_BLOCK_RE = re.compile(r"CURRENT CONTEXT:(.*?)(?=\n[A-Z][A-Z ]*:|$)", re.DOTALL)
HISTORY_TURNS = 3
