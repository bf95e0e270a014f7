"""Regex entity extraction from chat messages."""

import re

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

PHONE_RES = (
    re.compile(r"\b\d{3}-\d{3}-\d{4}\b"),
    re.compile(r"(?<!\w)\(\d{3}\)\s*\d{3}-\d{4}\b"),
    re.compile(r"\b\d{3}\s\d{3}\s\d{4}\b"),
    re.compile(r"\b\d{10}\b"),
)

URL_RE = re.compile(r"https?://\S+")

DATE_RES = (
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b"),
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b"),
    re.compile(r"\b(?:tomorrow|today|yesterday)\b", re.IGNORECASE),
    re.compile(r"\b(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b", re.IGNORECASE),
)

# Introductions are case-insensitive; the name itself must be capitalized
NAME_INTRO_RE = re.compile(r"(?i:my name is|i'm|i am|call me)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)")
CAPITALIZED_PAIR_RE = re.compile(r"\b([A-Z][a-z]+\s+[A-Z][a-z]+)\b")

PRODUCT_TERMS = (
    "service",
    "product",
    "plan",
    "package",
    "subscription",
    "software",
    "app",
    "website",
    "course",
    "training",
)


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def extract_emails(message: str) -> list[str]:
    return _unique(EMAIL_RE.findall(message))


def extract_phones(message: str) -> list[str]:
    phones = []
    for pattern in PHONE_RES:
        phones.extend(pattern.findall(message))
    return _unique(phones)


def extract_urls(message: str) -> list[str]:
    return _unique(URL_RE.findall(message))


def extract_dates(message: str) -> list[str]:
    dates = []
    for pattern in DATE_RES:
        dates.extend(pattern.findall(message))
    return _unique(dates)


def extract_names(message: str) -> list[str]:
    """Names introduced explicitly, then capitalized word pairs."""
    names = NAME_INTRO_RE.findall(message) + CAPITALIZED_PAIR_RE.findall(message)
    return _unique(names)


def extract_products(message: str) -> list[str]:
    lowered = message.lower()
    return [term for term in PRODUCT_TERMS if re.search(rf"\b{term}s?\b", lowered)]


def extract_entities(message: str) -> dict[str, list[str]]:
    """
    Extract all entity types from a message.

    Args:
        message: Raw message (case is significant for names).

    Returns:
        Entity type to values, omitting types with no matches.
    """
    entities = {
        "emails": extract_emails(message),
        "phones": extract_phones(message),
        "urls": extract_urls(message),
        "dates": extract_dates(message),
        "names": extract_names(message),
        "products": extract_products(message),
    }
    return {kind: values for kind, values in entities.items() if values}
