"""Declarative intent, emotion, urgency and action tables."""

# Each intent scores keyword, phrase and regex hits against the cleaned message
INTENT_PATTERNS: dict[str, dict[str, dict[str, float]]] = {
    "greeting": {
        "keywords": {
            "hello": 1.0,
            "hi": 1.0,
            "hey": 1.0,
            "good morning": 1.0,
            "good afternoon": 1.0,
            "good evening": 1.0,
            "greetings": 1.0,
        },
        "phrases": {
            "how are you": 0.8,
            "nice to meet you": 0.8,
        },
        "patterns": {
            r"^(hi|hello|hey)\s*[!.]*$": 1.0,
        },
    },
    "question": {
        "keywords": {
            "what": 0.8,
            "how": 0.8,
            "why": 0.8,
            "when": 0.8,
            "where": 0.8,
            "who": 0.8,
            "which": 0.8,
        },
        "phrases": {
            "can you tell me": 0.9,
            "do you know": 0.9,
            "can you explain": 0.9,
            "i want to know": 0.9,
        },
        "patterns": {
            r"\?": 0.7,
        },
    },
    "support": {
        "keywords": {
            "help": 1.0,
            "problem": 0.9,
            "issue": 0.9,
            "error": 0.9,
            "broken": 0.8,
            "not working": 0.9,
            "trouble": 0.8,
            "fix": 0.8,
            "support": 1.0,
        },
        "phrases": {
            "need help": 1.0,
            "having trouble": 0.9,
            "something wrong": 0.8,
            "not sure how": 0.7,
        },
        "patterns": {},
    },
    "complaint": {
        "keywords": {
            "complaint": 1.0,
            "disappointed": 0.9,
            "frustrated": 0.9,
            "angry": 0.9,
            "terrible": 0.8,
            "awful": 0.8,
            "worst": 0.8,
            "hate": 0.8,
        },
        "phrases": {
            "not satisfied": 0.9,
            "not happy": 0.8,
            "very disappointed": 1.0,
        },
        "patterns": {},
    },
    "praise": {
        "keywords": {
            "great": 0.7,
            "excellent": 0.9,
            "amazing": 0.9,
            "fantastic": 0.9,
            "love": 0.8,
            "perfect": 0.9,
            "wonderful": 0.9,
            "awesome": 0.8,
        },
        "phrases": {
            "really good": 0.8,
            "very happy": 0.8,
            "thank you": 0.7,
        },
        "patterns": {},
    },
    "contact": {
        "keywords": {
            "contact": 1.0,
            "email": 0.8,
            "phone": 0.8,
            "call": 0.8,
            "address": 0.8,
            "location": 0.8,
        },
        "phrases": {
            "get in touch": 1.0,
            "contact information": 1.0,
            "how to reach": 0.9,
            "speak to someone": 0.9,
        },
        "patterns": {},
    },
    "pricing": {
        "keywords": {
            "price": 1.0,
            "cost": 1.0,
            "expensive": 0.8,
            "cheap": 0.8,
            "fee": 0.9,
            "pricing": 1.0,
            "discount": 0.8,
            "offer": 0.7,
        },
        "phrases": {
            "how much": 1.0,
            "what does it cost": 1.0,
            "pricing information": 1.0,
        },
        "patterns": {},
    },
    "booking": {
        "keywords": {
            "book": 0.9,
            "reserve": 0.9,
            "appointment": 1.0,
            "schedule": 0.9,
            "meeting": 0.8,
            "available": 0.7,
        },
        "phrases": {
            "make appointment": 1.0,
            "book a time": 1.0,
            "schedule meeting": 1.0,
        },
        "patterns": {},
    },
    "goodbye": {
        "keywords": {
            "bye": 1.0,
            "goodbye": 1.0,
            "thanks": 0.8,
            "thank you": 0.8,
        },
        "phrases": {
            "talk later": 0.9,
            "see you": 0.9,
            "that's all": 0.8,
        },
        "patterns": {},
    },
}

SENSITIVITY_THRESHOLDS = {
    "high": 0.4,
    "medium": 0.6,
    "low": 0.8,
}

# Substring in the context -> intents boosted by CONTEXT_BOOST
CONTEXT_WEIGHTS = {
    "support": ("support",),
    "pricing": ("pricing",),
    "cost": ("pricing",),
    "contact": ("contact",),
}
CONTEXT_BOOST = 1.3

DEFAULT_INTENT = "general"
DEFAULT_CONFIDENCE = 0.5

EMOTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "positive": ("happy", "great", "excellent", "love", "amazing", "perfect", "wonderful"),
    "negative": ("sad", "angry", "frustrated", "disappointed", "terrible", "awful", "hate", "worst"),
    "neutral": ("okay", "fine", "normal", "average"),
    "urgent": ("urgent", "emergency", "immediately", "asap", "quickly", "now"),
}

# Checked in order; first hit decides the level
URGENCY_INDICATORS: dict[str, tuple[str, ...]] = {
    "high": ("urgent", "emergency", "immediately", "asap", "critical", "broken"),
    "medium": ("soon", "quickly", "important", "need help"),
    "low": ("when possible", "no rush", "whenever"),
}

INTENT_ACTIONS: dict[str, tuple[str, ...]] = {
    "greeting": ("respond_warmly", "offer_help"),
    "question": ("provide_information", "search_knowledge_base"),
    "support": ("troubleshoot",),
    "complaint": ("acknowledge_concern", "escalate_to_human", "offer_resolution"),
    "praise": ("thank_user", "ask_for_review"),
    "contact": ("provide_contact_info",),
    "pricing": ("provide_pricing_info", "suggest_consultation"),
    "booking": ("show_availability", "start_booking_process"),
    "goodbye": ("polite_farewell", "offer_future_help"),
}
DEFAULT_ACTIONS = ("general_assistance",)

ENTITY_ACTIONS = {
    "emails": "acknowledge_email",
    "phones": "acknowledge_phone",
    "names": "personalize_response",
}

# Canonical phrasings compared against the message embedding
INTENT_EXAMPLES: dict[str, tuple[str, ...]] = {
    "purchase": (
        "How much does this cost?",
        "I want to buy your product",
        "What are your prices?",
        "Can I purchase this online?",
        "How do I place an order?",
    ),
    "support": (
        "I need help with my account",
        "This feature is not working",
        "How do I fix this problem?",
        "I am having trouble with...",
        "Can you help me troubleshoot?",
    ),
    "information": (
        "Tell me more about your service",
        "What features do you offer?",
        "How does this work?",
        "What is included in your plan?",
        "Can you explain your process?",
    ),
}
