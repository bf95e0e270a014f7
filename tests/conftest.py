"""Pytest configuration and fixtures."""

from unittest.mock import MagicMock

import pytest

from chatbot_intelligence.config import Settings
from tests.fakes import FakeChatProvider, FakeEmbedder

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture
def fake_embedder():
    """Deterministic embedder."""
    return FakeEmbedder()


@pytest.fixture
def fake_chat():
    """Chat provider with a pricing reply."""
    return FakeChatProvider()


@pytest.fixture
def test_settings():
    """Settings isolated from the environment, in-memory stores, small vectors."""
    return Settings(
        _env_file=None,
        redis_url=None,
        vector_dim=8,
        site_name="Acme Outfitters",
        site_url="https://example.com",
        site_description="Outdoor gear shop",
        semantic_intents_enabled=False,
        embedding_batch_delay_seconds=0,
    )


@pytest.fixture
def mock_redis_client():
    """Mock Redis client for unit tests."""
    mock_client = MagicMock()
    mock_client.ping.return_value = True
    return mock_client


@pytest.fixture
def sample_content():
    """Sample site content items."""
    return [
        {
            "id": "post-1",
            "title": "Shipping policy",
            "body": "<p>We ship worldwide. Delivery takes 3-5 business days.</p>",
            "url": "https://example.com/shipping",
            "updated_at": 100.0,
        },
        {
            "id": "post-2",
            "title": "Pricing plans",
            "body": "Our plans cost $10 per month for the starter tier.",
            "url": "https://example.com/pricing",
            "updated_at": 200.0,
        },
        {
            "id": "post-3",
            "title": "Returns",
            "body": "Returns are accepted within 30 days for a full refund.",
            "url": "https://example.com/returns",
            "updated_at": 300.0,
        },
    ]


@pytest.fixture
def sample_training():
    """Sample training Q&A pairs."""
    return [
        {
            "id": "qa-1",
            "question": "How do I reset my password?",
            "answer": "Use the Forgot password link on the login page.",
            "intent": "support",
            "status": "active",
        },
        {
            "id": "qa-2",
            "question": "What is your refund policy?",
            "answer": "Refunds are issued within 30 days.",
            "intent": "information",
            "status": "inactive",
        },
    ]
