"""Integration tests for API and Redis stores with Testcontainers."""

import httpx
import numpy as np
import pytest
import redis

from chatbot_intelligence.pipeline import ChatbotIntelligence
from tests.fakes import FakeChatProvider, FakeEmbedder

try:
    from testcontainers.redis import RedisContainer
except ImportError:
    RedisContainer = None


@pytest.fixture(scope="module")
def redis_url():
    """Start a Redis container."""
    with RedisContainer(image="redis:7-alpine") as container:
        host = container.get_container_host_ip()
        port = container.get_exposed_port(6379)
        yield f"redis://{host}:{port}/0"


@pytest.fixture
def redis_settings(test_settings, redis_url):
    """Settings pointing at the container; the database is flushed after each test."""
    yield test_settings.model_copy(update={"redis_url": redis_url})
    client = redis.from_url(redis_url)
    client.flushdb()
    client.close()


@pytest.mark.integration
@pytest.mark.skipif(RedisContainer is None, reason="testcontainers not available")
class TestRedisPipeline:
    """Pipeline behaviour against a real Redis."""

    def test_corpus_survives_restart(self, redis_settings, sample_content, sample_training):
        """Test embeddings written by one pipeline are served by the next."""
        with ChatbotIntelligence(
            settings=redis_settings, embedder=FakeEmbedder(), chat_provider=FakeChatProvider()
        ) as first:
            first.add_content(sample_content)
            first.add_training_pairs(sample_training)
            assert first.generate_embeddings()["remaining"] == 0

        embedder = FakeEmbedder()
        with ChatbotIntelligence(
            settings=redis_settings, embedder=embedder, chat_provider=FakeChatProvider()
        ) as second:
            status = second.embedding_status()
            assert status["content"]["completed"] == 3
            assert status["training"]["completed"] == 2

            result = second.process_message("How do I reset my password?")

            assert result["source"] == "semantic_training"
            # The question embedding was cached by the first pipeline
            assert "How do I reset my password?" not in embedder.calls

    def test_claim_is_exclusive(self, redis_settings):
        """Test only one worker can claim a pending item."""
        with ChatbotIntelligence(
            settings=redis_settings, embedder=FakeEmbedder(), chat_provider=FakeChatProvider()
        ) as pipeline:
            pipeline.add_content([{"id": "post-9", "title": "Tents", "body": "Waterproof tents."}])
            store = pipeline.content_store

            assert store.claim("post-9") is True
            assert store.claim("post-9") is False
            assert store.get("post-9")["embedding_status"] == "processing"

            store.set_embedding("post-9", np.ones(8, dtype=np.float32), "completed")
            assert np.allclose(store.get("post-9")["embedding"], np.ones(8))

    def test_regenerate_all(self, redis_settings, sample_content):
        """Test mode all re-embeds everything."""
        with ChatbotIntelligence(
            settings=redis_settings, embedder=FakeEmbedder(), chat_provider=FakeChatProvider()
        ) as pipeline:
            pipeline.add_content(sample_content)
            pipeline.generate_embeddings()

            result = pipeline.generate_embeddings(mode="all")

            assert result == {"processed": 3, "errors": 0, "remaining": 0}
            assert pipeline.health_check() is True


@pytest.mark.integration
@pytest.mark.skipif(RedisContainer is None, reason="testcontainers not available")
class TestAPIIntegration:
    """Integration tests for API with real Redis."""

    @pytest.fixture
    def api_pipeline(self, redis_settings):
        """Install a Redis-backed pipeline as the API's global instance."""
        import chatbot_intelligence.api.app as api_module

        pipeline = ChatbotIntelligence(
            settings=redis_settings, embedder=FakeEmbedder(), chat_provider=FakeChatProvider()
        )
        api_module._pipeline = pipeline
        yield pipeline
        api_module._pipeline = None
        pipeline.close()

    @pytest.mark.asyncio
    async def test_health_check(self, api_pipeline):
        """Test health check endpoint."""
        from chatbot_intelligence.api.app import app

        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["healthy"] is True

    @pytest.mark.asyncio
    async def test_train_and_chat(self, api_pipeline):
        """Test training ingest, embedding and a matched chat answer."""
        from chatbot_intelligence.api.app import app

        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post(
                "/training",
                json=[{"id": "qa-1", "question": "What is your refund policy?", "answer": "Refunds take 30 days."}],
            )
            assert response.status_code == 200

            response = await client.post("/embeddings/generate", json={"mode": "missing"})
            assert response.json()["remaining"] == 0

            response = await client.post("/chat", json={"message": "Can I return this for a refund?"})

        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "semantic_training"
        assert "Refunds take 30 days" in data["response"]
