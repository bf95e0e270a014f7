"""Configuration management for chatbot intelligence."""

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Redis configuration
    # Set to None to keep the cache and corpora in process memory
    redis_url: str | None = None
    cache_key_prefix: str = "aic:emb:"
    content_key_prefix: str = "aic:content:"
    training_key_prefix: str = "aic:training:"

    # Embedding configuration
    # Options: "openai" (OpenAI API), "local" (Sentence Transformers) or "titan" (AWS Bedrock Titan)
    embed_provider: Literal["openai", "local", "titan"] = "openai"
    # For openai: text-embedding-ada-002 (1536)
    # For local: sentence-transformers model name (e.g., "sentence-transformers/all-MiniLM-L6-v2", 384)
    # For titan: AWS Bedrock Titan model ID (e.g., "amazon.titan-embed-text-v1", 1536)
    embed_model_name: str = "text-embedding-ada-002"
    vector_dim: int = 1536
    embedding_timeout_seconds: float = 30.0
    embedding_max_input_chars: int = 30000
    embedding_cache_ttl_seconds: int = 86400
    strict_dimensions: bool = False

    # Chat provider configuration
    # Options: "openai" (chat completions) or "bedrock" (Anthropic models via AWS Bedrock)
    chat_provider: Literal["openai", "bedrock"] = "openai"
    chat_model: str = "gpt-4o-mini"
    chat_max_tokens: int = 300
    chat_temperature: float = 0.7
    system_prompt: str = (
        "You are a helpful AI assistant for this website. Provide accurate, helpful, "
        "and concise responses based on the website content and context provided. "
        "Be friendly and professional."
    )

    # OpenAI configuration
    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"

    # AWS/Bedrock configuration
    aws_region: str = "us-east-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    # Model ID or inference profile ARN
    anthropic_model: str = "anthropic.claude-3-haiku-20240307-v1:0"

    # Retrieval configuration
    similarity_threshold: float = 0.75
    training_match_threshold: float = 0.75
    semantic_content_limit: int = 3

    # Batch embedding configuration
    embedding_batch_size: int = 10
    embedding_batch_delay_seconds: float = 0.1

    # Intent recognition configuration
    intent_sensitivity: Literal["high", "medium", "low"] = "medium"
    semantic_intents_enabled: bool = True
    semantic_intent_threshold: float = 0.7
    intent_examples_ttl_seconds: int = 3600

    # Context configuration
    max_context_length: int = 4000
    site_name: str = "My Website"
    site_url: str = "http://localhost"
    site_description: str = ""
    site_contact: str = ""
    site_language: str = "en-US"
    timezone: str = "UTC"

    # Business facts (included in context only when set)
    business_hours: str = ""
    contact_phone: str = ""
    contact_email: str = ""
    location_info: str = ""
    industry_keywords: str = ""
    current_promotions: str = ""

    # Request handling
    request_timeout_seconds: float = 12.0
    history_turns: int = 3

    # Lead scoring constants (time on page in seconds)
    engagement_medium_seconds: int = 60
    engagement_high_seconds: int = 300
    lead_time_bonus_seconds: int = 120

    # API configuration
    host: str = "0.0.0.0"
    port: int = 8080

    def business_facts(self) -> dict[str, str]:
        """Return configured business facts keyed by their display label."""
        return {
            "Business Hours": self.business_hours,
            "Phone": self.contact_phone,
            "Email": self.contact_email,
            "Location": self.location_info,
            "Industry": self.industry_keywords,
            "Current Promotions": self.current_promotions,
        }


# Global settings instance
settings = Settings()
