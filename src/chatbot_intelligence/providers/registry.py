"""Chat provider factory."""

import logging

from chatbot_intelligence.config import Settings
from chatbot_intelligence.providers.base import ChatProvider

logger = logging.getLogger(__name__)


def _build_openai(settings: Settings) -> ChatProvider:
    from chatbot_intelligence.providers.openai_chat import OpenAIChatProvider

    return OpenAIChatProvider(
        api_key=settings.openai_api_key,
        system_prompt=settings.system_prompt,
        model=settings.chat_model,
        base_url=settings.openai_base_url,
        max_tokens=settings.chat_max_tokens,
        temperature=settings.chat_temperature,
        timeout=settings.request_timeout_seconds,
    )


def _build_bedrock(settings: Settings) -> ChatProvider:
    from chatbot_intelligence.providers.bedrock_chat import BedrockChatProvider

    return BedrockChatProvider(
        system_prompt=settings.system_prompt,
        model_id=settings.anthropic_model,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        aws_region=settings.aws_region,
        max_tokens=settings.chat_max_tokens,
        temperature=settings.chat_temperature,
        timeout=settings.request_timeout_seconds,
    )


CHAT_PROVIDERS = {
    "openai": _build_openai,
    "bedrock": _build_bedrock,
}


def build_chat_provider(settings: Settings) -> ChatProvider:
    """
    Create the chat provider named by ``settings.chat_provider``.

    Raises:
        ValueError: Unknown provider name.
    """
    factory = CHAT_PROVIDERS.get(settings.chat_provider)
    if factory is None:
        raise ValueError(
            f"Unknown chat_provider: {settings.chat_provider}. "
            f"Must be one of: {', '.join(CHAT_PROVIDERS)}"
        )
    logger.info(f"Using {settings.chat_provider} chat provider")
    return factory(settings)
