"""Anthropic chat provider via AWS Bedrock."""

import logging

from chatbot_intelligence.embeddings.bedrock_client import BedrockClient
from chatbot_intelligence.providers.base import build_system_message

logger = logging.getLogger(__name__)


class BedrockChatProvider:
    """Chat provider using Anthropic models through the Bedrock Messages API."""

    def __init__(
        self,
        system_prompt: str,
        model_id: str = "anthropic.claude-3-haiku-20240307-v1:0",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        aws_region: str = "us-east-1",
        max_tokens: int = 300,
        temperature: float = 0.7,
        timeout: float = 30.0,
        bedrock_client: BedrockClient | None = None,
    ):
        """
        Initialize the provider.

        Args:
            system_prompt: Instructions prepended to the website context.
            model_id: Bedrock model ID or inference profile ARN.
            aws_access_key_id: AWS access key ID (optional, uses credentials chain if not provided).
            aws_secret_access_key: AWS secret access key (optional).
            aws_region: AWS region for Bedrock.
            max_tokens: Reply token limit.
            temperature: Sampling temperature.
            timeout: Read timeout in seconds.
            bedrock_client: Optional pre-built client.
        """
        self.system_prompt = system_prompt
        self.model_id = model_id
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.bedrock_client = bedrock_client or BedrockClient(
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            aws_region=aws_region,
            read_timeout=timeout,
        )
        logger.info(f"Initialized Bedrock chat provider with model: {model_id}")

    def complete(self, context: str, message: str, timeout: float | None = None) -> str:
        # The boto client timeout is fixed at construction; the pipeline deadline still applies
        return self.bedrock_client.invoke_messages(
            model_id=self.model_id,
            prompt=message,
            system=build_system_message(self.system_prompt, context),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            agent_name="ChatProvider",
        )

    def __repr__(self) -> str:
        """String representation."""
        return f"BedrockChatProvider(model={self.model_id})"
