"""Amazon Titan embedding provider via Bedrock."""

import json
import logging

import numpy as np

from chatbot_intelligence.embeddings.bedrock_client import BedrockClient
from chatbot_intelligence.errors import MalformedResponseError

logger = logging.getLogger(__name__)


class TitanEmbedder:
    """AWS Bedrock Titan embedding provider."""

    def __init__(
        self,
        model_id: str = "amazon.titan-embed-text-v1",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        aws_region: str = "us-east-1",
        vector_dim: int = 1536,
        timeout: float = 30.0,
        max_input_chars: int = 30000,
        bedrock_client: BedrockClient | None = None,
    ):
        """
        Initialize the Titan embedder.

        Args:
            model_id: Bedrock Titan model ID (default: amazon.titan-embed-text-v1).
            aws_access_key_id: AWS access key ID (optional).
            aws_secret_access_key: AWS secret access key (optional).
            aws_region: AWS region for Bedrock.
            vector_dim: Dimension of embeddings (1536 for Titan v1).
            timeout: Read timeout in seconds.
            max_input_chars: Input is truncated to this many characters.
            bedrock_client: Optional pre-built client.
        """
        self.model_id = model_id
        self._dim = vector_dim
        self.max_input_chars = max_input_chars
        self.bedrock_client = bedrock_client or BedrockClient(
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            aws_region=aws_region,
            read_timeout=timeout,
        )
        logger.info(f"Initialized Titan embedder with model: {model_id}")

    @property
    def dim(self) -> int:
        """Return the dimension of embeddings."""
        return self._dim

    def embed(self, text: str) -> np.ndarray:
        """
        Embed text using Titan.

        Args:
            text: Text to embed.

        Returns:
            float32 vector of length ``dim``.
        """
        body = json.dumps({"inputText": text[: self.max_input_chars]})
        response_body = self.bedrock_client.invoke_model(
            model_id=self.model_id,
            body=body,
            agent_name="TitanEmbedder",
        )

        raw = response_body.get("embedding") if isinstance(response_body, dict) else None
        if not isinstance(raw, list) or not raw:
            raise MalformedResponseError("Titan response has no embedding")
        if len(raw) != self._dim:
            raise MalformedResponseError(
                f"Titan embedding has dimension {len(raw)}, expected {self._dim}"
            )

        try:
            return np.asarray(raw, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise MalformedResponseError("Titan embedding must be numeric") from e

    def __repr__(self) -> str:
        """String representation."""
        return f"TitanEmbedder(model={self.model_id}, dim={self._dim})"
