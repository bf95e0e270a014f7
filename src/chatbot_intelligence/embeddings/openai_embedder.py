"""OpenAI embedding provider over HTTP."""

import logging

import httpx
import numpy as np

from chatbot_intelligence.errors import (
    InvalidCredentialFormatError,
    MalformedResponseError,
    MissingCredentialError,
    TransportError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


def validate_openai_key(api_key: str | None) -> str:
    """
    Check that an OpenAI API key is present and shaped like one.

    Args:
        api_key: Configured key.

    Returns:
        The key, unchanged.

    Raises:
        MissingCredentialError: No key configured.
        InvalidCredentialFormatError: Key is not ``sk-`` prefixed or too short.
    """
    if not api_key:
        raise MissingCredentialError("OpenAI API key not configured")
    if len(api_key) < 40 or not api_key.startswith("sk-"):
        raise InvalidCredentialFormatError("Invalid OpenAI API key format")
    return api_key


class OpenAIEmbedder:
    """Embedding provider calling the OpenAI embeddings endpoint."""

    def __init__(
        self,
        api_key: str | None,
        model: str = "text-embedding-ada-002",
        base_url: str = "https://api.openai.com/v1",
        vector_dim: int = 1536,
        timeout: float = 30.0,
        max_input_chars: int = 30000,
        client: httpx.Client | None = None,
    ):
        """
        Initialize the embedder.

        Args:
            api_key: OpenAI API key. Validated on every call, not here, so a
                misconfigured key degrades to keyword search instead of
                failing at startup.
            model: Embedding model name.
            base_url: API base URL.
            vector_dim: Expected vector dimension.
            timeout: HTTP timeout in seconds.
            max_input_chars: Input is truncated to this many characters.
            client: Optional httpx client (tests inject a mock transport).
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._dim = vector_dim
        self.timeout = timeout
        self.max_input_chars = max_input_chars
        self._client = client

    @property
    def dim(self) -> int:
        """Return the dimension of embeddings."""
        return self._dim

    def embed(self, text: str) -> np.ndarray:
        """
        Embed text with the OpenAI API.

        Args:
            text: Text to embed.

        Returns:
            float32 vector of length ``dim``.
        """
        api_key = validate_openai_key(self.api_key)
        payload = {"input": text[: self.max_input_chars], "model": self.model}
        headers = {"Authorization": f"Bearer {api_key}"}
        url = f"{self.base_url}/embeddings"

        try:
            if self._client is not None:
                response = self._client.post(url, json=payload, headers=headers, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Embedding request failed ({type(e).__name__}): {e}")
            raise TransportError(f"Embedding request failed: {type(e).__name__}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code != 200:
            message = f"HTTP {response.status_code} error"
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                message = body["error"].get("message", message)
            logger.error(f"Embedding API returned error: {message}")
            raise UpstreamError(message, status_code=response.status_code)

        if not isinstance(body, dict):
            raise MalformedResponseError("Embedding response is not a JSON object")

        if body.get("error"):
            error = body["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            logger.error(f"Embedding API error: {message}")
            raise UpstreamError(message, status_code=response.status_code)

        return self._extract_vector(body)

    def _extract_vector(self, body: dict) -> np.ndarray:
        """Pull ``data[0].embedding`` out of the response and validate it."""
        try:
            raw = body["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error("Invalid embedding response structure")
            raise MalformedResponseError("Invalid embedding response") from e

        if not isinstance(raw, list) or not all(
            isinstance(x, (int, float)) and not isinstance(x, bool) for x in raw
        ):
            raise MalformedResponseError("Embedding vector must be a list of numbers")

        if len(raw) != self._dim:
            raise MalformedResponseError(
                f"Embedding has dimension {len(raw)}, expected {self._dim}"
            )

        return np.asarray(raw, dtype=np.float32)

    def __repr__(self) -> str:
        """String representation."""
        return f"OpenAIEmbedder(model={self.model}, dim={self._dim})"
