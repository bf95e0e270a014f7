"""OpenAI chat completions provider over HTTP."""

import logging

import httpx

from chatbot_intelligence.embeddings.openai_embedder import validate_openai_key
from chatbot_intelligence.errors import MalformedResponseError, TransportError, UpstreamError
from chatbot_intelligence.providers.base import build_system_message

logger = logging.getLogger(__name__)


class OpenAIChatProvider:
    """Chat provider calling the OpenAI chat completions endpoint."""

    def __init__(
        self,
        api_key: str | None,
        system_prompt: str,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        max_tokens: int = 300,
        temperature: float = 0.7,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ):
        """
        Initialize the provider.

        Args:
            api_key: OpenAI API key, validated on every call.
            system_prompt: Instructions prepended to the website context.
            model: Chat model name.
            base_url: API base URL.
            max_tokens: Reply token limit.
            temperature: Sampling temperature.
            timeout: Default HTTP timeout in seconds.
            client: Optional httpx client (tests inject a mock transport).
        """
        self.api_key = api_key
        self.system_prompt = system_prompt
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._client = client

    def complete(self, context: str, message: str, timeout: float | None = None) -> str:
        api_key = validate_openai_key(self.api_key)
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": build_system_message(self.system_prompt, context)},
                {"role": "user", "content": message},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        headers = {"Authorization": f"Bearer {api_key}"}
        url = f"{self.base_url}/chat/completions"
        request_timeout = min(self.timeout, timeout) if timeout is not None else self.timeout

        try:
            if self._client is not None:
                response = self._client.post(url, json=payload, headers=headers, timeout=request_timeout)
            else:
                with httpx.Client(timeout=request_timeout) as client:
                    response = client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Chat request failed ({type(e).__name__}): {e}")
            raise TransportError(f"Chat request failed: {type(e).__name__}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code != 200:
            message_text = f"HTTP {response.status_code} error"
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                message_text = body["error"].get("message", message_text)
            logger.error(f"Chat API returned error: {message_text}")
            raise UpstreamError(message_text, status_code=response.status_code)

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError("Invalid chat completion response") from e
        if not isinstance(content, str):
            raise MalformedResponseError("Chat completion content is not text")

        return content.strip()

    def __repr__(self) -> str:
        """String representation."""
        return f"OpenAIChatProvider(model={self.model})"
