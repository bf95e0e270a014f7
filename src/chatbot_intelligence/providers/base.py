"""Base protocol for chat completion providers."""

from typing import Protocol


def build_system_message(system_prompt: str, context: str = "") -> str:
    """Append the website context to the configured system prompt."""
    if not context:
        return system_prompt
    return f"{system_prompt}\n\nWebsite Context:\n{context}"


class ChatProvider(Protocol):
    """Protocol for chat completion providers."""

    def complete(self, context: str, message: str, timeout: float | None = None) -> str:
        """
        Produce a single-turn reply.

        Args:
            context: Context assembled for the message.
            message: User message.
            timeout: Seconds left before the request deadline, if any.

        Returns:
            Reply text.

        Raises:
            ProviderError: On credential, transport, upstream or payload failures.
        """
        ...
