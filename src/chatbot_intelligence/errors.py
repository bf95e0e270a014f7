"""Exception types for chatbot intelligence.

Provider failures (credential, transport, upstream, malformed payload) are
raised by embedding and chat adapters. Everything except credential errors is
recoverable: callers fall back to the next stage of the retrieval chain.
"""


class ChatbotIntelligenceError(Exception):
    """Base class for all errors raised by this package."""


class ProviderError(ChatbotIntelligenceError):
    """An external embedding or chat provider call failed."""

    recoverable = True


class CredentialError(ProviderError):
    """The API credential is missing or malformed. Not retried."""

    recoverable = False


class MissingCredentialError(CredentialError):
    """No API credential is configured."""


class InvalidCredentialFormatError(CredentialError):
    """The configured API credential has the wrong shape."""


class TransportError(ProviderError):
    """Network failure or timeout talking to the provider."""


class UpstreamError(ProviderError):
    """The provider answered with a non-2xx status or an API error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(ProviderError):
    """The provider payload did not have the expected shape."""


class EmptyTextError(ChatbotIntelligenceError, ValueError):
    """Text was empty after normalization, so there is nothing to embed."""


class NotFoundError(ChatbotIntelligenceError):
    """No semantic match above the threshold. Expected, not a failure."""


class DimensionMismatchError(ChatbotIntelligenceError, ValueError):
    """Two vectors of unequal length were compared."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Vector dimension mismatch: {left} != {right}")
        self.left = left
        self.right = right


class PipelineTimeoutError(ChatbotIntelligenceError):
    """The end-to-end request deadline passed."""
