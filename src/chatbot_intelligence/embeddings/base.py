"""Base protocol for embedding providers."""

from typing import Protocol

import numpy as np


class Embedder(Protocol):
    """Protocol for embedding providers."""

    @property
    def dim(self) -> int:
        """Return the dimension of embeddings."""
        ...

    def embed(self, text: str) -> np.ndarray:
        """
        Embed one piece of text.

        Implementations validate credentials before any network call, truncate
        the input to their length cap and never retry internally.

        Args:
            text: Text to embed, already normalized by the cache layer.

        Returns:
            1-D float32 array of length ``dim``.

        Raises:
            ProviderError: On credential, transport, upstream or payload failures.
        """
        ...
