"""Sentence Transformers local embedding provider."""

import logging

import numpy as np
from sentence_transformers import SentenceTransformer

from chatbot_intelligence.errors import UpstreamError

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    """Local embedding provider using Sentence Transformers."""

    def __init__(
        self,
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        max_input_chars: int = 30000,
    ):
        """
        Initialize the embedder.

        Args:
            model_name: Name of the sentence transformer model to use.
            max_input_chars: Input is truncated to this many characters.
        """
        self.model_name = model_name
        self.max_input_chars = max_input_chars
        logger.info(f"Using sentence transformer model: {model_name}")
        self._model: SentenceTransformer | None = None
        self._dim: int | None = None

    @property
    def model(self) -> SentenceTransformer:
        """Lazy load the model."""
        if self._model is None:
            self._model = SentenceTransformer(self.model_name)
            self._dim = self._model.get_sentence_embedding_dimension()
        return self._model

    @property
    def dim(self) -> int:
        """Return the dimension of embeddings."""
        if self._dim is None:
            self._dim = self.model.get_sentence_embedding_dimension()
        return self._dim

    def embed(self, text: str) -> np.ndarray:
        """
        Embed text locally.

        Args:
            text: Text to embed.

        Returns:
            L2-normalized float32 vector.
        """
        try:
            embeddings = self.model.encode(
                [text[: self.max_input_chars]],
                convert_to_numpy=True,
                normalize_embeddings=True,  # L2 normalize for cosine similarity
                show_progress_bar=False,
            )
        except Exception as e:
            logger.error(f"Local embedding model failed: {e}")
            raise UpstreamError(f"Local embedding failed: {e}") from e

        return np.asarray(embeddings, dtype=np.float32).reshape(-1)

    def __repr__(self) -> str:
        """String representation."""
        return f"SentenceTransformerEmbedder(model={self.model_name})"
