"""Local sentence-transformers embedding provider."""

from typing import Optional, Sequence

from sentence_transformers import SentenceTransformer


class SentenceTransformerProvider:
    """Embedding backend running a sentence-transformers model in-process."""

    DEFAULT_MODEL = "all-mpnet-base-v2"

    def __init__(self, model_name: Optional[str] = None):
        """Initialize the provider.

        Args:
            model_name: Name of the sentence-transformers model to use.
                       Default is 'all-mpnet-base-v2' (768 dimensions).
        """
        self.model_name = model_name or self.DEFAULT_MODEL
        self._model: Optional[SentenceTransformer] = None

    @property
    def model(self) -> SentenceTransformer:
        """Lazy-load the model on first use."""
        if self._model is None:
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed(self, text: str) -> Sequence[float]:
        embedding = self.model.encode(text, convert_to_numpy=True)
        return embedding.tolist()
