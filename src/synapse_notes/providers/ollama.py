"""Ollama embedding provider."""

import os
from typing import Optional, Sequence

from ollama import Client  # type: ignore[import-untyped]


class OllamaEmbeddingProvider:
    """Embedding backend served by an Ollama host."""

    DEFAULT_MODEL = "nomic-embed-text"
    DEFAULT_HOST = "http://localhost:11434"

    def __init__(
        self,
        model_name: Optional[str] = None,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the Ollama provider.

        Args:
            model_name: Embedding model (default: nomic-embed-text)
            host: Ollama API host (default: http://localhost:11434)
            api_key: API key for authentication (default: from OLLAMA_API_KEY env var)
            timeout: Per-request timeout in seconds
        """
        self.model_name = model_name or self.DEFAULT_MODEL
        self.host = host or self.DEFAULT_HOST
        self.api_key = api_key or os.environ.get("OLLAMA_API_KEY", "")

        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        self._client = Client(
            host=self.host,
            headers=headers if headers else None,
            timeout=timeout,
        )

    @property
    def client(self) -> Client:
        """Get the Ollama client."""
        return self._client

    def embed(self, text: str) -> Sequence[float]:
        response = self._client.embed(model=self.model_name, input=text)
        embeddings = response["embeddings"]
        if not embeddings:
            return []
        return list(embeddings[0])
