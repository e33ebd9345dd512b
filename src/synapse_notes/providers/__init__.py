"""Swappable backends for transcription and embeddings."""

from typing import Optional

from synapse_notes.config import Settings
from synapse_notes.providers.base import EmbeddingProvider, TranscriptionProvider
from synapse_notes.providers.gemini import GeminiProvider


def build_embedding_provider(
    settings: Settings, gemini: Optional[GeminiProvider] = None
) -> EmbeddingProvider:
    """Create the embedding backend selected in settings.

    Optional backends are imported on demand so their heavy dependencies
    only load when chosen.
    """
    if settings.embedding_backend == "ollama":
        from synapse_notes.providers.ollama import OllamaEmbeddingProvider

        return OllamaEmbeddingProvider(
            model_name=settings.embedding_model,
            host=settings.ollama_host,
            api_key=settings.ollama_api_key or None,
            timeout=settings.request_timeout,
        )

    if settings.embedding_backend == "sentence-transformers":
        from synapse_notes.providers.sentence_transformer import (
            SentenceTransformerProvider,
        )

        return SentenceTransformerProvider(model_name=settings.embedding_model)

    if gemini is not None:
        return gemini
    return GeminiProvider(
        api_key=settings.google_api_key,
        transcription_model=settings.transcription_model,
        embedding_model=settings.embedding_model,
        output_dimensionality=settings.embedding_dimension,
        timeout=settings.request_timeout,
    )


__all__ = [
    "EmbeddingProvider",
    "GeminiProvider",
    "TranscriptionProvider",
    "build_embedding_provider",
]
