"""Capability interfaces for external providers.

Any engine offering these shapes can back the pipeline.
"""

from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class TranscriptionProvider(Protocol):
    """Speech-to-text capability."""

    def transcribe(self, audio: bytes, mime_type: str, instruction: str) -> str:
        ...


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Text-embedding capability returning a fixed-length vector."""

    def embed(self, text: str) -> Sequence[float]:
        ...
