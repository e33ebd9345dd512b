"""Pytest fixtures for Synapse Notes tests."""

import struct
import threading
import tempfile
from pathlib import Path
from typing import Optional, Union

import numpy as np
import pytest

from synapse_notes.database.repository import Repository
from synapse_notes.models.note import EmbeddingStatus, Note
from synapse_notes.services.blob_storage import LocalBlobStorage

EMBEDDING_DIM = 8


def make_wav(seconds: float, sample_rate: int = 16000) -> bytes:
    """Build a silent 16-bit mono WAV file."""
    data_size = int(seconds * sample_rate) * 2
    header = b"RIFF" + struct.pack("<I", 36 + data_size) + b"WAVE"
    header += b"fmt " + struct.pack("<IHHIIHH", 16, 1, 1, sample_rate, sample_rate * 2, 2, 16)
    header += b"data" + struct.pack("<I", data_size)
    return header + b"\x00" * data_size


def unit_vector(*components: float, dim: int = EMBEDDING_DIM) -> list[float]:
    """Pad components to ``dim`` and normalize."""
    vec = np.zeros(dim, dtype=np.float32)
    vec[: len(components)] = components
    return (vec / np.linalg.norm(vec)).tolist()


class FakeTranscriptionProvider:
    """Returns a canned transcript (or raises) per audio payload."""

    def __init__(self, responses: Optional[dict[bytes, Union[str, Exception]]] = None):
        self.responses = responses or {}
        self.calls: list[tuple[bytes, str, str]] = []

    def transcribe(self, audio: bytes, mime_type: str, instruction: str) -> str:
        self.calls.append((audio, mime_type, instruction))
        response = self.responses.get(audio, "")
        if isinstance(response, Exception):
            raise response
        return response


class FakeEmbeddingProvider:
    """Returns a fixed vector per text; can fail a set number of times first."""

    def __init__(
        self,
        vectors: Optional[dict[str, list[float]]] = None,
        default: Optional[list[float]] = None,
        failures: int = 0,
    ):
        self.vectors = vectors or {}
        self.default = default if default is not None else unit_vector(1.0)
        self.failures = failures
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("provider unavailable")
        return self.vectors.get(text, self.default)


@pytest.fixture
def temp_dir():
    """Provide a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_db_path(temp_dir):
    """Provide a temporary database path."""
    return temp_dir / "test.db"


@pytest.fixture
def repository(temp_db_path):
    """Provide a repository with a temporary database."""
    return Repository(f"sqlite:///{temp_db_path}", embedding_dim=EMBEDDING_DIM)


@pytest.fixture
def storage(temp_dir):
    """Provide blob storage in a temporary directory."""
    return LocalBlobStorage(temp_dir / "blobs")


@pytest.fixture
def add_note(repository):
    """Factory that stores a note, optionally with a completed embedding."""

    def _add(
        transcript: Optional[str] = None,
        embedding: Optional[list[float]] = None,
        owner_id: str = "owner-1",
        note_id: Optional[str] = None,
        **kwargs,
    ) -> Note:
        fields = dict(owner_id=owner_id, transcript=transcript, **kwargs)
        if note_id is not None:
            fields["id"] = note_id
        if embedding is not None:
            fields["embedding"] = np.asarray(embedding, dtype=np.float32)
            fields["embedding_status"] = EmbeddingStatus.COMPLETED
        return repository.add_note(Note(**fields))

    return _add


@pytest.fixture
def wav_bytes():
    """Factory for silent WAV payloads of a given length."""
    return make_wav


@pytest.fixture
def vector():
    """Factory for normalized test vectors."""
    return unit_vector


@pytest.fixture
def fake_transcriber():
    """Create a FakeTranscriptionProvider with no canned responses."""
    return FakeTranscriptionProvider()


@pytest.fixture
def fake_embedder():
    """Create a FakeEmbeddingProvider with derived vectors."""
    return FakeEmbeddingProvider()


class BlockingEmbeddingProvider(FakeEmbeddingProvider):
    """Holds every embed call until released."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.started = threading.Event()
        self.release = threading.Event()

    def embed(self, text: str) -> list[float]:
        self.started.set()
        self.release.wait(5)
        return super().embed(text)


@pytest.fixture
def embedder_factory():
    """Factory for embedding fakes with custom vectors or failures."""
    return FakeEmbeddingProvider


@pytest.fixture
def blocking_embedder():
    """Create an embedder that blocks until released."""
    provider = BlockingEmbeddingProvider()
    yield provider
    provider.release.set()
