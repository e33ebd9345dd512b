"""Note model for Synapse Notes."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

import numpy as np


class EmbeddingStatus(str, Enum):
    """Status of a note's embedding in the processing pipeline."""

    PENDING = "pending"  # Transcript stored, waiting for an embedding
    PROCESSING = "processing"  # Embedding generation in flight
    COMPLETED = "completed"  # Vector stored, note is linkable
    FAILED = "failed"  # Terminal until explicitly re-queued


def new_note_id() -> str:
    """Generate an opaque note identifier."""
    return str(uuid.uuid4())


def default_title(when: Optional[datetime] = None) -> str:
    """Title given to notes created from a recording, e.g. 'Note - Jan 5, 2026'."""
    when = when or datetime.utcnow()
    return f"Note - {when.strftime('%b')} {when.day}, {when.year}"


@dataclass
class Note:
    """Represents a voice note owned by a single user."""

    owner_id: str
    title: str = ""
    content: Optional[str] = None

    # Recording
    audio_reference: Optional[str] = None
    duration: Optional[int] = None

    # Pipeline output
    transcript: Optional[str] = None
    embedding: Optional[np.ndarray] = None
    embedding_status: EmbeddingStatus = EmbeddingStatus.PENDING
    image_reference: Optional[str] = None

    id: str = field(default_factory=new_note_id)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Validate and convert fields after initialization."""
        if isinstance(self.embedding_status, str):
            self.embedding_status = EmbeddingStatus(self.embedding_status)
        if not self.title:
            self.title = default_title(self.created_at)

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Note):
            return NotImplemented
        return self.id == other.id


@dataclass
class ManualLink:
    """A user-created link between two notes."""

    source_note_id: str
    target_note_id: str
    id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
