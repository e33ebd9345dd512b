"""Transcription job model. Jobs live in memory only."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class JobStatus(str, Enum):
    """Lifecycle of a queued job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Job:
    """One note's audio-to-transcript-to-embedding unit of work."""

    note_id: str
    audio_reference: str
    status: JobStatus = JobStatus.PENDING
    error: Optional[str] = None
    enqueued_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_finished(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)
