"""Data models for Synapse Notes."""

from synapse_notes.models.job import Job, JobStatus
from synapse_notes.models.note import EmbeddingStatus, ManualLink, Note

__all__ = ["EmbeddingStatus", "Job", "JobStatus", "ManualLink", "Note"]
