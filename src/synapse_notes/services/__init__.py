"""Services for Synapse Notes."""

from synapse_notes.services.blob_storage import LocalBlobStorage
from synapse_notes.services.content_moderator import sanitize
from synapse_notes.services.embedding_cache import EmbeddingCache
from synapse_notes.services.embedding_service import EmbeddingService
from synapse_notes.services.illustration_generator import (
    IllustrationGenerator,
    IllustrationResult,
)
from synapse_notes.services.pipeline import PipelineOrchestrator, QueueStatus
from synapse_notes.services.similarity_ranker import (
    RelatedNote,
    SimilarityEdge,
    SimilarityRanker,
)
from synapse_notes.services.transcription_service import TranscriptionService

__all__ = [
    "EmbeddingCache",
    "EmbeddingService",
    "IllustrationGenerator",
    "IllustrationResult",
    "LocalBlobStorage",
    "PipelineOrchestrator",
    "QueueStatus",
    "RelatedNote",
    "SimilarityEdge",
    "SimilarityRanker",
    "TranscriptionService",
    "sanitize",
]
