"""Composition root: builds every service once and wires them together."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from synapse_notes.config import Settings
from synapse_notes.database.repository import Repository
from synapse_notes.errors import InvalidInputError
from synapse_notes.logger import get_logger
from synapse_notes.models.job import Job
from synapse_notes.models.note import EmbeddingStatus, Note, new_note_id
from synapse_notes.providers import GeminiProvider, build_embedding_provider
from synapse_notes.services.audio_inspector import inspect_audio
from synapse_notes.services.blob_storage import LocalBlobStorage
from synapse_notes.services.embedding_cache import EmbeddingCache
from synapse_notes.services.embedding_service import EmbeddingService
from synapse_notes.services.illustration_generator import IllustrationGenerator
from synapse_notes.services.pipeline import PipelineOrchestrator, QueueStatus
from synapse_notes.services.similarity_ranker import RelatedNote, SimilarityRanker
from synapse_notes.services.transcription_service import TranscriptionService

logger = get_logger(__name__)


@dataclass
class SynapseApp:
    """Process-scoped services plus the operations exposed to callers."""

    repository: Repository
    storage: LocalBlobStorage
    embedding_service: EmbeddingService
    transcription_service: TranscriptionService
    pipeline: PipelineOrchestrator
    ranker: SimilarityRanker

    def ingest(self, owner_id: str, audio_path: Path, title: Optional[str] = None) -> Note:
        """Validate a recording, store it, create its note and queue it."""
        data = Path(audio_path).read_bytes()
        info = inspect_audio(data)
        if not info.valid:
            raise InvalidInputError(info.error or "Invalid audio file")

        note_id = new_note_id()
        extension = info.format.extension if info.format else Path(audio_path).suffix
        reference = self.storage.write(data, f"audio-{note_id}{extension}")

        note = Note(
            id=note_id,
            owner_id=owner_id,
            title=title or "",
            audio_reference=str(self.storage.path_for(reference)),
            duration=info.duration,
            embedding_status=EmbeddingStatus.PENDING,
        )
        self.repository.add_note(note)
        logger.info("note_ingested", note_id=note.id, duration=info.duration)

        self.enqueue(note.id, note.audio_reference)  # type: ignore[arg-type]
        return note

    def enqueue(self, note_id: str, audio_reference: str) -> Job:
        return self.pipeline.enqueue(note_id, audio_reference)

    def find_similar(
        self, note_id: str, threshold: float = 0.7, limit: int = 5
    ) -> list[RelatedNote]:
        return self.ranker.find_similar(note_id, threshold=threshold, limit=limit)

    def queue_status(self) -> QueueStatus:
        return self.pipeline.status()

    def delete_note(self, note_id: str) -> None:
        """Delete a note together with its stored blobs."""
        note = self.repository.delete_note(note_id)
        if note.image_reference:
            self.storage.delete(note.image_reference)
        if note.audio_reference:
            self.storage.delete(note.audio_reference)

    def close(self, wait: bool = True) -> None:
        self.pipeline.shutdown(wait=wait)


def build_app(settings: Settings) -> SynapseApp:
    """Construct all services from settings."""
    settings.database_path.parent.mkdir(parents=True, exist_ok=True)

    repository = Repository(settings.database_url, embedding_dim=settings.embedding_dimension)
    storage = LocalBlobStorage(settings.storage_path)

    gemini = GeminiProvider(
        api_key=settings.google_api_key,
        transcription_model=settings.transcription_model,
        embedding_model=settings.embedding_model,
        output_dimensionality=settings.embedding_dimension,
        timeout=settings.request_timeout,
    )

    embedding_service = EmbeddingService(
        provider=build_embedding_provider(settings, gemini=gemini),
        dimension=settings.embedding_dimension,
        cache=EmbeddingCache(settings.embedding_cache_size),
        max_retries=settings.embedding_max_retries,
        base_delay=settings.embedding_base_delay,
    )

    illustration_generator = IllustrationGenerator(
        api_key=settings.google_api_key,
        storage=storage,
        endpoint=settings.image_endpoint,
        timeout=settings.request_timeout,
    )

    transcription_service = TranscriptionService(
        provider=gemini,
        repository=repository,
        illustration_generator=illustration_generator,
        moderation_prefix_length=settings.moderation_prefix_length,
    )

    pipeline = PipelineOrchestrator(
        transcription_service=transcription_service,
        embedding_service=embedding_service,
        repository=repository,
        embedding_workers=settings.embedding_workers,
    )

    return SynapseApp(
        repository=repository,
        storage=storage,
        embedding_service=embedding_service,
        transcription_service=transcription_service,
        pipeline=pipeline,
        ranker=SimilarityRanker(repository, embedding_service),
    )
