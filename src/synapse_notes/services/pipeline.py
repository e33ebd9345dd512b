"""Pipeline orchestrator: a single-consumer FIFO queue of transcription jobs.

Each job is transcribed on one worker thread, strictly in enqueue order.
Embedding generation for a transcribed note is handed to a separate thread
pool so the worker can move on to the next job immediately.
"""

import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from synapse_notes.database.repository import Repository
from synapse_notes.errors import InvalidInputError
from synapse_notes.logger import get_logger
from synapse_notes.models.job import Job, JobStatus
from synapse_notes.models.note import EmbeddingStatus
from synapse_notes.services.embedding_service import EmbeddingService
from synapse_notes.services.transcription_service import TranscriptionService

logger = get_logger(__name__)


@dataclass
class QueueStatus:
    """Snapshot of the orchestrator for observability."""

    queue_length: int
    is_processing: bool
    embeddings_in_flight: int = 0
    failed_embeddings: int = 0


class PipelineOrchestrator:
    """Drives notes through transcription, illustration and embedding.

    A job failure marks the job and the note ``failed`` and the loop moves
    on; nothing is retried automatically. Re-enqueue to try again.
    """

    def __init__(
        self,
        transcription_service: TranscriptionService,
        embedding_service: EmbeddingService,
        repository: Repository,
        embedding_workers: int = 2,
    ):
        self.transcription_service = transcription_service
        self.embedding_service = embedding_service
        self.repository = repository

        self._queue: deque[Job] = deque()
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._is_processing = False
        self._worker: Optional[threading.Thread] = None

        self._executor = ThreadPoolExecutor(
            max_workers=embedding_workers, thread_name_prefix="embedding"
        )
        self._embeddings_in_flight: set[str] = set()
        self._embedding_reruns: set[str] = set()
        self._failed_embeddings = 0
        self._closed = False

    # ==================== Queue ====================

    def enqueue(self, note_id: str, audio_reference: str) -> Job:
        """Queue a note's recording and make sure the worker is running."""
        job = Job(note_id=note_id, audio_reference=str(audio_reference))
        with self._lock:
            if self._closed:
                raise InvalidInputError("Pipeline has been shut down")
            self._queue.append(job)
            queue_length = len(self._queue)

        logger.info("job_enqueued", note_id=note_id, queue_length=queue_length)
        self._start_worker()
        return job

    def _start_worker(self) -> bool:
        """Start the worker loop unless one is already running."""
        with self._lock:
            if self._is_processing or not self._queue:
                return False
            self._is_processing = True
            self._worker = threading.Thread(
                target=self._process_queue, name="transcription-worker", daemon=True
            )
            worker = self._worker
        worker.start()
        return True

    def _process_queue(self) -> None:
        while True:
            with self._lock:
                if not self._queue:
                    self._is_processing = False
                    self._idle.notify_all()
                    return
                job = self._queue.popleft()

            self._run_job(job)

    def _run_job(self, job: Job) -> None:
        job.status = JobStatus.PROCESSING
        logger.info("job_started", note_id=job.note_id)

        try:
            self.transcription_service.transcribe(job.audio_reference, job.note_id)
        except Exception as e:
            job.status = JobStatus.FAILED
            job.error = str(e)
            logger.error("job_failed", note_id=job.note_id, error=job.error)
            try:
                self.repository.update_embedding_status(job.note_id, EmbeddingStatus.FAILED)
            except Exception:
                logger.exception("job_status_update_failed", note_id=job.note_id)
            return

        job.status = JobStatus.COMPLETED
        logger.info("job_completed", note_id=job.note_id)
        self.schedule_embedding(job.note_id)

    # ==================== Embeddings ====================

    def schedule_embedding(self, note_id: str) -> Optional[Future]:
        """Hand embedding generation for a note to the background pool.

        If an embedding for this note is already in flight, a rerun is
        queued behind it and None is returned.
        """
        with self._lock:
            if note_id in self._embeddings_in_flight:
                self._embedding_reruns.add(note_id)
                logger.info("embedding_rerun_queued", note_id=note_id)
                return None
            self._embeddings_in_flight.add(note_id)

        try:
            return self._submit_embedding(note_id)
        except RuntimeError:
            self._release_embedding(note_id)
            raise

    def _submit_embedding(self, note_id: str) -> Future:
        future = self._executor.submit(self._embed_note, note_id)
        future.add_done_callback(lambda f: self._on_embedding_done(note_id, f))
        return future

    def embed_note(self, note_id: str) -> bool:
        """Generate and store an embedding for a note in the calling thread.

        Returns True if the note ended ``completed``.
        """
        with self._lock:
            if note_id in self._embeddings_in_flight:
                logger.warning("embedding_already_in_flight", note_id=note_id)
                return False
            self._embeddings_in_flight.add(note_id)
        try:
            return self._embed_note(note_id)
        except Exception:
            with self._lock:
                self._failed_embeddings += 1
            logger.exception("embedding_task_failed", note_id=note_id)
            return False
        finally:
            self._finish_embedding(note_id)

    def _embed_note(self, note_id: str) -> bool:
        """Embed a note's transcript. Raises after marking the note failed.

        Returns False if the transcript changed meanwhile and the vector
        was discarded.
        """
        note = self.repository.require_note(note_id)
        self.repository.update_embedding_status(note_id, EmbeddingStatus.PROCESSING)
        try:
            if not note.transcript or not note.transcript.strip():
                raise InvalidInputError(f"Note {note_id} has no transcript to embed")
            embedding = self.embedding_service.generate(note.transcript)
            # The transcript may have been replaced while we were embedding
            current = self.repository.require_note(note_id)
            if current.transcript != note.transcript:
                logger.info("embedding_discarded_stale", note_id=note_id)
                return False
            self.repository.store_embedding(note_id, embedding)
        except Exception:
            self.repository.update_embedding_status(note_id, EmbeddingStatus.FAILED)
            raise

        logger.info("embedding_stored", note_id=note_id, dimension=len(embedding))
        return True

    def _on_embedding_done(self, note_id: str, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            with self._lock:
                self._failed_embeddings += 1
            logger.error(
                "embedding_task_failed",
                note_id=note_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
        self._finish_embedding(note_id)

    def _finish_embedding(self, note_id: str) -> None:
        """Release a note's embedding slot, or start its queued rerun."""
        with self._lock:
            rerun = note_id in self._embedding_reruns
            self._embedding_reruns.discard(note_id)
        if rerun:
            # The note stays in flight across the rerun
            try:
                self._submit_embedding(note_id)
                return
            except RuntimeError:
                logger.warning("embedding_rerun_dropped", note_id=note_id)
        self._release_embedding(note_id)

    def _release_embedding(self, note_id: str) -> None:
        with self._lock:
            self._embeddings_in_flight.discard(note_id)
            self._idle.notify_all()

    # ==================== Observability ====================

    def status(self) -> QueueStatus:
        with self._lock:
            return QueueStatus(
                queue_length=len(self._queue),
                is_processing=self._is_processing,
                embeddings_in_flight=len(self._embeddings_in_flight),
                failed_embeddings=self._failed_embeddings,
            )

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until the queue is drained and no embedding is running.

        Returns False if the timeout expired first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._idle:
            while self._queue or self._is_processing or self._embeddings_in_flight:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._idle.wait(remaining)
        return True

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting jobs; optionally wait for queued work to finish."""
        with self._lock:
            self._closed = True
        if wait:
            self.wait_until_idle()
        self._executor.shutdown(wait=wait)
