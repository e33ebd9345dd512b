"""Transcription service: audio in, stored transcript out."""

from pathlib import Path
from typing import Optional

from synapse_notes.database.repository import Repository
from synapse_notes.errors import AudioNotFoundError, EmptyTranscriptError, TranscriptionFailed
from synapse_notes.logger import get_logger
from synapse_notes.providers.base import TranscriptionProvider
from synapse_notes.services import content_moderator
from synapse_notes.services.audio_inspector import mime_type_for
from synapse_notes.services.illustration_generator import IllustrationGenerator

logger = get_logger(__name__)

TRANSCRIPTION_INSTRUCTION = (
    "Please transcribe this audio accurately. "
    "Only return the transcript text, nothing else."
)


class TranscriptionService:
    """Transcribes a note's recording and stores the result.

    After the transcript is stored the note is marked ``pending`` for
    embedding, and an illustration is attempted from a moderated prefix of
    the transcript. Illustration problems never fail the transcription.
    """

    def __init__(
        self,
        provider: TranscriptionProvider,
        repository: Repository,
        illustration_generator: Optional[IllustrationGenerator] = None,
        moderation_prefix_length: int = 1000,
    ):
        self.provider = provider
        self.repository = repository
        self.illustration_generator = illustration_generator
        self.moderation_prefix_length = moderation_prefix_length

    def transcribe(self, audio_reference: str, note_id: str) -> str:
        """Transcribe a recording into a note.

        Args:
            audio_reference: Path of the recording
            note_id: Note receiving the transcript

        Returns:
            The stored transcript

        Raises:
            AudioNotFoundError: the recording cannot be read
            TranscriptionFailed: anything else went wrong before storing
        """
        path = Path(audio_reference)
        if not path.is_file():
            raise AudioNotFoundError(audio_reference)

        try:
            audio = path.read_bytes()
        except OSError as e:
            raise AudioNotFoundError(audio_reference) from e

        try:
            transcript = self.provider.transcribe(
                audio, mime_type_for(audio, path), TRANSCRIPTION_INSTRUCTION
            )
            transcript = (transcript or "").strip()
            if not transcript:
                raise EmptyTranscriptError()

            self.repository.update_transcript(note_id, transcript)
        except Exception as e:
            logger.error("transcription_failed", note_id=note_id, error=str(e))
            raise TranscriptionFailed(e) from e

        logger.info("transcript_stored", note_id=note_id, length=len(transcript))

        self._illustrate(note_id, transcript)
        return transcript

    def _illustrate(self, note_id: str, transcript: str) -> None:
        """Best-effort illustration; every failure is logged and dropped."""
        if self.illustration_generator is None:
            return

        try:
            prompt = content_moderator.sanitize(transcript[: self.moderation_prefix_length])
            if prompt is None:
                logger.info("illustration_skipped_by_moderation", note_id=note_id)
                return

            result = self.illustration_generator.generate(prompt, note_id)
            if not result.success:
                logger.warning(
                    "illustration_failed",
                    note_id=note_id,
                    error=result.error,
                    status=result.status_code,
                )
                return

            self.repository.update_image_reference(note_id, result.image_reference)
        except Exception:
            logger.exception("illustration_error", note_id=note_id)
