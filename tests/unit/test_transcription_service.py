"""Unit tests for TranscriptionService."""

from unittest.mock import MagicMock

import pytest

from synapse_notes.errors import (
    AudioNotFoundError,
    EmptyTranscriptError,
    ResourceNotFoundError,
    TranscriptionFailed,
)
from synapse_notes.models.note import EmbeddingStatus
from synapse_notes.services.illustration_generator import IllustrationResult
from synapse_notes.services.transcription_service import (
    TRANSCRIPTION_INSTRUCTION,
    TranscriptionService,
)


@pytest.fixture
def audio_file(temp_dir, wav_bytes):
    """Write a one-second WAV recording."""
    path = temp_dir / "note.wav"
    path.write_bytes(wav_bytes(1))
    return path


@pytest.fixture
def illustrator():
    """Mock illustration generator that succeeds."""
    mock = MagicMock()
    mock.generate.return_value = IllustrationResult(
        success=True, image_reference="image-n-1.png"
    )
    return mock


@pytest.fixture
def service(fake_transcriber, repository, illustrator):
    """Create a TranscriptionService with fake provider and mock illustrator."""
    return TranscriptionService(
        provider=fake_transcriber,
        repository=repository,
        illustration_generator=illustrator,
    )


class TestTranscribe:
    """Tests for transcription and persistence."""

    def test_stores_transcript_and_marks_pending(
        self, service, fake_transcriber, repository, add_note, audio_file
    ):
        """Test that the stripped transcript is stored as pending."""
        note = add_note()
        fake_transcriber.responses[audio_file.read_bytes()] = "  A walk by the river  "

        result = service.transcribe(str(audio_file), note.id)

        assert result == "A walk by the river"
        stored = repository.get_note(note.id)
        assert stored.transcript == "A walk by the river"
        assert stored.embedding_status == EmbeddingStatus.PENDING

    def test_sends_audio_mime_and_instruction(
        self, service, fake_transcriber, add_note, audio_file
    ):
        """Test what is sent to the provider."""
        note = add_note()
        fake_transcriber.responses[audio_file.read_bytes()] = "Some words here"

        service.transcribe(str(audio_file), note.id)

        audio, mime_type, instruction = fake_transcriber.calls[0]
        assert audio == audio_file.read_bytes()
        assert mime_type == "audio/wav"
        assert instruction == TRANSCRIPTION_INSTRUCTION

    def test_missing_audio(self, service, add_note, temp_dir):
        """Test that a missing recording raises AudioNotFoundError."""
        note = add_note()

        with pytest.raises(AudioNotFoundError) as exc_info:
            service.transcribe(str(temp_dir / "nope.mp3"), note.id)

        assert isinstance(exc_info.value, ResourceNotFoundError)

    def test_empty_transcript_fails(self, service, repository, add_note, audio_file):
        """Test that an empty transcript fails the transcription."""
        note = add_note()

        with pytest.raises(TranscriptionFailed) as exc_info:
            service.transcribe(str(audio_file), note.id)

        assert isinstance(exc_info.value.cause, EmptyTranscriptError)
        assert repository.get_note(note.id).transcript is None

    def test_provider_error_is_wrapped(
        self, service, fake_transcriber, add_note, audio_file
    ):
        """Test that provider errors are wrapped in TranscriptionFailed."""
        note = add_note()
        fake_transcriber.responses[audio_file.read_bytes()] = RuntimeError("503 from provider")

        with pytest.raises(TranscriptionFailed) as exc_info:
            service.transcribe(str(audio_file), note.id)

        assert "503 from provider" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestIllustrationStep:
    """Tests for the best-effort illustration step."""

    def test_illustration_reference_persisted(
        self, service, fake_transcriber, illustrator, repository, add_note, audio_file
    ):
        """Test that a generated image is attached to the note."""
        note = add_note()
        fake_transcriber.responses[audio_file.read_bytes()] = "I love hiking and long walks"

        service.transcribe(str(audio_file), note.id)

        illustrator.generate.assert_called_once_with("I love hiking and long walks", note.id)
        assert repository.get_note(note.id).image_reference == "image-n-1.png"

    def test_moderated_prefix_only(
        self, fake_transcriber, repository, illustrator, add_note, audio_file
    ):
        """Test that only a prefix of the transcript becomes the prompt."""
        service = TranscriptionService(
            fake_transcriber, repository, illustrator, moderation_prefix_length=20
        )
        note = add_note()
        fake_transcriber.responses[audio_file.read_bytes()] = "A long walk in the park, " * 10

        service.transcribe(str(audio_file), note.id)

        prompt = illustrator.generate.call_args.args[0]
        assert len(prompt) <= 20

    def test_rejected_by_moderation_skips_illustration(
        self, service, fake_transcriber, illustrator, repository, add_note, audio_file
    ):
        """Test that moderated text is not illustrated."""
        note = add_note()
        fake_transcriber.responses[audio_file.read_bytes()] = "They found a bomb in the station"

        result = service.transcribe(str(audio_file), note.id)

        assert result == "They found a bomb in the station"
        illustrator.generate.assert_not_called()
        assert repository.get_note(note.id).image_reference is None

    def test_failed_illustration_is_not_fatal(
        self, service, fake_transcriber, illustrator, repository, add_note, audio_file
    ):
        """Test that a failed illustration keeps the transcript."""
        note = add_note()
        illustrator.generate.return_value = IllustrationResult(success=False, error="500")
        fake_transcriber.responses[audio_file.read_bytes()] = "Notes about the garden"

        assert service.transcribe(str(audio_file), note.id) == "Notes about the garden"
        assert repository.get_note(note.id).image_reference is None

    def test_raising_illustrator_is_swallowed(
        self, service, fake_transcriber, illustrator, repository, add_note, audio_file
    ):
        """Test that an illustrator exception is logged and dropped."""
        note = add_note()
        illustrator.generate.side_effect = RuntimeError("boom")
        fake_transcriber.responses[audio_file.read_bytes()] = "Notes about the garden"

        assert service.transcribe(str(audio_file), note.id) == "Notes about the garden"
        assert repository.get_note(note.id).transcript == "Notes about the garden"

    def test_no_illustrator_configured(
        self, fake_transcriber, repository, add_note, audio_file
    ):
        """Test transcription without an illustrator."""
        service = TranscriptionService(fake_transcriber, repository)
        note = add_note()
        fake_transcriber.responses[audio_file.read_bytes()] = "Notes about the garden"

        assert service.transcribe(str(audio_file), note.id) == "Notes about the garden"
