"""Exception hierarchy for the note processing pipeline."""

from typing import Optional


class SynapseError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


# ==================== Caller errors ====================


class InvalidInputError(SynapseError):
    """Bad caller-supplied parameters. Never retried."""


class InvalidThresholdError(InvalidInputError):
    """Similarity threshold outside [0, 1]."""

    def __init__(self, threshold: float):
        super().__init__(f"Threshold must be between 0 and 1, got {threshold}")
        self.threshold = threshold


class InvalidLimitError(InvalidInputError):
    """Result limit outside [1, 100]."""

    def __init__(self, limit: int):
        super().__init__(f"Limit must be between 1 and 100, got {limit}")
        self.limit = limit


# ==================== Provider errors ====================


class ProviderNotConfiguredError(SynapseError):
    """A provider was used without the credentials it needs."""


class TransientProviderError(SynapseError):
    """Network or server-side failure from an external capability."""


class EmbeddingGenerationFailed(TransientProviderError):
    """Embedding provider kept failing after all retries."""

    def __init__(self, attempts: int, cause: BaseException):
        super().__init__(
            f"Failed to generate embedding after {attempts} attempts: {cause}",
            cause=cause,
        )
        self.attempts = attempts


class ContractViolationError(SynapseError):
    """Provider answered, but not in the shape we were promised."""


class DimensionMismatchError(ContractViolationError):
    """Embedding vector length differs from the configured dimension."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Expected {expected} dimensions, got {actual}")
        self.expected = expected
        self.actual = actual


# ==================== Missing resources ====================


class ResourceNotFoundError(SynapseError):
    """A referenced resource does not exist."""


class AudioNotFoundError(ResourceNotFoundError):
    """Audio file for a note cannot be read."""

    def __init__(self, audio_reference: str):
        super().__init__(f"Audio file not found: {audio_reference}")
        self.audio_reference = audio_reference


class NoteNotFoundError(ResourceNotFoundError):
    """No note with the given id."""

    def __init__(self, note_id: str):
        super().__init__(f"Note not found: {note_id}")
        self.note_id = note_id


# ==================== Transcription ====================


class EmptyTranscriptError(SynapseError):
    """Speech-to-text returned nothing usable."""

    def __init__(self) -> None:
        super().__init__("Transcription provider returned an empty transcript")


class TranscriptionFailed(SynapseError):
    """Wraps any failure that happened before the transcript was stored."""

    def __init__(self, cause: BaseException):
        super().__init__(f"Transcription failed: {cause}", cause=cause)
