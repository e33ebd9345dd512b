"""Google Gemini provider for transcription and embeddings."""

from typing import Any, Optional, Sequence

from google import genai
from google.genai import types

from synapse_notes.errors import ProviderNotConfiguredError


class GeminiProvider:
    """Gemini backend implementing both transcription and embedding.

    The client is created lazily so a missing key only fails when the
    provider is actually used.
    """

    DEFAULT_TRANSCRIPTION_MODEL = "gemini-2.0-flash"
    DEFAULT_EMBEDDING_MODEL = "text-embedding-004"

    def __init__(
        self,
        api_key: str,
        transcription_model: Optional[str] = None,
        embedding_model: Optional[str] = None,
        output_dimensionality: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the Gemini provider.

        Args:
            api_key: Google AI API key
            transcription_model: Model for speech-to-text (default: gemini-2.0-flash)
            embedding_model: Model for embeddings (default: text-embedding-004)
            output_dimensionality: Requested embedding length, if the model supports it
            timeout: Per-request timeout in seconds
        """
        self.api_key = api_key
        self.transcription_model = transcription_model or self.DEFAULT_TRANSCRIPTION_MODEL
        self.embedding_model = embedding_model or self.DEFAULT_EMBEDDING_MODEL
        self.output_dimensionality = output_dimensionality
        self.timeout = timeout
        self._client: Any = None

    @property
    def client(self) -> Any:
        """Lazy-load the Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise ProviderNotConfiguredError("Google API key is not configured")
            http_options = None
            if self.timeout is not None:
                # google-genai expects milliseconds
                http_options = types.HttpOptions(timeout=int(self.timeout * 1000))
            self._client = genai.Client(api_key=self.api_key, http_options=http_options)
        return self._client

    def transcribe(self, audio: bytes, mime_type: str, instruction: str) -> str:
        """Send raw audio plus an instruction and return the model's text."""
        response = self.client.models.generate_content(
            model=self.transcription_model,
            contents=[
                types.Part.from_bytes(data=audio, mime_type=mime_type),
                instruction,
            ],
        )
        return (response.text or "").strip()

    def embed(self, text: str) -> Sequence[float]:
        """Embed a single text."""
        config = None
        if self.output_dimensionality is not None:
            config = types.EmbedContentConfig(
                output_dimensionality=self.output_dimensionality
            )
        result = self.client.models.embed_content(
            model=self.embedding_model,
            contents=text,
            config=config,
        )
        if not result.embeddings:
            return []
        return list(result.embeddings[0].values or [])
