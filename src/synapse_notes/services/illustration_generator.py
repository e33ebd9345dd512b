"""Illustration generator using the Imagen predict API."""

import base64
import binascii
from dataclasses import dataclass
from typing import Optional

import requests  # type: ignore[import-untyped]

from synapse_notes.logger import get_logger
from synapse_notes.services.blob_storage import LocalBlobStorage, image_filename

logger = get_logger(__name__)

# Applied to every prompt; callers cannot change it.
SAFE_PROMPT_TEMPLATE = (
    "A purely abstract, artistic visualization of: {prompt}. "
    "Digital art style, neutral, no text, no faces."
)


@dataclass
class IllustrationResult:
    """Result of an illustration request."""

    success: bool
    image_reference: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None


def build_safe_prompt(prompt: str) -> str:
    """Wrap an already-sanitized prompt in the fixed neutral framing."""
    return SAFE_PROMPT_TEMPLATE.format(prompt=prompt)


class IllustrationGenerator:
    """Generates an abstract image for a note and stores it.

    Never raises for expected failures (missing key, HTTP errors, empty
    responses, storage errors); they come back as a failed result.
    """

    DEFAULT_ENDPOINT = (
        "https://generativelanguage.googleapis.com/v1beta/models/"
        "imagen-3.0-generate-002:predict"
    )

    def __init__(
        self,
        api_key: str,
        storage: LocalBlobStorage,
        endpoint: Optional[str] = None,
        timeout: float = 60.0,
    ):
        """Initialize the generator.

        Args:
            api_key: Google AI API key
            storage: Where generated images are written
            endpoint: Imagen predict URL
            timeout: HTTP timeout in seconds
        """
        self.api_key = api_key
        self.storage = storage
        self.endpoint = endpoint or self.DEFAULT_ENDPOINT
        self.timeout = timeout

    def generate(self, prompt: str, note_id: str) -> IllustrationResult:
        """Generate an illustration for a note.

        Args:
            prompt: Sanitized text to visualize
            note_id: Note the image belongs to

        Returns:
            IllustrationResult with the stored filename on success
        """
        if not self.api_key:
            return IllustrationResult(
                success=False, error="Google API key is required for image generation"
            )

        logger.info("illustration_requested", note_id=note_id, prompt=prompt[:50])

        payload = {
            "instances": [{"prompt": build_safe_prompt(prompt)}],
            "parameters": {"sampleCount": 1, "aspectRatio": "1:1"},
        }
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

        try:
            response = requests.post(
                self.endpoint, json=payload, headers=headers, timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            return IllustrationResult(success=False, error="Image API request timed out")
        except requests.exceptions.RequestException as e:
            return IllustrationResult(success=False, error=f"Image API request failed: {e}")

        if not response.ok:
            logger.warning(
                "illustration_api_error",
                note_id=note_id,
                status=response.status_code,
                body=response.text[:500],
            )
            return IllustrationResult(
                success=False,
                error=f"API returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            return IllustrationResult(
                success=False,
                error="Image API returned invalid JSON",
                status_code=response.status_code,
            )

        predictions = (data or {}).get("predictions") or []
        if not predictions:
            return IllustrationResult(
                success=False,
                error="No image generated from API",
                status_code=response.status_code,
            )

        encoded = predictions[0].get("bytesBase64Encoded")
        if not encoded:
            return IllustrationResult(
                success=False,
                error="Image data not found in response",
                status_code=response.status_code,
            )

        try:
            image = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            return IllustrationResult(success=False, error=f"Invalid image payload: {e}")

        try:
            reference = self.storage.write(image, image_filename(note_id))
        except OSError as e:
            logger.error("illustration_store_failed", note_id=note_id, error=str(e))
            return IllustrationResult(success=False, error=f"Failed to store image: {e}")

        logger.info("illustration_stored", note_id=note_id, reference=reference)
        return IllustrationResult(
            success=True, image_reference=reference, status_code=response.status_code
        )
