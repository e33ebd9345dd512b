"""Embedding service for generating note embeddings."""

import hashlib
import time
from typing import Callable, Optional

import numpy as np
from tenacity import RetryCallState, RetryError, Retrying, stop_after_attempt, wait_exponential

from synapse_notes.errors import (
    DimensionMismatchError,
    EmbeddingGenerationFailed,
    InvalidInputError,
)
from synapse_notes.logger import get_logger
from synapse_notes.providers.base import EmbeddingProvider
from synapse_notes.services.embedding_cache import EmbeddingCache

logger = get_logger(__name__)


def fingerprint(text: str) -> str:
    """SHA-256 digest of the exact text, used as the cache key."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class EmbeddingService:
    """Service for turning text into fixed-length vectors.

    Wraps an embedding provider with input validation, an LRU cache and
    capped exponential backoff. Before attempt ``n`` (n >= 2) it sleeps
    ``base_delay * 2 ** (n - 2)`` seconds, so three attempts wait 1x then 2x
    the base delay.
    """

    MAX_RETRIES = 3
    BASE_DELAY = 1.0

    def __init__(
        self,
        provider: EmbeddingProvider,
        dimension: int,
        cache: Optional[EmbeddingCache] = None,
        max_retries: int = MAX_RETRIES,
        base_delay: float = BASE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the embedding service.

        Args:
            provider: Backend that computes raw vectors
            dimension: Exact vector length the provider must return
            cache: Cache to use (default: a new 1000-entry cache)
            max_retries: Total provider attempts per cache miss
            base_delay: Backoff base in seconds
            sleep: Sleep function, replaceable in tests
        """
        self.provider = provider
        self.dimension = dimension
        self.cache = cache if cache is not None else EmbeddingCache()
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep

    def generate(self, text: str) -> np.ndarray:
        """Generate an embedding for a single text.

        Args:
            text: Text to embed; must be non-empty after trimming

        Returns:
            float32 numpy array of length ``dimension``

        Raises:
            InvalidInputError: text is empty
            EmbeddingGenerationFailed: every attempt failed
            DimensionMismatchError: provider returned the wrong length
        """
        if not text or not text.strip():
            raise InvalidInputError("Text cannot be empty")

        key = fingerprint(text)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("embedding_cache_hit", fingerprint=key[:12])
            return cached.copy()

        raw = self._call_provider(text)

        embedding = np.asarray(raw, dtype=np.float32).reshape(-1)
        if embedding.shape[0] != self.dimension:
            logger.error(
                "embedding_dimension_mismatch",
                expected=self.dimension,
                actual=embedding.shape[0],
            )
            raise DimensionMismatchError(self.dimension, embedding.shape[0])

        # Cached arrays are never handed out
        self.cache.set(key, embedding.copy())
        return embedding

    def _call_provider(self, text: str):
        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.base_delay, exp_base=2, min=0),
            sleep=self._sleep,
            before_sleep=self._log_retry,
        )
        try:
            return retrying(self.provider.embed, text)
        except RetryError as e:
            cause = e.last_attempt.exception()
            logger.error(
                "embedding_generation_failed",
                attempts=self.max_retries,
                error=str(cause),
            )
            raise EmbeddingGenerationFailed(self.max_retries, cause) from cause

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            "embedding_attempt_failed",
            attempt=retry_state.attempt_number,
            retry_in=delay,
            error=str(exc),
        )

    def clear_cache(self) -> None:
        """Drop every cached vector."""
        self.cache.clear()

    @property
    def cache_size(self) -> int:
        """Number of cached vectors."""
        return self.cache.size()
