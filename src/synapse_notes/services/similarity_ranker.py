"""Similarity ranker for auto-linking related notes."""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from synapse_notes.database.repository import Repository
from synapse_notes.errors import (
    InvalidLimitError,
    InvalidThresholdError,
    NoteNotFoundError,
    ProviderNotConfiguredError,
)
from synapse_notes.models.note import Note
from synapse_notes.services.embedding_service import EmbeddingService

AUTO_LINK_REASON = "auto-linked by semantic similarity"
SEARCH_REASON = "matched search query"

DEFAULT_THRESHOLD = 0.7
MAX_LIMIT = 100


@dataclass
class RelatedNote:
    """A note related to some target, with its score."""

    note: Note
    similarity_score: float
    reason: str = AUTO_LINK_REASON

    def __str__(self) -> str:
        return f"{self.note.title} ({self.similarity_score:.2f})"


@dataclass
class SimilarityEdge:
    """Undirected auto-link between two notes."""

    note_id: str
    related_note_id: str
    similarity_score: float
    reason: str = AUTO_LINK_REASON


def validate_bounds(threshold: float, limit: int) -> None:
    """Check threshold is in [0, 1] and limit in [1, 100]."""
    if not 0.0 <= threshold <= 1.0:
        raise InvalidThresholdError(threshold)
    if not 1 <= limit <= MAX_LIMIT:
        raise InvalidLimitError(limit)


def cosine_similarity(embedding_a: np.ndarray, embedding_b: np.ndarray) -> float:
    """Cosine similarity, i.e. ``1 - cosine_distance``. Zero vectors score 0."""
    norm_a = np.linalg.norm(embedding_a)
    norm_b = np.linalg.norm(embedding_b)

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(embedding_a, embedding_b) / (norm_a * norm_b))


class SimilarityRanker:
    """Ranks stored notes by cosine similarity of their embeddings.

    Read-only. Candidates without an embedding, or whose vector length
    differs from the target's, are ignored.
    """

    def __init__(
        self,
        repository: Repository,
        embedding_service: Optional[EmbeddingService] = None,
    ):
        """Initialize the ranker.

        Args:
            repository: Source of notes and vectors
            embedding_service: Needed only for free-text search
        """
        self.repository = repository
        self.embedding_service = embedding_service

    def find_similar(
        self,
        note_id: str,
        threshold: float = DEFAULT_THRESHOLD,
        limit: int = 5,
    ) -> list[RelatedNote]:
        """Find notes related to a given note.

        Args:
            note_id: Target note
            threshold: Minimum similarity, in [0, 1]
            limit: Maximum results, in [1, 100]

        Returns:
            Related notes sorted by similarity (descending), ties by note id.
            Empty if the target has no embedding yet.
        """
        validate_bounds(threshold, limit)

        target = self.repository.get_note(note_id)
        if target is None:
            raise NoteNotFoundError(note_id)
        if target.embedding is None:
            return []

        candidates = [
            n for n in self.repository.get_notes_with_embeddings() if n.id != target.id
        ]
        return self._rank(target.embedding, candidates, threshold, limit, AUTO_LINK_REASON)

    def search(
        self,
        query: str,
        threshold: float = DEFAULT_THRESHOLD,
        limit: int = 10,
        owner_id: Optional[str] = None,
    ) -> list[RelatedNote]:
        """Rank notes against a free-text query."""
        validate_bounds(threshold, limit)
        if self.embedding_service is None:
            raise ProviderNotConfiguredError("Semantic search needs an embedding service")

        query_embedding = self.embedding_service.generate(query)
        candidates = self.repository.get_notes_with_embeddings(owner_id=owner_id)
        return self._rank(query_embedding, candidates, threshold, limit, SEARCH_REASON)

    def similarity_graph(
        self, threshold: float = DEFAULT_THRESHOLD, owner_id: Optional[str] = None
    ) -> list[SimilarityEdge]:
        """All auto-link edges at or above threshold, one per note pair."""
        if not 0.0 <= threshold <= 1.0:
            raise InvalidThresholdError(threshold)

        notes = sorted(
            self.repository.get_notes_with_embeddings(owner_id=owner_id),
            key=lambda n: n.id,
        )
        if len(notes) < 2:
            return []

        dims = {len(n.embedding) for n in notes}  # type: ignore[arg-type]
        if len(dims) > 1:
            # Mixed dimensions cannot be stacked; fall back to pairwise
            edges = []
            for i, note_a in enumerate(notes):
                for note_b in notes[i + 1 :]:
                    if len(note_a.embedding) != len(note_b.embedding):  # type: ignore[arg-type]
                        continue
                    score = cosine_similarity(note_a.embedding, note_b.embedding)  # type: ignore[arg-type]
                    if score >= threshold:
                        edges.append(SimilarityEdge(note_a.id, note_b.id, score))
        else:
            matrix = self._similarity_matrix(notes)
            rows, cols = np.triu_indices(len(notes), k=1)
            edges = [
                SimilarityEdge(notes[i].id, notes[j].id, float(matrix[i, j]))
                for i, j in zip(rows, cols)
                if matrix[i, j] >= threshold
            ]

        edges.sort(key=lambda e: (-e.similarity_score, e.note_id, e.related_note_id))
        return edges

    @staticmethod
    def _similarity_matrix(notes: list[Note]) -> np.ndarray:
        embeddings = np.stack([n.embedding for n in notes])  # type: ignore[misc]
        norms = np.linalg.norm(embeddings, axis=1, keepdims=True)
        norms = np.where(norms == 0, 1, norms)
        normalized = embeddings / norms
        return np.dot(normalized, normalized.T)

    @staticmethod
    def _rank(
        target: np.ndarray,
        candidates: list[Note],
        threshold: float,
        limit: int,
        reason: str,
    ) -> list[RelatedNote]:
        related: list[RelatedNote] = []
        for candidate in candidates:
            if candidate.embedding is None or len(candidate.embedding) != len(target):
                continue
            score = cosine_similarity(target, candidate.embedding)
            if score >= threshold:
                related.append(RelatedNote(note=candidate, similarity_score=score, reason=reason))

        related.sort(key=lambda r: (-r.similarity_score, r.note.id))
        return related[:limit]
