"""Repository for note persistence."""

from datetime import datetime
from typing import Optional

import numpy as np
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from synapse_notes.database.schema import ManualLinkRecord, NoteRecord, init_database
from synapse_notes.errors import (
    DimensionMismatchError,
    InvalidInputError,
    NoteNotFoundError,
)
from synapse_notes.models.note import EmbeddingStatus, ManualLink, Note


class Repository:
    """Repository for managing notes, their vectors and links.

    Keeps the invariant that a note has an embedding if and only if its
    embedding status is ``completed``.
    """

    def __init__(self, database_url: str, embedding_dim: Optional[int] = None):
        """Initialize repository with database connection.

        Args:
            database_url: SQLAlchemy URL of the note database
            embedding_dim: If set, vectors of any other length are rejected
        """
        self.session_factory = init_database(database_url)
        self.embedding_dim = embedding_dim

    def _get_session(self) -> Session:
        """Get a new database session."""
        return self.session_factory()

    def _get_record(self, session: Session, note_id: str) -> NoteRecord:
        record = session.get(NoteRecord, note_id)
        if record is None:
            raise NoteNotFoundError(note_id)
        return record

    # ==================== Note Operations ====================

    def add_note(self, note: Note) -> Note:
        """Add a new note to the database."""
        if note.embedding is not None and note.embedding_status != EmbeddingStatus.COMPLETED:
            raise InvalidInputError("Only completed notes may carry an embedding")
        if note.embedding is not None:
            self._check_dimension(note.embedding)

        with self._get_session() as session:
            record = NoteRecord(
                id=note.id,
                owner_id=note.owner_id,
                title=note.title,
                content=note.content,
                audio_reference=note.audio_reference,
                duration=note.duration,
                transcript=note.transcript,
                embedding=self._serialize_embedding(note.embedding),
                embedding_status=note.embedding_status,
                image_reference=note.image_reference,
                created_at=note.created_at,
                updated_at=note.updated_at,
            )
            session.add(record)
            session.commit()
            return note

    def get_note(self, note_id: str) -> Optional[Note]:
        """Get a note by its ID."""
        with self._get_session() as session:
            record = session.get(NoteRecord, note_id)
            if record:
                return self._record_to_note(record)
            return None

    def require_note(self, note_id: str) -> Note:
        """Get a note by its ID, raising NoteNotFoundError if missing."""
        note = self.get_note(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    def get_all_notes(self, owner_id: Optional[str] = None) -> list[Note]:
        """Get all notes, optionally only those of one owner."""
        with self._get_session() as session:
            stmt = select(NoteRecord)
            if owner_id is not None:
                stmt = stmt.where(NoteRecord.owner_id == owner_id)
            records = session.scalars(stmt.order_by(NoteRecord.created_at)).all()
            return [self._record_to_note(r) for r in records]

    def get_notes_with_embeddings(self, owner_id: Optional[str] = None) -> list[Note]:
        """Get every note that currently has a vector."""
        with self._get_session() as session:
            stmt = select(NoteRecord).where(NoteRecord.embedding.is_not(None))
            if owner_id is not None:
                stmt = stmt.where(NoteRecord.owner_id == owner_id)
            records = session.scalars(stmt).all()
            return [self._record_to_note(r) for r in records]

    def get_notes_by_status(self, status: EmbeddingStatus) -> list[Note]:
        """Get all notes with a specific embedding status."""
        with self._get_session() as session:
            stmt = select(NoteRecord).where(NoteRecord.embedding_status == status)
            records = session.scalars(stmt).all()
            return [self._record_to_note(r) for r in records]

    def delete_note(self, note_id: str) -> Note:
        """Delete a note and its links. Returns the deleted note."""
        with self._get_session() as session:
            record = self._get_record(session, note_id)
            note = self._record_to_note(record)
            links = select(ManualLinkRecord).where(
                or_(
                    ManualLinkRecord.source_note_id == note_id,
                    ManualLinkRecord.target_note_id == note_id,
                )
            )
            for link in session.scalars(links).all():
                session.delete(link)
            session.delete(record)
            session.commit()
            return note

    # ==================== Pipeline Updates ====================

    def update_transcript(self, note_id: str, transcript: str) -> None:
        """Store a transcript and mark the note ready for embedding.

        Any previous vector described the old text, so it is dropped.
        """
        with self._get_session() as session:
            record = self._get_record(session, note_id)
            record.transcript = transcript
            record.embedding = None
            record.embedding_status = EmbeddingStatus.PENDING
            record.updated_at = datetime.utcnow()
            session.commit()

    def update_embedding_status(self, note_id: str, status: EmbeddingStatus) -> None:
        """Move a note to a non-completed status, clearing its vector.

        ``completed`` is only reachable through store_embedding.
        """
        status = EmbeddingStatus(status)
        if status == EmbeddingStatus.COMPLETED:
            raise InvalidInputError("Use store_embedding to complete a note")

        with self._get_session() as session:
            record = self._get_record(session, note_id)
            record.embedding_status = status
            record.embedding = None
            record.updated_at = datetime.utcnow()
            session.commit()

    def store_embedding(self, note_id: str, embedding: np.ndarray) -> None:
        """Store a vector and mark the note completed."""
        self._check_dimension(embedding)

        with self._get_session() as session:
            record = self._get_record(session, note_id)
            record.embedding = self._serialize_embedding(embedding)
            record.embedding_status = EmbeddingStatus.COMPLETED
            record.updated_at = datetime.utcnow()
            session.commit()

    def update_image_reference(self, note_id: str, image_reference: Optional[str]) -> None:
        """Attach (or clear) a generated illustration."""
        with self._get_session() as session:
            record = self._get_record(session, note_id)
            record.image_reference = image_reference
            record.updated_at = datetime.utcnow()
            session.commit()

    # ==================== Manual Links ====================

    def add_manual_link(self, source_note_id: str, target_note_id: str) -> ManualLink:
        """Create a user link between two existing notes."""
        if source_note_id == target_note_id:
            raise InvalidInputError("A note cannot be linked to itself")

        with self._get_session() as session:
            self._get_record(session, source_note_id)
            self._get_record(session, target_note_id)

            record = ManualLinkRecord(
                source_note_id=source_note_id,
                target_note_id=target_note_id,
            )
            session.add(record)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise InvalidInputError(
                    f"Notes {source_note_id} and {target_note_id} are already linked"
                ) from e

            return ManualLink(
                id=record.id,
                source_note_id=record.source_note_id,
                target_note_id=record.target_note_id,
                created_at=record.created_at,
            )

    def get_manual_links(self, note_id: str) -> list[ManualLink]:
        """Get every manual link touching a note, in either direction."""
        with self._get_session() as session:
            stmt = (
                select(ManualLinkRecord)
                .where(
                    or_(
                        ManualLinkRecord.source_note_id == note_id,
                        ManualLinkRecord.target_note_id == note_id,
                    )
                )
                .order_by(ManualLinkRecord.created_at)
            )
            return [
                ManualLink(
                    id=r.id,
                    source_note_id=r.source_note_id,
                    target_note_id=r.target_note_id,
                    created_at=r.created_at,
                )
                for r in session.scalars(stmt).all()
            ]

    # ==================== Statistics ====================

    def get_stats(self) -> dict:
        """Get database statistics."""
        with self._get_session() as session:
            stats = {"total_notes": session.query(NoteRecord).count()}
            for status in EmbeddingStatus:
                stats[f"{status.value}_notes"] = (
                    session.query(NoteRecord)
                    .filter(NoteRecord.embedding_status == status)
                    .count()
                )
            stats["illustrated_notes"] = (
                session.query(NoteRecord)
                .filter(NoteRecord.image_reference.is_not(None))
                .count()
            )
            stats["manual_links"] = session.query(ManualLinkRecord).count()
            return stats

    # ==================== Helper Methods ====================

    def _check_dimension(self, embedding: np.ndarray) -> None:
        if self.embedding_dim is not None and len(embedding) != self.embedding_dim:
            raise DimensionMismatchError(self.embedding_dim, len(embedding))

    def _record_to_note(self, record: NoteRecord) -> Note:
        """Convert database record to Note model."""
        return Note(
            id=record.id,
            owner_id=record.owner_id,
            title=record.title,
            content=record.content,
            audio_reference=record.audio_reference,
            duration=record.duration,
            transcript=record.transcript,
            embedding=self._deserialize_embedding(record.embedding),
            embedding_status=EmbeddingStatus(
                record.embedding_status.value
                if hasattr(record.embedding_status, "value")
                else record.embedding_status
            ),
            image_reference=record.image_reference,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    @staticmethod
    def _serialize_embedding(embedding: Optional[np.ndarray]) -> Optional[bytes]:
        """Serialize numpy array to bytes for storage."""
        if embedding is None:
            return None
        return np.asarray(embedding, dtype=np.float32).tobytes()

    @staticmethod
    def _deserialize_embedding(data: Optional[bytes]) -> Optional[np.ndarray]:
        """Deserialize bytes to numpy array."""
        if data is None:
            return None
        return np.frombuffer(data, dtype=np.float32)
