"""Local directory blob storage for recordings and illustrations."""

import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from synapse_notes.logger import get_logger

logger = get_logger(__name__)

_IMAGE_NAME_RE = re.compile(r"^image-(?P<note_id>[A-Za-z0-9-]+)-(?P<timestamp>\d+)\.png$")


def image_filename(note_id: str, created_at: Optional[datetime] = None) -> str:
    """Filename for a note's illustration: ``image-{note_id}-{epoch_ms}.png``."""
    created_at = created_at or datetime.now()
    return f"image-{note_id}-{int(created_at.timestamp() * 1000)}.png"


def parse_image_filename(filename: str) -> Optional[tuple[str, int]]:
    """Recover ``(note_id, epoch_ms)`` from an illustration filename.

    Used to find the note (and so the owner) an image belongs to.
    Returns None for anything that is not an illustration name.
    """
    match = _IMAGE_NAME_RE.match(Path(filename).name)
    if not match or Path(filename).name != filename:
        return None
    return match.group("note_id"), int(match.group("timestamp"))


class LocalBlobStorage:
    """Stores blobs as flat files under one root directory."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def path_for(self, reference: str) -> Path:
        """Absolute path of a stored blob.

        Only the final path component is used, so references cannot
        escape the storage root.
        """
        return (self.root / Path(reference).name).resolve()

    def write(self, data: bytes, filename: str) -> str:
        """Write ``data`` and return its reference."""
        reference = Path(filename).name
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.path_for(reference)
        path.write_bytes(data)
        logger.info("blob_written", reference=reference, size=len(data))
        return reference

    def read(self, reference: str) -> bytes:
        return self.path_for(reference).read_bytes()

    def exists(self, reference: str) -> bool:
        return self.path_for(reference).is_file()

    def delete(self, reference: str) -> bool:
        """Remove a blob. Returns False if it was already gone."""
        path = self.path_for(reference)
        if not path.is_file():
            return False
        path.unlink()
        logger.info("blob_deleted", reference=reference)
        return True
