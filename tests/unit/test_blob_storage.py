"""Unit tests for LocalBlobStorage and illustration filenames."""

from datetime import datetime

from synapse_notes.services.blob_storage import image_filename, parse_image_filename


class TestImageFilenames:
    """Tests for illustration filename encoding."""

    def test_round_trip_uuid_note_id(self):
        """Test that a UUID note id survives encoding and parsing."""
        note_id = "3f2b8c1e-9a4d-4e2b-8f1a-0c6d5e4b3a21"
        filename = image_filename(note_id, datetime(2026, 1, 5, 12, 0, 0))

        parsed = parse_image_filename(filename)

        assert filename.startswith(f"image-{note_id}-")
        assert filename.endswith(".png")
        assert parsed == (note_id, int(datetime(2026, 1, 5, 12, 0, 0).timestamp() * 1000))

    def test_rejects_other_names(self):
        """Test that non-illustration names are not parsed."""
        assert parse_image_filename("audio-123.mp3") is None
        assert parse_image_filename("image-abc.png") is None
        assert parse_image_filename("../image-abc-123.png") is None


class TestLocalBlobStorage:
    """Tests for the local directory store."""

    def test_write_read_delete(self, storage):
        """Test writing, reading and deleting a blob."""
        reference = storage.write(b"data", "blob.bin")

        assert reference == "blob.bin"
        assert storage.exists(reference)
        assert storage.read(reference) == b"data"
        assert storage.delete(reference) is True
        assert not storage.exists(reference)
        assert storage.delete(reference) is False

    def test_references_stay_inside_root(self, storage):
        """Test that path components in references are ignored."""
        reference = storage.write(b"data", "../../escape.bin")

        assert reference == "escape.bin"
        assert storage.path_for(reference).parent == storage.root.resolve()
