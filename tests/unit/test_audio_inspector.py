"""Unit tests for audio format detection and duration estimates."""

from pathlib import Path

from synapse_notes.services.audio_inspector import (
    M4A,
    MP3,
    WAV,
    WEBM,
    detect_format,
    estimate_duration,
    inspect_audio,
    mime_type_for,
)


class TestDetectFormat:
    """Tests for magic-byte format detection."""

    def test_known_headers(self, wav_bytes):
        """Test detection of every supported container."""
        assert detect_format(b"ID3\x04" + b"\x00" * 20) == MP3
        assert detect_format(b"\xff\xfb\x90\x00" + b"\x00" * 20) == MP3
        assert detect_format(wav_bytes(1)) == WAV
        assert detect_format(b"\x00\x00\x00\x20ftypM4A " + b"\x00" * 20) == M4A
        assert detect_format(b"\x1a\x45\xdf\xa3" + b"\x00" * 20) == WEBM

    def test_unknown_header(self):
        """Test that unknown or tiny payloads are not detected."""
        assert detect_format(b"%PDF-1.7 not audio") is None
        assert detect_format(b"ab") is None

    def test_mime_type_falls_back_to_extension(self):
        """Test MIME type fallback from header to extension to default."""
        assert mime_type_for(b"garbage-bytes", Path("memo.webm")) == "audio/webm"
        assert mime_type_for(b"garbage-bytes") == "audio/mpeg"
        assert mime_type_for(b"ID3\x04rest", Path("memo.webm")) == "audio/mpeg"


class TestDuration:
    """Tests for duration estimates."""

    def test_wav_duration_from_header(self, wav_bytes):
        """Test WAV duration read from the header."""
        assert estimate_duration(wav_bytes(3), WAV) == 3

    def test_compressed_estimate(self):
        """Test the bytes-per-second estimate for compressed audio."""
        data = b"ID3" + b"\x00" * (16000 * 5)
        assert estimate_duration(data, MP3) == 5

    def test_truncated_wav_header(self):
        """Test that a truncated WAV header gives zero."""
        assert estimate_duration(b"RIFF\x00\x00", WAV) == 0


class TestInspectAudio:
    """Tests for upload validation."""

    def test_valid_recording(self, wav_bytes):
        """Test a short WAV recording is accepted."""
        info = inspect_audio(wav_bytes(2))

        assert info.valid
        assert info.format == WAV
        assert info.duration == 2
        assert info.error is None

    def test_too_small(self):
        """Test that a tiny file is rejected."""
        info = inspect_audio(b"ID")
        assert not info.valid
        assert "too small" in info.error

    def test_unsupported(self):
        """Test that an unknown format is rejected."""
        info = inspect_audio(b"plain text, not audio")
        assert not info.valid
        assert "Unsupported" in info.error

    def test_too_long(self):
        """Test that recordings over ten minutes are rejected."""
        data = b"ID3" + b"\x00" * (16000 * 601)

        info = inspect_audio(data)

        assert not info.valid
        assert info.duration == 601
        assert "10 minutes" in info.error

    def test_custom_limit(self, wav_bytes):
        """Test a custom maximum duration."""
        assert not inspect_audio(wav_bytes(3), max_duration=2).valid
