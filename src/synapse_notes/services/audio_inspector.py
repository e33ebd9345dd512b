"""Audio format detection and best-effort duration estimates."""

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

MAX_DURATION_SECONDS = 600
DEFAULT_MIME_TYPE = "audio/mpeg"

# ~128 kbps, used for every compressed format
_COMPRESSED_BYTES_PER_SECOND = 16000


@dataclass(frozen=True)
class AudioFormat:
    name: str
    mime_type: str
    extension: str


MP3 = AudioFormat("MP3", "audio/mpeg", ".mp3")
WAV = AudioFormat("WAV", "audio/wav", ".wav")
M4A = AudioFormat("M4A", "audio/mp4", ".m4a")
WEBM = AudioFormat("WEBM", "audio/webm", ".webm")

_MAGIC_BYTES: tuple[tuple[bytes, AudioFormat], ...] = (
    (b"ID3", MP3),
    (b"\xff\xfb", MP3),
    (b"\xff\xfa", MP3),
    (b"\xff\xf3", MP3),
    (b"\xff\xf2", MP3),
    (b"RIFF", WAV),
    (b"\x1a\x45\xdf\xa3", WEBM),
)

_EXTENSIONS = {fmt.extension: fmt for fmt in (MP3, WAV, M4A, WEBM)}


@dataclass
class AudioInfo:
    """Validation outcome for an uploaded recording."""

    valid: bool
    format: Optional[AudioFormat] = None
    duration: int = 0
    error: Optional[str] = None


def detect_format(data: bytes) -> Optional[AudioFormat]:
    """Identify the container from its leading bytes."""
    if len(data) < 4:
        return None
    # MP4 family: 4-byte box size, then "ftyp" and a brand such as "M4A "
    if data[4:8] == b"ftyp" and data[8:11] in (b"M4A", b"mp4", b"iso"):
        return M4A
    for magic, fmt in _MAGIC_BYTES:
        if data.startswith(magic):
            return fmt
    return None


def mime_type_for(data: bytes, path: Optional[Path] = None) -> str:
    """MIME type to send with the audio, falling back to the extension."""
    fmt = detect_format(data)
    if fmt is None and path is not None:
        fmt = _EXTENSIONS.get(path.suffix.lower())
    return fmt.mime_type if fmt else DEFAULT_MIME_TYPE


def _wav_duration(data: bytes) -> int:
    """Read the canonical 44-byte WAV header; 0 if it does not parse."""
    if len(data) < 44:
        return 0
    channels, sample_rate = struct.unpack_from("<HI", data, 22)
    (bits_per_sample,) = struct.unpack_from("<H", data, 34)
    (data_size,) = struct.unpack_from("<I", data, 40)
    if not sample_rate or not bits_per_sample or not channels:
        return 0
    bytes_per_second = sample_rate * channels * bits_per_sample / 8
    return int(data_size // bytes_per_second)


def estimate_duration(data: bytes, fmt: AudioFormat) -> int:
    """Rough duration in whole seconds. Not a codec parser."""
    if fmt == WAV:
        return _wav_duration(data)
    return len(data) // _COMPRESSED_BYTES_PER_SECOND


def inspect_audio(data: bytes, max_duration: int = MAX_DURATION_SECONDS) -> AudioInfo:
    """Validate format and duration of an uploaded recording."""
    if len(data) < 4:
        return AudioInfo(valid=False, error="File is too small to be a valid audio file")

    fmt = detect_format(data)
    if fmt is None:
        return AudioInfo(
            valid=False,
            error="Unsupported audio format. Supported formats: MP3, WAV, M4A, WEBM",
        )

    duration = estimate_duration(data, fmt)
    if duration > max_duration:
        return AudioInfo(
            valid=False,
            format=fmt,
            duration=duration,
            error=(
                "Audio duration exceeds maximum allowed duration of "
                f"{max_duration // 60} minutes"
            ),
        )
    return AudioInfo(valid=True, format=fmt, duration=duration)
