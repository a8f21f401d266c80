"""Ingestion stage: A-roll validation, probing, and audio extraction.

This stage handles:
- File format validation
- Duration and stream probing via ffprobe
- Extracting a 16kHz mono WAV for transcription
"""

from __future__ import annotations

import json
import logging
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

SUPPORTED_VIDEO_FORMATS = {".mp4", ".mov", ".avi", ".mkv", ".webm"}
SUPPORTED_AUDIO_FORMATS = {".mp3", ".wav", ".m4a"}
SUPPORTED_FORMATS = SUPPORTED_VIDEO_FORMATS | SUPPORTED_AUDIO_FORMATS

FFMPEG_INSTALL_HINT = (
    "  Ubuntu/Debian: sudo apt install ffmpeg\n"
    "  macOS: brew install ffmpeg\n"
    "  Windows: choco install ffmpeg"
)


@dataclass
class ProbeResult:
    """What ffprobe reports about an A-roll file."""

    duration: float
    format_name: str
    has_video: bool
    has_audio: bool
    audio_channels: int = 0
    audio_sample_rate: int | None = None


class IngestError(Exception):
    """Error during file ingestion."""

    pass


def validate_file(source: Path) -> None:
    """Validate that a file exists and has a supported format.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file format is not supported.
    """
    if not source.exists():
        raise FileNotFoundError(f"Source file not found: {source}")

    suffix = source.suffix.lower()
    if suffix not in SUPPORTED_FORMATS:
        raise ValueError(
            f"Unsupported format: {suffix}. "
            f"Supported formats: {', '.join(sorted(SUPPORTED_FORMATS))}"
        )


def _run_ffprobe(source: Path) -> dict:
    """Run ffprobe and return parsed JSON output.

    Raises:
        IngestError: If ffprobe fails or is not installed.
    """
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(source),
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
    except FileNotFoundError:
        raise IngestError(f"ffprobe not found. Please install FFmpeg:\n{FFMPEG_INSTALL_HINT}")
    except subprocess.TimeoutExpired:
        raise IngestError(f"ffprobe timed out reading: {source}")

    if result.returncode != 0:
        raise IngestError(f"ffprobe failed: {result.stderr}")

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise IngestError(f"Failed to parse ffprobe output: {e}")


def _parse_probe_result(data: dict) -> ProbeResult:
    """Parse ffprobe JSON into a ProbeResult."""
    streams = data.get("streams", [])
    format_info = data.get("format", {})

    video_stream = next((s for s in streams if s.get("codec_type") == "video"), None)
    audio_stream = next((s for s in streams if s.get("codec_type") == "audio"), None)

    # Prefer container duration, fall back to the streams
    duration = 0.0
    for holder in (format_info, video_stream, audio_stream):
        if holder and "duration" in holder:
            duration = float(holder["duration"])
            break

    audio_channels = 0
    audio_sample_rate = None
    if audio_stream:
        audio_channels = audio_stream.get("channels", 0)
        if audio_stream.get("sample_rate"):
            audio_sample_rate = int(audio_stream["sample_rate"])

    # "mov,mp4,m4a,3gp" -> "mov"
    format_name = format_info.get("format_name", "unknown").split(",")[0]

    return ProbeResult(
        duration=duration,
        format_name=format_name,
        has_video=video_stream is not None,
        has_audio=audio_stream is not None,
        audio_channels=audio_channels,
        audio_sample_rate=audio_sample_rate,
    )


def probe_file(source: Path) -> ProbeResult:
    """Validate and probe an A-roll file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file format is not supported.
        IngestError: If probing fails.
    """
    validate_file(source)

    start_time = time.perf_counter()
    result = _parse_probe_result(_run_ffprobe(source))

    elapsed = time.perf_counter() - start_time
    logger.debug(f"Probed {source.name} in {elapsed:.2f}s ({result.duration:.1f}s long)")

    return result


def extract_audio(
    source: Path,
    output_dir: Path,
    sample_rate: int = 16000,
) -> Path:
    """Extract the audio track of ``source`` as a mono WAV.

    16kHz mono is what Whisper models consume natively.

    Args:
        source: Path to the input video/audio file.
        output_dir: Directory to write the extracted audio.
        sample_rate: Output sample rate in Hz.

    Returns:
        Path to the extracted WAV file.

    Raises:
        IngestError: If audio extraction fails or no audio track exists.
    """
    validate_file(source)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"{source.stem}_audio.wav"

    cmd = [
        "ffmpeg",
        "-i", str(source),
        "-vn",
        "-acodec", "pcm_s16le",
        "-ar", str(sample_rate),
        "-ac", "1",
        "-y",
        str(output_path),
    ]

    logger.info(f"Extracting audio from {source.name} -> {output_path.name}")
    start_time = time.perf_counter()

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=300)
    except FileNotFoundError:
        raise IngestError(f"ffmpeg not found. Please install FFmpeg:\n{FFMPEG_INSTALL_HINT}")
    except subprocess.TimeoutExpired:
        raise IngestError(f"Audio extraction timed out for: {source}")

    if result.returncode != 0:
        if "does not contain any stream" in result.stderr.lower():
            raise IngestError(f"No audio track found in: {source}")
        raise IngestError(f"Audio extraction failed: {result.stderr}")

    if not output_path.exists():
        raise IngestError(f"Audio extraction produced no output: {output_path}")

    elapsed = time.perf_counter() - start_time
    logger.info(f"Audio extracted in {elapsed:.2f}s: {output_path}")

    return output_path
