"""Transcription stage: A-roll speech to timestamped segments.

Uses faster-whisper. The model is lazy-loaded and cached per
(size, device) so repeated planning runs do not reload it.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from brollflow.models.schema import TranscriptSegment
from brollflow.utils.hardware import whisper_runtime

if TYPE_CHECKING:
    from faster_whisper import WhisperModel

logger = logging.getLogger(__name__)

_whisper_model: WhisperModel | None = None
_whisper_model_size: str | None = None
_whisper_device: str | None = None
_load_lock = threading.Lock()


class TranscriptionError(Exception):
    """Error during transcription."""

    pass


@dataclass
class TranscriptionResult:
    """Segments of a transcribed A-roll plus what Whisper detected."""

    segments: list[TranscriptSegment] = field(default_factory=list)
    duration_sec: float = 0.0
    language: str = "en"

    @property
    def full_text(self) -> str:
        """Get the full transcript as a single string."""
        return " ".join(seg.text for seg in self.segments)


def _load_whisper_model(model_size: str = "small", device: str = "cpu") -> WhisperModel:
    """Lazy-load the Whisper model.

    Concurrent first calls wait on one lock, so the model loads once.
    """
    global _whisper_model, _whisper_model_size, _whisper_device

    with _load_lock:
        if (
            _whisper_model is not None
            and _whisper_model_size == model_size
            and _whisper_device == device
        ):
            return _whisper_model

        start_time = time.perf_counter()
        logger.info(f"Loading Whisper model '{model_size}' on {device}...")

        try:
            from faster_whisper import WhisperModel
        except ImportError as e:
            raise TranscriptionError(
                f"Failed to import faster-whisper: {e}\n"
                "Install with: pip install faster-whisper"
            )

        fw_device, compute_type = whisper_runtime(device)

        try:
            _whisper_model = WhisperModel(model_size, device=fw_device, compute_type=compute_type)
            _whisper_model_size = model_size
            _whisper_device = device
        except Exception as e:
            raise TranscriptionError(f"Failed to load Whisper model: {e}") from e

        elapsed = time.perf_counter() - start_time
        logger.info(
            f"Whisper model loaded in {elapsed:.2f}s "
            f"(size={model_size}, device={fw_device}, compute_type={compute_type})"
        )
        return _whisper_model


def transcribe(
    audio_path: Path,
    model_size: str = "small",
    device: str = "cpu",
    language: str | None = None,
) -> TranscriptionResult:
    """Transcribe an audio file into timestamped segments.

    Segments whose end does not come after their start are dropped.

    Args:
        audio_path: Path to the audio file (WAV preferred, 16kHz mono).
        model_size: Whisper model size (tiny, base, small, medium, large-v3).
        device: Compute device (cuda, mps, cpu).
        language: Force language (None for auto-detect).

    Returns:
        TranscriptionResult with segments and the audio duration.

    Raises:
        FileNotFoundError: If the audio file doesn't exist.
        TranscriptionError: If transcription fails.
    """
    if not audio_path.exists():
        raise FileNotFoundError(f"Audio file not found: {audio_path}")

    model = _load_whisper_model(model_size, device)

    logger.info(f"Transcribing {audio_path.name}...")
    start_time = time.perf_counter()

    try:
        segments_iter, info = model.transcribe(
            str(audio_path),
            language=language,
            vad_filter=True,
            vad_parameters=dict(min_silence_duration_ms=500),
        )

        segments: list[TranscriptSegment] = []
        for segment in segments_iter:
            if segment.end <= segment.start:
                logger.debug(f"Dropping empty segment at {segment.start:.2f}s")
                continue
            segments.append(
                TranscriptSegment(
                    start_sec=segment.start,
                    end_sec=segment.end,
                    text=segment.text.strip(),
                )
            )
    except Exception as e:
        raise TranscriptionError(f"Transcription failed: {e}") from e

    duration = getattr(info, "duration", 0.0) or 0.0
    elapsed = time.perf_counter() - start_time
    rtf = elapsed / duration if duration > 0 else 0
    logger.info(
        f"Transcription complete: {len(segments)} segments in {elapsed:.2f}s "
        f"(RTF: {rtf:.2f}x, lang: {info.language})"
    )

    return TranscriptionResult(
        segments=segments,
        duration_sec=duration,
        language=info.language,
    )
