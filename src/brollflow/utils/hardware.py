"""Compute device selection for the transcription and embedding models.

sentence-transformers runs on CUDA, Apple MPS or CPU. faster-whisper
(CTranslate2) only has CUDA and CPU backends, so an MPS machine embeds on
the GPU but transcribes on the CPU.
"""

from __future__ import annotations

import logging
import platform
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceInfo:
    """Where each model of a planning run executes."""

    device: str
    name: str
    whisper_device: str
    whisper_compute_type: str
    memory_gb: float | None = None


def whisper_runtime(device: str) -> tuple[str, str]:
    """Map a compute device to faster-whisper's (device, compute_type)."""
    if device == "cuda":
        return "cuda", "float16"
    return "cpu", "int8"


def detect_device() -> str:
    """Pick the device for the embedding model: 'cuda', 'mps', or 'cpu'."""
    try:
        import torch
    except ImportError:
        logger.warning("PyTorch not installed, running models on CPU")
        return "cpu"

    if torch.cuda.is_available():
        logger.info("CUDA detected, transcription and embeddings run on GPU")
        return "cuda"

    if torch.backends.mps.is_available():
        logger.info("Apple Silicon MPS detected, embeddings run on GPU, Whisper on CPU")
        return "mps"

    logger.warning("No GPU acceleration available. Transcription of long A-rolls will be slow.")
    return "cpu"


def get_device_info(device: str | None = None) -> DeviceInfo:
    """Describe the runtimes used for ``device`` (auto-detected if None)."""
    device = device or detect_device()
    whisper_device, compute_type = whisper_runtime(device)

    name = "CPU"
    memory_gb = None
    if device == "cuda":
        try:
            import torch

            properties = torch.cuda.get_device_properties(0)
            name = properties.name
            memory_gb = round(properties.total_memory / (1024**3), 1)
        except (ImportError, RuntimeError, AssertionError) as e:
            logger.warning(f"Failed to query CUDA device: {e}")
            name = "CUDA GPU"
    elif device == "mps":
        name = platform.processor() or "Apple Silicon"

    return DeviceInfo(
        device=device,
        name=name,
        whisper_device=whisper_device,
        whisper_compute_type=compute_type,
        memory_gb=memory_gb,
    )
