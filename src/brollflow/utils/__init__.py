"""Utility functions for BRollFlow."""

from brollflow.utils.hardware import detect_device, get_device_info, whisper_runtime
from brollflow.utils.logging import get_logger, log_step

__all__ = ["detect_device", "get_device_info", "get_logger", "log_step", "whisper_runtime"]
