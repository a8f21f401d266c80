"""Logging utilities for BRollFlow."""

from __future__ import annotations

import logging
import sys
from typing import TextIO


def get_logger(
    name: str = "brollflow",
    level: int = logging.INFO,
    stream: TextIO = sys.stderr,
) -> logging.Logger:
    """Get a configured logger for BRollFlow.

    Args:
        name: Logger name.
        level: Logging level.
        stream: Output stream.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(stream)
        handler.setLevel(level)

        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


def log_step(logger: logging.Logger, index: int, total: int, message: str) -> None:
    """Log the start of a numbered pipeline step, e.g. ``[Step 2/6] Transcribing``."""
    logger.info(f"[Step {index}/{total}] {message}")
