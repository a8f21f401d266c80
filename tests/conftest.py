"""Pytest configuration and fixtures for BRollFlow tests."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_video_path(temp_dir: Path) -> Path:
    """Create a mock video file for testing.

    Note: This is not a decodable video; stages that read it are mocked.
    """
    video_path = temp_dir / "a_roll.mp4"
    video_path.write_bytes(b"mock video content for testing")
    return video_path


@pytest.fixture
def sample_request(sample_video_path: Path) -> dict:
    """A plan request pointing at the mock local A-roll."""
    return {
        "a_roll": {"path": str(sample_video_path)},
        "b_rolls": [
            {"id": "coffee", "metadata": "Espresso pouring into a cup"},
            {"id": "van", "metadata": "Delivery van in traffic"},
        ],
    }
