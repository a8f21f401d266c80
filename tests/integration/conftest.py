"""Pytest configuration and fixtures for integration tests."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(scope="session")
def short_talking_head_video():
    """Short talking head video (30s, 720p, 1 speaker)."""
    path = FIXTURES_DIR / "short_talking_head.mp4"
    if not path.exists():
        pytest.skip(f"Test fixture not found: {path}")
    return path


@pytest.fixture(scope="session")
def silent_video():
    """Silent video with no audio track (15s, 720p)."""
    path = FIXTURES_DIR / "silent_video.mp4"
    if not path.exists():
        pytest.skip(f"Test fixture not found: {path}")
    return path


@pytest.fixture
def broll_sources() -> list[dict]:
    """B-roll descriptions spanning unrelated topics."""
    return [
        {"id": "office", "metadata": "People working at laptops in a bright open-plan office"},
        {"id": "nature", "metadata": "Drone shot over a pine forest and a mountain lake"},
        {"id": "food", "metadata": "Chef plating pasta in a restaurant kitchen"},
    ]
