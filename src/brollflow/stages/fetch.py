"""Fetch stage: download source videos over HTTP.

Remote A-rolls are streamed to disk with httpx so large files never
sit fully in memory.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from urllib.parse import urlparse

import httpx

from brollflow.models.schema import MediaSource
from brollflow.stages.ingest import SUPPORTED_FORMATS

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = ".mp4"
CHUNK_SIZE = 1024 * 1024


class FetchError(Exception):
    """Error while downloading a video."""

    pass


def _suffix_for(url: str) -> str:
    """File suffix to save a download under, taken from the URL path when known."""
    suffix = Path(urlparse(url).path).suffix.lower()
    return suffix if suffix in SUPPORTED_FORMATS else DEFAULT_SUFFIX


def download_video(
    url: str,
    output_dir: Path,
    stem: str = "a_roll",
    timeout: float = 120.0,
    client: httpx.Client | None = None,
) -> Path:
    """Download a video to ``output_dir``.

    Args:
        url: HTTP(S) URL of the video.
        output_dir: Directory to write the file into.
        stem: File name without suffix.
        timeout: Request timeout in seconds.
        client: Optional httpx client (a fresh one is created otherwise).

    Returns:
        Path to the downloaded file.

    Raises:
        FetchError: If the request fails or returns a non-2xx status.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"{stem}{_suffix_for(url)}"

    logger.info(f"Downloading video from: {url}")
    start_time = time.perf_counter()

    owns_client = client is None
    http = client or httpx.Client(timeout=timeout, follow_redirects=True)

    try:
        with http.stream("GET", url) as response:
            if response.is_error:
                raise FetchError(
                    f"Failed to download video: {response.status_code} {response.reason_phrase}"
                )
            size = 0
            with output_path.open("wb") as fh:
                for chunk in response.iter_bytes(CHUNK_SIZE):
                    fh.write(chunk)
                    size += len(chunk)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise FetchError(f"Failed to download video from {url}: {e}") from e
    finally:
        if owns_client:
            http.close()

    if size == 0:
        raise FetchError(f"Downloaded video is empty: {url}")

    elapsed = time.perf_counter() - start_time
    logger.info(f"Downloaded {size} bytes in {elapsed:.2f}s -> {output_path.name}")

    return output_path


def resolve_source(
    source: MediaSource,
    output_dir: Path,
    stem: str = "a_roll",
    timeout: float = 120.0,
    client: httpx.Client | None = None,
) -> Path:
    """Return a local path for ``source``, downloading it if it is remote.

    Raises:
        FileNotFoundError: If a local path does not exist.
        FetchError: If the download fails.
    """
    if source.path:
        path = Path(source.path)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {path}")
        return path

    return download_video(source.url, output_dir, stem=stem, timeout=timeout, client=client)
