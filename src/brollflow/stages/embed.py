"""Embedding stage: text embeddings for transcript segments and B-roll metadata.

Uses sentence-transformers. Segments and B-roll descriptions are embedded
with the same model so their vectors share one dimensionality.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from brollflow.models.schema import BRollCandidate, BRollSource, TranscriptSegment

if TYPE_CHECKING:
    from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)

_text_model: SentenceTransformer | None = None
_text_model_name: str | None = None
_text_model_device: str | None = None
_load_lock = threading.Lock()


class EmbeddingError(Exception):
    """Error while computing text embeddings."""

    pass


def _load_text_model(model_name: str = "all-MiniLM-L6-v2", device: str = "cpu") -> SentenceTransformer:
    """Lazy-load the sentence-transformers model, once per (name, device)."""
    global _text_model, _text_model_name, _text_model_device

    with _load_lock:
        if (
            _text_model is not None
            and _text_model_name == model_name
            and _text_model_device == device
        ):
            return _text_model

        start_time = time.perf_counter()

        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise EmbeddingError(
                f"Failed to import sentence_transformers: {e}\n"
                "Install with: pip install sentence-transformers"
            ) from e

        try:
            _text_model = SentenceTransformer(model_name, device=device)
            _text_model_name = model_name
            _text_model_device = device
        except Exception as e:
            raise EmbeddingError(f"Failed to load embedding model '{model_name}': {e}") from e

        elapsed = time.perf_counter() - start_time
        logger.info(f"Text embedding model '{model_name}' loaded in {elapsed:.2f}s")
        return _text_model


def embed_texts(
    texts: Sequence[str],
    model_name: str = "all-MiniLM-L6-v2",
    device: str = "cpu",
    batch_size: int = 32,
    fill_empty: bool = False,
) -> list[list[float] | None]:
    """Embed texts in one batched call.

    Blank texts are not sent to the model. They come back as None, or as
    an all-zero vector when ``fill_empty`` is set.

    Args:
        texts: Texts to embed.
        model_name: Sentence-transformers model name.
        device: Compute device.
        batch_size: Batch size for encoding.
        fill_empty: Return zero vectors instead of None for blank texts.

    Returns:
        One entry per input text, in input order.

    Raises:
        EmbeddingError: If the model cannot be loaded or encoding fails.
    """
    if not texts:
        return []

    non_empty_indices = [i for i, text in enumerate(texts) if text and text.strip()]
    result: list[list[float] | None] = [None] * len(texts)

    if not non_empty_indices and not fill_empty:
        return result

    model = _load_text_model(model_name, device)

    if non_empty_indices:
        try:
            embeddings = model.encode(
                [texts[i] for i in non_empty_indices],
                convert_to_numpy=True,
                batch_size=batch_size,
                show_progress_bar=False,
            )
        except Exception as e:
            raise EmbeddingError(f"Batch embedding failed: {e}") from e

        for row, idx in enumerate(non_empty_indices):
            result[idx] = embeddings[row].tolist()

    if fill_empty:
        dimension = model.get_sentence_embedding_dimension()
        result = [vec if vec is not None else [0.0] * dimension for vec in result]

    return result


def embed_segments(
    segments: Sequence[TranscriptSegment],
    model_name: str = "all-MiniLM-L6-v2",
    device: str = "cpu",
    batch_size: int = 32,
) -> list[TranscriptSegment]:
    """Return copies of ``segments`` with embeddings of their text attached."""
    embeddings = embed_texts(
        [seg.text for seg in segments],
        model_name=model_name,
        device=device,
        batch_size=batch_size,
    )
    return [seg.with_embedding(vec) for seg, vec in zip(segments, embeddings)]


def embed_brolls(
    brolls: Sequence[BRollSource],
    model_name: str = "all-MiniLM-L6-v2",
    device: str = "cpu",
    batch_size: int = 32,
) -> list[BRollCandidate]:
    """Build planning candidates from B-roll sources by embedding their metadata.

    A B-roll without metadata gets a zero vector and never matches.
    """
    embeddings = embed_texts(
        [broll.metadata for broll in brolls],
        model_name=model_name,
        device=device,
        batch_size=batch_size,
        fill_empty=True,
    )
    return [
        BRollCandidate(id=broll.id, metadata=broll.metadata, embedding=vec)
        for broll, vec in zip(brolls, embeddings)
    ]
