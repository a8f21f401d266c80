"""Scoring stage: cosine similarity between text embeddings.

Compares a transcript-segment embedding with B-roll metadata embeddings
and picks the closest clip.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from brollflow.models.schema import BRollCandidate

REASON_METADATA_CHARS = 100


class DimensionMismatch(ValueError):
    """Compared embeddings have different lengths."""

    pass


@dataclass(frozen=True)
class Match:
    """The best-scoring B-roll for one segment."""

    id: str
    confidence: float
    reason: str


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors.

    A zero-magnitude vector scores 0.0 against anything.

    Raises:
        DimensionMismatch: If the vectors differ in length.
    """
    if len(vec_a) != len(vec_b):
        raise DimensionMismatch(
            f"Embedding dimensions differ: {len(vec_a)} vs {len(vec_b)}"
        )

    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)

    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator == 0:
        return 0.0

    return float(np.dot(a, b) / denominator)


def match_reason(metadata: str) -> str:
    """Human-readable note citing the metadata that drove a match."""
    return f"Semantic match: {metadata[:REASON_METADATA_CHARS]}..."


def best_match(
    segment_embedding: Sequence[float],
    candidates: Sequence[BRollCandidate],
) -> Match | None:
    """Find the candidate most similar to a segment embedding.

    Ties go to the candidate that appears first.

    Args:
        segment_embedding: Embedding of the transcript segment.
        candidates: B-roll candidates to score.

    Returns:
        The winning Match, or None if ``candidates`` is empty.

    Raises:
        DimensionMismatch: If any candidate embedding differs in length.
    """
    best: Match | None = None

    for candidate in candidates:
        score = cosine_similarity(segment_embedding, candidate.embedding)
        if best is None or score > best.confidence:
            best = Match(
                id=candidate.id,
                confidence=score,
                reason=match_reason(candidate.metadata),
            )

    return best
