"""Planning stage: greedy placement of B-roll along the A-roll timeline.

Segments are visited once in chronological order. Each one either
produces an insertion or is skipped for good; there is no backtracking.
A clip is reused only after every candidate has been used once.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from brollflow.config import PlanningConfig
from brollflow.models.schema import BRollCandidate, Insertion, TranscriptSegment
from brollflow.stages.scoring import best_match

logger = logging.getLogger(__name__)

# Shortest segment worth covering with a cutaway
MIN_SEGMENT_DURATION = 1.5

# Insertions start this far into the segment and end this far before its end
INSERTION_PADDING = 0.5


def is_eligible(
    segment: TranscriptSegment,
    aroll_duration: float,
    config: PlanningConfig,
) -> bool:
    """Whether a segment may host an insertion at all."""
    return (
        segment.start_sec >= config.avoid_first_seconds
        and segment.end_sec <= aroll_duration - config.avoid_last_seconds
        and segment.duration >= MIN_SEGMENT_DURATION
        and segment.embedding is not None
    )


def insertion_duration(segment: TranscriptSegment, start: float, config: PlanningConfig) -> float:
    """Length of an insertion starting at ``start`` inside ``segment``."""
    raw = segment.end_sec - start - INSERTION_PADDING
    return min(max(config.min_insertion_duration, raw), config.max_insertion_duration)


def plan_insertions(
    segments: Sequence[TranscriptSegment],
    candidates: Sequence[BRollCandidate],
    aroll_duration: float,
    config: PlanningConfig | None = None,
) -> list[Insertion]:
    """Plan B-roll insertions for an A-roll transcript.

    Args:
        segments: Transcript segments with embeddings attached.
        candidates: B-roll candidates with embeddings attached.
        aroll_duration: Total A-roll duration in seconds.
        config: Planning thresholds (defaults if None).

    Returns:
        Insertions in chronological order. Empty when nothing qualifies.

    Raises:
        DimensionMismatch: If segment and candidate embeddings differ in length.
    """
    config = config or PlanningConfig()

    eligible = sorted(
        (seg for seg in segments if is_eligible(seg, aroll_duration, config)),
        key=lambda seg: seg.start_sec,
    )
    logger.debug(f"{len(eligible)} of {len(segments)} segments eligible for B-roll")

    insertions: list[Insertion] = []
    used_ids: set[str] = set()
    last_insertion_end = config.avoid_first_seconds

    for segment in eligible:
        if len(insertions) >= config.max_insertions:
            break

        if segment.start_sec < last_insertion_end + config.min_insertion_gap:
            logger.debug(f"Skipping segment at {segment.start_sec:.2f}s: too close to previous insertion")
            continue

        unused = [c for c in candidates if c.id not in used_ids]
        pool = unused if unused else candidates

        match = best_match(segment.embedding, pool)
        if match is None or match.confidence < config.min_confidence:
            logger.debug(f"Skipping segment at {segment.start_sec:.2f}s: no confident match")
            continue

        start = segment.start_sec + INSERTION_PADDING
        duration = insertion_duration(segment, start, config)

        insertions.append(
            Insertion(
                start_sec=start,
                duration_sec=duration,
                broll_id=match.id,
                confidence=match.confidence,
                reason=match.reason,
            )
        )

        used_ids.add(match.id)
        last_insertion_end = start + duration

    logger.info(
        f"Planned {len(insertions)} B-roll insertions "
        f"({len(eligible)} eligible segments, {len(candidates)} candidates)"
    )
    return insertions
