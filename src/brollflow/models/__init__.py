"""Data models for BRollFlow."""

from brollflow.models.schema import (
    BRollCandidate,
    BRollSource,
    Insertion,
    MediaSource,
    Plan,
    PlanRequest,
    TranscriptSegment,
)

__all__ = [
    "TranscriptSegment",
    "BRollCandidate",
    "Insertion",
    "Plan",
    "MediaSource",
    "BRollSource",
    "PlanRequest",
]
