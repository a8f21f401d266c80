"""BRollFlow: plan B-roll cutaways for talking-head video."""

from brollflow.config import PipelineConfig, PlanningConfig, ProcessingOptions
from brollflow.models.schema import (
    BRollCandidate,
    BRollSource,
    Insertion,
    MediaSource,
    Plan,
    PlanRequest,
    TranscriptSegment,
)
from brollflow.pipeline import Pipeline, PipelineError
from brollflow.stages.planning import plan_insertions
from brollflow.stages.scoring import DimensionMismatch, best_match, cosine_similarity

__version__ = "0.1.0"

__all__ = [
    "Pipeline",
    "PipelineConfig",
    "PipelineError",
    "PlanningConfig",
    "ProcessingOptions",
    "TranscriptSegment",
    "BRollCandidate",
    "Insertion",
    "Plan",
    "MediaSource",
    "BRollSource",
    "PlanRequest",
    "plan_insertions",
    "best_match",
    "cosine_similarity",
    "DimensionMismatch",
    "__version__",
]
