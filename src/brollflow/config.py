"""Configuration and settings for BRollFlow pipelines."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from brollflow.utils.hardware import detect_device


class WhisperModel(str, Enum):
    """Available Whisper model sizes."""

    TINY = "tiny"
    BASE = "base"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large-v3"


class PlanningConfig(BaseModel):
    """Thresholds that steer B-roll insertion planning.

    Accepts both snake_case field names and the camelCase names used in
    JSON request bodies (``minInsertionGap``, ``maxInsertions``, ...).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    min_insertion_gap: float = Field(
        default=8.0,
        ge=0,
        description="Seconds between the end of one insertion and the next eligible segment start",
    )
    min_insertion_duration: float = Field(
        default=2.0, ge=0, description="Floor on insertion length in seconds"
    )
    max_insertion_duration: float = Field(
        default=5.0, ge=0, description="Ceiling on insertion length in seconds"
    )
    min_confidence: float = Field(
        default=0.3, description="Similarity below this disqualifies a match"
    )
    max_insertions: int = Field(default=6, ge=0, description="Hard cap on plan size")
    avoid_first_seconds: float = Field(
        default=2.0, ge=0, description="No segment starting before this offset is eligible"
    )
    avoid_last_seconds: float = Field(
        default=3.0,
        ge=0,
        description="No segment ending within this many seconds of the end is eligible",
    )

    @model_validator(mode="after")
    def _check_duration_bounds(self) -> PlanningConfig:
        if self.min_insertion_duration > self.max_insertion_duration:
            raise ValueError(
                f"min_insertion_duration ({self.min_insertion_duration}) must not exceed "
                f"max_insertion_duration ({self.max_insertion_duration})"
            )
        return self

    @classmethod
    def relaxed(cls) -> PlanningConfig:
        """Denser tuning used by the HTTP route: more, shorter, earlier insertions."""
        return cls(
            min_insertion_gap=3.0,
            min_insertion_duration=2.0,
            max_insertion_duration=4.0,
            min_confidence=0.08,
            max_insertions=4,
            avoid_first_seconds=0.5,
            avoid_last_seconds=1.0,
        )

    def merged(self, overrides: dict[str, Any] | PlanningConfig | None) -> PlanningConfig:
        """Return a copy with ``overrides`` applied on top of this config.

        Overrides may use either snake_case or camelCase keys. The result is
        re-validated, so an override that breaks the duration bounds raises.
        """
        if overrides is None:
            return self
        if isinstance(overrides, PlanningConfig):
            return overrides
        if not isinstance(overrides, dict):
            raise ValueError(
                f"Planning options must be an object, got {type(overrides).__name__}"
            )
        values = self.model_dump()
        values.update(PlanningConfig._normalize_keys(overrides))
        return PlanningConfig(**values)

    @staticmethod
    def _normalize_keys(overrides: dict[str, Any]) -> dict[str, Any]:
        by_alias = {to_camel(name): name for name in PlanningConfig.model_fields}
        normalized: dict[str, Any] = {}
        for key, value in overrides.items():
            name = by_alias.get(key, key)
            if name not in PlanningConfig.model_fields:
                raise ValueError(f"Unknown planning option: {key}")
            normalized[name] = value
        return normalized


class ProcessingOptions(BaseModel):
    """Options for the transcription and embedding collaborators."""

    whisper_model: WhisperModel = Field(
        default=WhisperModel.SMALL, description="Whisper model size to use"
    )
    language: str | None = Field(
        default=None, description="Force transcription language (None for auto-detect)"
    )
    embedding_model: str = Field(
        default="all-MiniLM-L6-v2",
        description="Sentence-transformers model for text embeddings",
    )
    embedding_batch_size: int = Field(
        default=32, gt=0, description="Batch size for text embedding"
    )
    download_timeout: float = Field(
        default=120.0, gt=0, description="Timeout in seconds for downloading source videos"
    )
    keep_intermediates: bool = Field(
        default=False,
        description="Keep the downloaded A-roll and extracted audio after a run",
    )


class PipelineConfig(BaseModel):
    """Configuration for a BRollFlow pipeline."""

    device: str | None = Field(
        default=None,
        description="Compute device: 'cuda', 'mps', 'cpu', or None for auto-detect",
    )
    output_dir: str = Field(
        default="./brollflow_output",
        description="Directory for downloaded videos and extracted audio",
    )
    options: ProcessingOptions = Field(
        default_factory=ProcessingOptions, description="Processing options"
    )
    planning: PlanningConfig = Field(
        default_factory=PlanningConfig, description="Insertion planning thresholds"
    )

    def get_device(self) -> str:
        """Get the compute device, auto-detecting if not specified."""
        if self.device is not None:
            return self.device
        return detect_device()
