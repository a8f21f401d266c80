"""Pydantic models defining the BRollFlow data schema.

Transcript segments and B-roll candidates are the planner's inputs;
insertions and the plan are its output. The request models describe the
``video_url.json`` document accepted by the CLI and the HTTP route.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TranscriptSegment(BaseModel):
    """A timestamped span of A-roll speech.

    The embedding is attached by the caller before planning and is never
    serialized.
    """

    model_config = ConfigDict(frozen=True)

    start_sec: float = Field(..., ge=0, description="Start time in seconds")
    end_sec: float = Field(..., ge=0, description="End time in seconds")
    text: str = Field(default="", description="Transcribed text")
    embedding: list[float] | None = Field(
        default=None, exclude=True, repr=False, description="Text embedding of the segment"
    )

    @model_validator(mode="after")
    def _check_order(self) -> TranscriptSegment:
        if self.end_sec <= self.start_sec:
            raise ValueError(
                f"end_sec ({self.end_sec}) must be greater than start_sec ({self.start_sec})"
            )
        return self

    @property
    def duration(self) -> float:
        """Duration of the segment in seconds."""
        return self.end_sec - self.start_sec

    def with_embedding(self, embedding: list[float] | None) -> TranscriptSegment:
        """Return a copy carrying ``embedding``."""
        return self.model_copy(update={"embedding": embedding})


class BRollCandidate(BaseModel):
    """A cutaway clip that may be inserted into the A-roll."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Identifier, unique within a request")
    metadata: str = Field(default="", description="Text description of the clip")
    embedding: list[float] = Field(
        default_factory=list, repr=False, description="Text embedding of the metadata"
    )


class Insertion(BaseModel):
    """A planned placement of one B-roll clip on the A-roll timeline."""

    model_config = ConfigDict(frozen=True)

    start_sec: float = Field(..., description="Insertion start on the A-roll timeline")
    duration_sec: float = Field(..., description="Insertion length in seconds")
    broll_id: str = Field(..., description="ID of the inserted B-roll clip")
    confidence: float = Field(..., description="Cosine similarity of the match")
    reason: str = Field(default="", description="Which B-roll metadata drove the match")

    @property
    def end_sec(self) -> float:
        return self.start_sec + self.duration_sec


class Plan(BaseModel):
    """The complete result of a planning run."""

    aroll_duration_sec: float = Field(..., ge=0, description="A-roll duration in seconds")
    transcript_segments: list[TranscriptSegment] = Field(
        default_factory=list, description="Transcript without embeddings"
    )
    insertions: list[Insertion] = Field(
        default_factory=list, description="Insertions in chronological order"
    )

    def to_dict(self) -> dict:
        """Export to dictionary format."""
        return self.model_dump()

    def to_json(self, path: str | Path | None = None, indent: int = 2) -> str:
        """Export to JSON string, optionally writing to a file.

        Args:
            path: Optional file path to write JSON to.
            indent: JSON indentation level.

        Returns:
            JSON string representation.
        """
        json_str = self.model_dump_json(indent=indent)
        if path is not None:
            Path(path).write_text(json_str)
        return json_str


class MediaSource(BaseModel):
    """Where to find a video: a remote URL or a local path."""

    url: str | None = Field(default=None, description="HTTP(S) URL of the video")
    path: str | None = Field(default=None, description="Local file path of the video")

    @model_validator(mode="after")
    def _check_location(self) -> MediaSource:
        if not self.url and not self.path:
            raise ValueError("A-roll URL is required.")
        return self


class BRollSource(BaseModel):
    """A B-roll entry as it appears in a plan request."""

    id: str = Field(..., min_length=1, description="Identifier of the clip")
    metadata: str = Field(default="", description="Text description of the clip")
    url: str | None = Field(default=None, description="Location of the clip")


class PlanRequest(BaseModel):
    """Input document for a planning run (the ``video_url.json`` shape)."""

    a_roll: MediaSource
    b_rolls: list[BRollSource] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> PlanRequest:
        seen: set[str] = set()
        for broll in self.b_rolls:
            if broll.id in seen:
                raise ValueError(f"Duplicate B-roll id: {broll.id}")
            seen.add(broll.id)
        return self

    @classmethod
    def from_file(cls, path: str | Path) -> PlanRequest:
        """Load a request from a JSON file."""
        return cls.model_validate_json(Path(path).read_text())
