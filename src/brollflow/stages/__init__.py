"""Processing stages for the BRollFlow pipeline.

Each stage handles a specific part of planning:
- fetch: Downloading remote A-roll videos
- ingest: File validation, probing, and audio extraction
- transcribe: Speech-to-text with timestamps
- embed: Text embeddings for segments and B-roll metadata
- scoring: Cosine similarity and best-match selection
- planning: Greedy insertion planning
"""

__all__ = [
    "fetch",
    "ingest",
    "transcribe",
    "embed",
    "scoring",
    "planning",
]
