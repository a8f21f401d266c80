"""Main pipeline orchestration for BRollFlow."""

from __future__ import annotations

import shutil
import time
import uuid
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from tqdm import tqdm

from brollflow.config import PipelineConfig, PlanningConfig, ProcessingOptions
from brollflow.models.schema import (
    BRollCandidate,
    Plan,
    PlanRequest,
    TranscriptSegment,
)
from brollflow.stages.embed import EmbeddingError, embed_brolls, embed_segments
from brollflow.stages.fetch import FetchError, resolve_source
from brollflow.stages.ingest import IngestError, extract_audio, probe_file
from brollflow.stages.planning import plan_insertions
from brollflow.stages.transcribe import TranscriptionError, transcribe
from brollflow.utils.logging import get_logger, log_step

logger = get_logger(__name__)

TOTAL_STEPS = 6


class PipelineError(Exception):
    """Error during pipeline processing."""

    pass


def _create_pipeline_progress(total_steps: int, desc: str = "Planning") -> tqdm:
    """Create a progress bar for pipeline steps."""
    return tqdm(
        total=total_steps,
        desc=desc,
        unit="step",
        bar_format="{desc}: {percentage:3.0f}%|{bar}| {n_fmt}/{total_fmt} steps [{elapsed}<{remaining}]",
        leave=True,
    )


class Pipeline:
    """BRollFlow planning pipeline.

    Turns an A-roll plus a list of described B-roll clips into a timeline
    of B-roll insertions.

    Example:
        >>> import brollflow
        >>> pipeline = brollflow.Pipeline()
        >>> plan = pipeline.plan(brollflow.PlanRequest.from_file("video_url.json"))
        >>> for insertion in plan.insertions:
        ...     print(insertion.start_sec, insertion.broll_id)
    """

    def __init__(
        self,
        device: str | None = None,
        output_dir: str = "./brollflow_output",
        options: dict[str, Any] | ProcessingOptions | None = None,
        planning: dict[str, Any] | PlanningConfig | None = None,
    ) -> None:
        """Initialize a BRollFlow pipeline.

        Args:
            device: Compute device ('cuda', 'mps', 'cpu') or None for auto-detect.
            output_dir: Directory for downloaded videos and extracted audio.
            options: Processing options dict or ProcessingOptions instance.
            planning: Planning thresholds dict or PlanningConfig instance.
        """
        if options is None:
            processing_options = ProcessingOptions()
        elif isinstance(options, dict):
            processing_options = ProcessingOptions(**options)
        else:
            processing_options = options

        self.config = PipelineConfig(
            device=device,
            output_dir=output_dir,
            options=processing_options,
            planning=PlanningConfig().merged(planning),
        )

        self._device = self.config.get_device()
        logger.info(f"BRollFlow pipeline initialized (device={self._device})")

        self._output_dir = Path(self.config.output_dir)
        self._output_dir.mkdir(parents=True, exist_ok=True)

    def plan(
        self,
        request: PlanRequest | dict[str, Any],
        planning: dict[str, Any] | PlanningConfig | None = None,
    ) -> Plan:
        """Plan B-roll insertions for a request.

        Args:
            request: PlanRequest or an equivalent dict (``a_roll``, ``b_rolls``).
            planning: Planning overrides for this run.

        Returns:
            Plan with the A-roll duration, transcript, and insertions.

        Raises:
            pydantic.ValidationError: If the request is malformed.
            FileNotFoundError: If a local A-roll path does not exist.
            ValueError: If the A-roll format or planning overrides are invalid.
            PipelineError: If a collaborator fails or the transcript is empty.
        """
        if isinstance(request, dict):
            request = PlanRequest.model_validate(request)
        planning_config = self.config.planning.merged(planning)

        run_dir = self._output_dir / f"run_{uuid.uuid4().hex[:8]}"
        try:
            return self._run(request, planning_config, run_dir)
        finally:
            if self.config.options.keep_intermediates:
                logger.info(f"Intermediate files kept in {run_dir}")
            else:
                shutil.rmtree(run_dir, ignore_errors=True)

    def _run(self, request: PlanRequest, planning_config: PlanningConfig, run_dir: Path) -> Plan:
        """Run all steps for one request, writing media into ``run_dir``."""
        options = self.config.options
        start_time = time.perf_counter()

        logger.info(f"Starting plan generation ({len(request.b_rolls)} B-roll clips)")
        pbar = _create_pipeline_progress(TOTAL_STEPS, "Planning B-roll")

        try:
            log_step(logger, 1, TOTAL_STEPS, "Resolving A-roll video")
            pbar.set_description("Step 1: Resolving A-roll")
            aroll_path = resolve_source(
                request.a_roll,
                run_dir,
                timeout=options.download_timeout,
            )
            pbar.update(1)

            log_step(logger, 2, TOTAL_STEPS, "Probing A-roll and extracting audio")
            pbar.set_description("Step 2: Extracting audio")
            probe = probe_file(aroll_path)
            if not probe.has_audio:
                raise IngestError(f"No audio track found in: {aroll_path}")
            audio_path = extract_audio(aroll_path, run_dir)
            pbar.update(1)

            log_step(logger, 3, TOTAL_STEPS, "Transcribing A-roll")
            pbar.set_description(f"Step 3: Transcribing ({probe.duration / 60:.1f} min)")
            transcription = transcribe(
                audio_path,
                model_size=options.whisper_model.value,
                device=self._device,
                language=options.language,
            )
            if not transcription.segments:
                raise PipelineError("Transcription returned no segments")
            pbar.update(1)

            log_step(logger, 4, TOTAL_STEPS, "Embedding transcript segments")
            pbar.set_description(f"Step 4: Embedding {len(transcription.segments)} segments")
            segments = embed_segments(
                transcription.segments,
                model_name=options.embedding_model,
                device=self._device,
                batch_size=options.embedding_batch_size,
            )
            pbar.update(1)

            log_step(logger, 5, TOTAL_STEPS, "Embedding B-roll metadata")
            pbar.set_description(f"Step 5: Embedding {len(request.b_rolls)} B-roll clips")
            candidates = embed_brolls(
                request.b_rolls,
                model_name=options.embedding_model,
                device=self._device,
                batch_size=options.embedding_batch_size,
            )
            pbar.update(1)

        except (FetchError, IngestError, TranscriptionError, EmbeddingError) as e:
            pbar.close()
            raise PipelineError(f"Processing failed: {e}") from e
        except Exception:
            pbar.close()
            raise

        aroll_duration = probe.duration or transcription.duration_sec or segments[-1].end_sec

        log_step(logger, 6, TOTAL_STEPS, "Planning B-roll insertions")
        pbar.set_description("Step 6: Planning insertions")
        try:
            plan = self.plan_from_transcript(segments, candidates, aroll_duration, planning_config)
        finally:
            pbar.update(1)
            pbar.close()

        elapsed = time.perf_counter() - start_time
        logger.info(
            f"Plan complete: {len(plan.insertions)} insertions over "
            f"{aroll_duration:.1f}s of A-roll in {elapsed:.2f}s"
        )
        return plan

    def plan_from_transcript(
        self,
        segments: Sequence[TranscriptSegment],
        candidates: Sequence[BRollCandidate],
        aroll_duration: float,
        planning: dict[str, Any] | PlanningConfig | None = None,
    ) -> Plan:
        """Plan insertions for an already transcribed and embedded A-roll.

        Args:
            segments: Transcript segments with embeddings attached.
            candidates: B-roll candidates with embeddings attached.
            aroll_duration: Total A-roll duration in seconds.
            planning: Planning overrides for this run.

        Returns:
            Plan whose transcript segments carry no embeddings.

        Raises:
            DimensionMismatch: If segment and candidate embeddings differ in length.
        """
        insertions = plan_insertions(
            segments,
            candidates,
            aroll_duration,
            self.config.planning.merged(planning),
        )
        return Plan(
            aroll_duration_sec=aroll_duration,
            transcript_segments=[seg.with_embedding(None) for seg in segments],
            insertions=insertions,
        )
