"""Tests for the planning stage."""

from __future__ import annotations

import math

import numpy as np
import pytest

from brollflow.config import PlanningConfig
from brollflow.models.schema import BRollCandidate, Insertion, TranscriptSegment
from brollflow.stages.planning import (
    INSERTION_PADDING,
    insertion_duration,
    is_eligible,
    plan_insertions,
)
from brollflow.stages.scoring import DimensionMismatch

X_AXIS = [1.0, 0.0]
# cos(60 degrees) = 0.5 against X_AXIS
HALF_MATCH = [0.5, math.sqrt(0.75)]

# No edge margins and no gap: isolates the rule under test
PERMISSIVE = PlanningConfig(
    min_insertion_gap=0,
    avoid_first_seconds=0,
    avoid_last_seconds=0,
)


def make_segment(
    start: float,
    end: float,
    embedding: list[float] | None = X_AXIS,
) -> TranscriptSegment:
    return TranscriptSegment(
        start_sec=start,
        end_sec=end,
        text=f"segment at {start}",
        embedding=embedding,
    )


def make_candidate(broll_id: str, embedding: list[float]) -> BRollCandidate:
    return BRollCandidate(id=broll_id, metadata=f"clip {broll_id}", embedding=embedding)


class TestIsEligible:
    """Tests for is_eligible function."""

    def test_regular_segment(self) -> None:
        assert is_eligible(make_segment(10.0, 15.0), 60.0, PlanningConfig())

    def test_starts_too_early(self) -> None:
        """Segments starting inside the opening margin are excluded."""
        assert not is_eligible(make_segment(1.9, 6.0), 60.0, PlanningConfig())

    def test_starts_exactly_at_margin(self) -> None:
        assert is_eligible(make_segment(2.0, 6.0), 60.0, PlanningConfig())

    def test_ends_too_late(self) -> None:
        """Segments ending inside the closing margin are excluded."""
        assert not is_eligible(make_segment(50.0, 57.1), 60.0, PlanningConfig())

    def test_ends_exactly_at_margin(self) -> None:
        assert is_eligible(make_segment(50.0, 57.0), 60.0, PlanningConfig())

    def test_too_short(self) -> None:
        """Segments under 1.5 seconds are excluded."""
        assert not is_eligible(make_segment(10.0, 11.4), 60.0, PlanningConfig())

    def test_minimum_length(self) -> None:
        assert is_eligible(make_segment(10.0, 11.5), 60.0, PlanningConfig())

    def test_missing_embedding(self) -> None:
        assert not is_eligible(make_segment(10.0, 15.0, embedding=None), 60.0, PlanningConfig())


class TestInsertionDuration:
    """Tests for insertion_duration function."""

    def test_within_bounds(self) -> None:
        segment = make_segment(10.0, 15.0)
        assert insertion_duration(segment, 10.5, PlanningConfig()) == pytest.approx(4.0)

    def test_clamped_to_maximum(self) -> None:
        segment = make_segment(10.0, 30.0)
        assert insertion_duration(segment, 10.5, PlanningConfig()) == 5.0

    def test_raised_to_minimum(self) -> None:
        """Short segments still get the minimum length, even past the segment end."""
        segment = make_segment(10.0, 11.6)
        assert insertion_duration(segment, 10.5, PlanningConfig()) == 2.0


class TestPlanInsertionsScenarios:
    """End-to-end scenarios for plan_insertions."""

    def test_single_candidate_reused_for_spaced_segments(self) -> None:
        """One perfect candidate and two well-spaced segments give two insertions."""
        segments = [make_segment(10.0, 15.0), make_segment(30.0, 35.0)]
        candidates = [make_candidate("only", X_AXIS)]

        insertions = plan_insertions(segments, candidates, 60.0)

        assert len(insertions) == 2
        assert [i.broll_id for i in insertions] == ["only", "only"]
        first, second = insertions
        assert first.start_sec == 10.5
        assert first.duration_sec == pytest.approx(4.0)
        assert first.confidence == pytest.approx(1.0)
        assert second.start_sec == 30.5
        assert second.start_sec - INSERTION_PADDING >= first.end_sec + 8.0

    def test_segment_at_zero_excluded_by_default_margin(self) -> None:
        """With default margins a segment starting at 0s can never host B-roll."""
        segments = [make_segment(0.0, 5.0), make_segment(20.0, 25.0)]
        candidates = [make_candidate("only", X_AXIS)]

        insertions = plan_insertions(segments, candidates, 60.0)

        assert len(insertions) == 1
        assert insertions[0].start_sec == 20.5

    def test_short_video_single_short_segment(self) -> None:
        """A 1s segment in a 5s video is too short to host an insertion."""
        segments = [make_segment(1.0, 2.0)]
        candidates = [make_candidate("only", X_AXIS)]

        assert plan_insertions(segments, candidates, 5.0) == []
        assert plan_insertions(segments, candidates, 5.0, PERMISSIVE) == []

    def test_confidence_floor_blocks_everything(self) -> None:
        """If the best similarity is 0.5, a 0.9 floor yields no insertions."""
        segments = [make_segment(float(start), start + 5.0) for start in range(10, 100, 15)]
        candidates = [make_candidate(f"c{i}", HALF_MATCH) for i in range(4)]
        config = PlanningConfig(min_confidence=0.9)

        assert plan_insertions(segments, candidates, 120.0, config) == []

    def test_dimension_mismatch_aborts(self) -> None:
        """Mismatched embeddings raise instead of returning a partial plan."""
        segments = [make_segment(10.0, 15.0), make_segment(30.0, 35.0, embedding=[1.0, 0.0, 0.0])]
        candidates = [make_candidate("only", X_AXIS)]

        with pytest.raises(DimensionMismatch):
            plan_insertions(segments, candidates, 60.0)


class TestPlanInsertionsRules:
    """Rule-by-rule tests for plan_insertions."""

    def test_empty_inputs(self) -> None:
        candidates = [make_candidate("only", X_AXIS)]
        assert plan_insertions([], candidates, 60.0) == []
        assert plan_insertions([make_segment(10.0, 15.0)], [], 60.0) == []

    def test_uses_default_config(self) -> None:
        segments = [make_segment(10.0, 15.0)]
        candidates = [make_candidate("only", X_AXIS)]
        assert plan_insertions(segments, candidates, 60.0) == plan_insertions(
            segments, candidates, 60.0, PlanningConfig()
        )

    def test_segments_processed_in_time_order(self) -> None:
        """Unsorted input should still yield chronological insertions."""
        segments = [make_segment(40.0, 45.0), make_segment(10.0, 15.0), make_segment(25.0, 30.0)]
        candidates = [make_candidate("a", X_AXIS)]

        insertions = plan_insertions(segments, candidates, 60.0)

        assert [i.start_sec for i in insertions] == [10.5, 25.5, 40.5]

    def test_gap_skips_close_segment_permanently(self) -> None:
        """A segment too close to the previous insertion is skipped for good."""
        segments = [
            make_segment(10.0, 15.0),  # insertion ends at 14.5
            make_segment(20.0, 25.0),  # 20 < 14.5 + 8
            make_segment(23.0, 28.0),  # 23 >= 22.5
        ]
        candidates = [make_candidate("a", X_AXIS), make_candidate("b", X_AXIS)]

        insertions = plan_insertions(segments, candidates, 60.0)

        assert [i.start_sec for i in insertions] == [10.5, 23.5]

    def test_first_segment_measured_from_opening_margin(self) -> None:
        """The gap rule also applies against the opening margin."""
        segments = [make_segment(5.0, 9.0), make_segment(10.0, 14.0)]
        candidates = [make_candidate("a", X_AXIS)]

        insertions = plan_insertions(segments, candidates, 60.0)

        # 5 < 2 + 8, while 10 >= 2 + 8
        assert [i.start_sec for i in insertions] == [10.5]

    def test_low_confidence_does_not_advance_gap(self) -> None:
        """A rejected match leaves the gap reference untouched."""
        segments = [
            make_segment(10.0, 15.0, embedding=[0.0, 1.0]),
            make_segment(12.0, 17.0),
        ]
        candidates = [make_candidate("a", X_AXIS)]

        insertions = plan_insertions(segments, candidates, 60.0)

        assert len(insertions) == 1
        assert insertions[0].start_sec == 12.5

    def test_max_insertions_cap(self) -> None:
        segments = [make_segment(float(start), start + 3.0) for start in range(10, 200, 12)]
        candidates = [make_candidate("a", X_AXIS)]

        assert len(plan_insertions(segments, candidates, 300.0)) == 6
        assert len(plan_insertions(segments, candidates, 300.0, PlanningConfig(max_insertions=2))) == 2
        assert plan_insertions(segments, candidates, 300.0, PlanningConfig(max_insertions=0)) == []

    def test_durations_clamped(self) -> None:
        segments = [make_segment(10.0, 11.6), make_segment(30.0, 60.0)]
        candidates = [make_candidate("a", X_AXIS)]

        insertions = plan_insertions(segments, candidates, 100.0)

        assert [i.duration_sec for i in insertions] == [2.0, 5.0]

    def test_segments_without_embedding_skipped(self) -> None:
        segments = [make_segment(10.0, 15.0, embedding=None), make_segment(30.0, 35.0)]
        candidates = [make_candidate("a", X_AXIS)]

        insertions = plan_insertions(segments, candidates, 60.0)

        assert [i.start_sec for i in insertions] == [30.5]

    def test_prefers_unused_candidate_over_better_used_one(self) -> None:
        """While an unused clip remains, a used clip is never chosen."""
        segments = [make_segment(10.0, 15.0), make_segment(30.0, 35.0), make_segment(50.0, 55.0)]
        candidates = [make_candidate("best", X_AXIS), make_candidate("other", HALF_MATCH)]

        insertions = plan_insertions(segments, candidates, 100.0)

        assert [i.broll_id for i in insertions] == ["best", "other", "best"]
        assert insertions[1].confidence == pytest.approx(0.5)

    def test_unused_pool_below_floor_skips_segment(self) -> None:
        """Reuse is not a fallback for a weak unused pool; the segment is skipped."""
        segments = [make_segment(10.0, 15.0), make_segment(30.0, 35.0)]
        candidates = [make_candidate("best", X_AXIS), make_candidate("weak", [0.0, 1.0])]

        insertions = plan_insertions(segments, candidates, 100.0)

        assert [i.broll_id for i in insertions] == ["best"]

    def test_reason_cites_metadata(self) -> None:
        segments = [make_segment(10.0, 15.0)]
        candidates = [BRollCandidate(id="a", metadata="Espresso pouring", embedding=X_AXIS)]

        insertions = plan_insertions(segments, candidates, 60.0)

        assert insertions[0].reason == "Semantic match: Espresso pouring..."

    def test_zero_embedding_candidate_never_matches(self) -> None:
        segments = [make_segment(10.0, 15.0)]
        candidates = [make_candidate("blank", [0.0, 0.0])]

        assert plan_insertions(segments, candidates, 60.0) == []

    def test_deterministic(self) -> None:
        segments = [make_segment(float(start), start + 4.0) for start in range(10, 100, 9)]
        candidates = [make_candidate("a", X_AXIS), make_candidate("b", HALF_MATCH)]

        first = plan_insertions(segments, candidates, 120.0)
        second = plan_insertions(segments, candidates, 120.0)

        assert [i.model_dump_json() for i in first] == [i.model_dump_json() for i in second]


def _random_case(rng: np.random.Generator) -> tuple[list[TranscriptSegment], list[BRollCandidate], float]:
    """Random segments on a quarter-second grid and random candidates."""
    dim = 6
    segments = []
    for _ in range(int(rng.integers(0, 30))):
        start = int(rng.integers(0, 400)) / 4
        length = int(rng.integers(2, 40)) / 4
        embedding = rng.normal(size=dim).tolist() if rng.random() > 0.1 else None
        segments.append(make_segment(start, start + length, embedding=embedding))
    candidates = [
        make_candidate(f"c{i}", rng.normal(size=dim).tolist())
        for i in range(int(rng.integers(0, 6)))
    ]
    return segments, candidates, 110.0


def _check_plan(
    insertions: list[Insertion],
    candidates: list[BRollCandidate],
    config: PlanningConfig,
) -> None:
    assert len(insertions) <= config.max_insertions

    last_end = config.avoid_first_seconds
    used: set[str] = set()
    all_ids = {c.id for c in candidates}

    for insertion in insertions:
        segment_start = insertion.start_sec - INSERTION_PADDING
        assert segment_start >= last_end + config.min_insertion_gap
        assert insertion.confidence >= config.min_confidence
        assert config.min_insertion_duration <= insertion.duration_sec <= config.max_insertion_duration
        if used != all_ids:
            assert insertion.broll_id not in used
        used.add(insertion.broll_id)
        last_end = insertion.end_sec

    starts = [i.start_sec for i in insertions]
    assert all(a < b for a, b in zip(starts, starts[1:]))


@pytest.mark.parametrize(
    "config",
    [
        PlanningConfig(),
        PlanningConfig.relaxed(),
        PlanningConfig(min_confidence=-1.0, min_insertion_gap=0, max_insertions=20),
    ],
    ids=["default", "relaxed", "permissive"],
)
def test_plan_invariants_on_random_inputs(config: PlanningConfig) -> None:
    """Cap, gap, confidence, duration, order and reuse rules hold on random inputs."""
    rng = np.random.default_rng(1234)
    for _ in range(200):
        segments, candidates, duration = _random_case(rng)
        insertions = plan_insertions(segments, candidates, duration, config)
        _check_plan(insertions, candidates, config)
