#!/usr/bin/env python3
"""BRollFlow Quickstart Example.

Plans B-roll insertions for the clips described in a request file and
prints the resulting timeline.

Usage:
    python examples/quickstart.py examples/video_url.json
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    """Run the quickstart example."""
    import brollflow

    if len(sys.argv) < 2:
        print("Usage: python quickstart.py <video_url.json> [--relaxed]")
        sys.exit(1)

    request_path = Path(sys.argv[1])
    if not request_path.exists():
        print(f"Error: File not found: {request_path}")
        sys.exit(1)

    planning = brollflow.PlanningConfig.relaxed() if "--relaxed" in sys.argv else None

    print(f"BRollFlow v{brollflow.__version__}")
    pipeline = brollflow.Pipeline(planning=planning)
    plan = pipeline.plan(brollflow.PlanRequest.from_file(request_path))

    print(f"\nA-roll: {plan.aroll_duration_sec:.1f}s, {len(plan.transcript_segments)} segments")
    print(f"Planned {len(plan.insertions)} insertions:\n")
    for insertion in plan.insertions:
        print(
            f"  {insertion.start_sec:7.2f}s +{insertion.duration_sec:.2f}s  "
            f"{insertion.broll_id:<12} confidence={insertion.confidence:.3f}"
        )
        print(f"      {insertion.reason}")


if __name__ == "__main__":
    main()
