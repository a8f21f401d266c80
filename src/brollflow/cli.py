"""Command-line interface for BRollFlow."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from brollflow import Pipeline, PipelineError, __version__
from brollflow.config import PlanningConfig, WhisperModel
from brollflow.models.schema import PlanRequest
from brollflow.utils.hardware import get_device_info
from brollflow.utils.logging import get_logger

app = typer.Typer(
    name="brollflow",
    help="Plan where B-roll cutaways belong in a talking-head video.",
    add_completion=False,
    no_args_is_help=True,
)


class Preset(str, Enum):
    """Named planning presets."""

    DEFAULT = "default"
    RELAXED = "relaxed"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"brollflow {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """BRollFlow: plan B-roll insertions from speech and text similarity."""
    pass


@app.command()
def plan(
    request_file: Annotated[
        Path,
        typer.Argument(
            help="Request JSON with 'a_roll' and 'b_rolls' (video_url.json format)",
            exists=True,
            readable=True,
        ),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output JSON file path (default: stdout)"),
    ] = None,
    output_dir: Annotated[
        Path,
        typer.Option("--output-dir", "-d", help="Directory for downloads and extracted audio"),
    ] = Path("./brollflow_output"),
    whisper_model: Annotated[
        WhisperModel,
        typer.Option("--whisper-model", "-m", help="Whisper model size"),
    ] = WhisperModel.SMALL,
    embedding_model: Annotated[
        str,
        typer.Option("--embedding-model", "-e", help="Sentence-transformers model name"),
    ] = "all-MiniLM-L6-v2",
    device: Annotated[
        Optional[str],
        typer.Option("--device", help="Compute device: cuda, mps, or cpu (auto-detect if not specified)"),
    ] = None,
    preset: Annotated[
        Preset,
        typer.Option("--preset", "-p", help="Planning threshold preset"),
    ] = Preset.DEFAULT,
    max_insertions: Annotated[
        Optional[int],
        typer.Option("--max-insertions", help="Override the cap on planned insertions"),
    ] = None,
    min_confidence: Annotated[
        Optional[float],
        typer.Option("--min-confidence", help="Override the minimum match similarity"),
    ] = None,
    keep_intermediates: Annotated[
        bool,
        typer.Option("--keep-intermediates", help="Keep the downloaded A-roll and extracted audio"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress progress output"),
    ] = False,
) -> None:
    """Plan B-roll insertions for a request file and print the plan as JSON.

    Example:
        brollflow plan video_url.json --preset relaxed -o plan.json
    """
    get_logger(level=logging.WARNING if quiet else logging.INFO)

    planning = PlanningConfig.relaxed() if preset == Preset.RELAXED else PlanningConfig()
    overrides = {}
    if max_insertions is not None:
        overrides["max_insertions"] = max_insertions
    if min_confidence is not None:
        overrides["min_confidence"] = min_confidence

    try:
        plan_request = PlanRequest.from_file(request_file)
        pipeline = Pipeline(
            device=device,
            output_dir=str(output_dir),
            options={
                "whisper_model": whisper_model,
                "embedding_model": embedding_model,
                "keep_intermediates": keep_intermediates,
            },
            planning=planning.merged(overrides),
        )
        result = pipeline.plan(plan_request)
    except ValidationError as e:
        typer.secho(f"Invalid request: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except (ValueError, FileNotFoundError, PipelineError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    json_output = result.to_json(indent=2)
    if output:
        output.write_text(json_output)
        if not quiet:
            typer.echo(f"Plan with {len(result.insertions)} insertions written to: {output}")
    else:
        typer.echo(json_output)


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Interface to bind")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", help="Port to listen on")] = 4000,
    request_file: Annotated[
        Path,
        typer.Option("--request-file", help="Request JSON used when POST /api/plan has no body"),
    ] = Path("video_url.json"),
) -> None:
    """Serve the planning API over HTTP."""
    from brollflow.server import create_app

    get_logger(level=logging.INFO)
    create_app(request_file=request_file).run(host=host, port=port)


@app.command()
def info() -> None:
    """Show system information and detected hardware."""
    typer.echo(f"BRollFlow v{__version__}")
    typer.echo("")

    device_info = get_device_info()
    typer.echo("Hardware Detection:")
    typer.echo(f"  Device: {device_info.device}")
    typer.echo(f"  Name: {device_info.name}")

    if device_info.memory_gb:
        typer.echo(f"  Memory: {device_info.memory_gb} GB")
    typer.echo(f"  Embeddings: {device_info.device}")
    typer.echo(
        f"  Whisper: {device_info.whisper_device} ({device_info.whisper_compute_type})"
    )

    typer.echo("")
    typer.echo("Default planning thresholds:")
    for name, value in PlanningConfig().model_dump().items():
        typer.echo(f"  {name}: {value}")


if __name__ == "__main__":
    app()
