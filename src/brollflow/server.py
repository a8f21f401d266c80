"""HTTP API for BRollFlow.

Routes:
    GET  /api/health  liveness probe
    POST /api/plan    plan B-roll insertions for a request body, or for the
                      request file when the body carries no ``a_roll``
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

from flask import Flask, jsonify, request
from pydantic import ValidationError

from brollflow.config import PlanningConfig
from brollflow.models.schema import PlanRequest
from brollflow.pipeline import Pipeline, PipelineError

logger = logging.getLogger(__name__)


def _validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", str(exc))
    return f"{location}: {message}" if location else message


def _load_request_body(request_file: Path) -> Any:
    body = request.get_json(silent=True)
    if isinstance(body, dict) and body.get("a_roll"):
        return body
    if not request_file.exists():
        raise FileNotFoundError(
            f"{request_file.name} not found. Please provide video URLs in request body "
            f"or create {request_file.name} file."
        )
    with open(request_file, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, dict) and isinstance(body, dict) and "planning" in body:
        data["planning"] = body["planning"]
    return data


def create_app(
    pipeline: Pipeline | None = None,
    request_file: str | Path = "video_url.json",
    planning: PlanningConfig | None = None,
) -> Flask:
    """Build the Flask application.

    Args:
        pipeline: Pipeline to plan with (a default one is created lazily).
        request_file: Request document used when the body has no ``a_roll``.
        planning: Default planning thresholds for the route.

    Returns:
        Configured Flask app.
    """
    app = Flask(__name__)
    request_path = Path(request_file)
    route_planning = planning or PlanningConfig.relaxed()
    state: dict[str, Pipeline | None] = {"pipeline": pipeline}
    pipeline_lock = threading.Lock()

    def get_pipeline() -> Pipeline:
        with pipeline_lock:
            if state["pipeline"] is None:
                state["pipeline"] = Pipeline(planning=route_planning)
            return state["pipeline"]

    @app.get("/api/health")
    def health():
        return jsonify({"status": "ok"})

    @app.post("/api/plan")
    def plan():
        try:
            data = _load_request_body(request_path)
        except FileNotFoundError as exc:
            return jsonify({"error": str(exc)}), 400
        except json.JSONDecodeError as exc:
            return jsonify({"error": f"Invalid request file: {exc}"}), 400

        if not isinstance(data, dict):
            return jsonify({"error": "Plan request must be a JSON object."}), 400

        overrides = data.pop("planning", None)
        try:
            plan_request = PlanRequest.model_validate(data)
            planning_config = route_planning.merged(overrides)
        except ValidationError as exc:
            return jsonify({"error": _validation_message(exc)}), 400
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400

        logger.info(
            f"Plan requested: a_roll={plan_request.a_roll.url or plan_request.a_roll.path}, "
            f"{len(plan_request.b_rolls)} B-rolls"
        )

        try:
            result = get_pipeline().plan(plan_request, planning=planning_config)
        except (PipelineError, FileNotFoundError, ValueError) as exc:
            logger.error(f"Plan generation error: {exc}")
            return jsonify({"error": "Failed to generate plan.", "details": str(exc)}), 500
        except Exception as exc:
            logger.exception("Unexpected error while generating plan")
            return jsonify({"error": "Failed to generate plan.", "details": str(exc)}), 500

        return app.response_class(result.to_json(), mimetype="application/json")

    return app
