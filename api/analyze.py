"""
Swing analysis endpoints.

Runs the analysis pipeline over pose frames posted by the client:
phase detection, metrics calculation and scoring. A live variant returns
partial metrics for a growing frame buffer.
"""

import logging
import os

from flask import Blueprint, current_app, jsonify, request

from services.metrics_calculator import (
    InsufficientFramesError,
    MetricsCalculator,
    MetricsCalculatorConfig,
)
from services.models import DetectedSwingPhase, PoseFrame, Sport, SwingSession
from services.phase_detector import build_detected_phases, create_detector
from services.repository import InMemorySessionRepository, RepositoryError, SupabaseSessionRepository
from services.score_generator import ScoreGenerator
from services.storage import is_configured

logger = logging.getLogger(__name__)

analyze_bp = Blueprint("analyze", __name__)


def check_secret():
    """Return a 401 response if FLASK_SECRET_KEY is set and x-secret does not match."""
    secret = os.environ.get("FLASK_SECRET_KEY")
    if secret and request.headers.get("x-secret") != secret:
        return jsonify({"status": "failed", "error": "Unauthorized"}), 401
    return None


def get_repository():
    """Session repository for this app: Supabase when configured, in-memory otherwise."""
    repository = current_app.config.get("SESSION_REPOSITORY")
    if repository is None:
        repository = SupabaseSessionRepository() if is_configured() else InMemorySessionRepository()
        current_app.config["SESSION_REPOSITORY"] = repository
    return repository


def calculator_config() -> MetricsCalculatorConfig:
    return MetricsCalculatorConfig(
        decimation_factor=int(os.environ.get("SWING_DECIMATION_FACTOR", 1))
    )


def minimum_confidence() -> float:
    return float(os.environ.get("SWING_MIN_CONFIDENCE", 0.5))


def parse_frames(data) -> list:
    """
    Parse the 'frames' list of a request body into PoseFrames.

    Raises:
        ValueError: If frames is not a list or a frame is malformed.
    """
    frames = data.get("frames")
    if frames is None:
        return []
    if not isinstance(frames, list):
        raise ValueError("frames must be a list")
    return [PoseFrame.from_dict(f) for f in frames]


def insufficient_frames_response(error):
    return jsonify({
        "status": "failed",
        "error": "insufficient_frames",
        "message": str(error),
    }), 400


@analyze_bp.route("/api/analyze", methods=["POST"])
def analyze_swing():
    """
    Analyze one recorded swing.

    Expects JSON body:
        { "sport": "golf", "frames": [...], "left_handed": false,
          "phases": [...] (optional), "save": false (optional) }
    Requires header: x-secret matching FLASK_SECRET_KEY env var.

    Returns:
        JSON with transitions, phases, metrics and score, or error.
    """
    unauthorized = check_secret()
    if unauthorized:
        return unauthorized

    data = request.get_json()
    if not data or not isinstance(data, dict):
        return jsonify({"status": "failed", "error": "Request body must be a JSON object"}), 400

    try:
        sport = Sport.parse(data.get("sport"))
        frames = parse_frames(data)
        phases = data.get("phases")
        if phases is not None:
            phases = [DetectedSwingPhase.from_dict(p) for p in phases]
    except (ValueError, KeyError, TypeError) as e:
        return jsonify({"status": "failed", "error": str(e)}), 400

    try:
        if not frames:
            raise InsufficientFramesError()

        analysis = None
        if phases is None:
            logger.info("Detecting %s phases over %d frames", sport.value, len(frames))
            detector = create_detector(
                sport,
                left_handed=bool(data.get("left_handed", False)),
                minimum_confidence=minimum_confidence(),
            )
            analysis = detector.process_frames(frames)
            if analysis.transitions:
                phases = build_detected_phases(analysis, frames)

        repository = get_repository()
        calculator = MetricsCalculator(repository=repository, config=calculator_config())
        metrics = calculator.calculate_metrics(frames, sport, phases)
        score = ScoreGenerator().generate_score(metrics, sport)

        session_id = None
        if data.get("save"):
            session = SwingSession(sport=sport, frames=frames, metrics=metrics)
            repository.save_session(session)
            session_id = session.id

        return jsonify({
            "status": "completed",
            "sport": sport.value,
            "session_id": session_id,
            "analysis": analysis.to_dict() if analysis else None,
            "phases": [p.to_dict() for p in phases] if phases else [],
            "metrics": metrics.to_dict(),
            "score": score.to_dict(),
        })

    except InsufficientFramesError as e:
        return insufficient_frames_response(e)

    except RepositoryError as e:
        logger.exception("Session storage failed during %s analysis", sport.value)
        return jsonify({"status": "failed", "error": str(e)}), 500

    except Exception as e:
        logger.exception("Analysis failed for %s swing", sport.value)
        return jsonify({"status": "failed", "error": str(e)}), 500


@analyze_bp.route("/api/analyze/live", methods=["POST"])
def analyze_live():
    """
    Partial metrics for a frame buffer still being recorded.

    Expects JSON body: { "sport": "tennis", "frames": [...] }

    Returns:
        JSON with form and speed metrics, or status 'pending' while too few
        frames have arrived.
    """
    unauthorized = check_secret()
    if unauthorized:
        return unauthorized

    data = request.get_json()
    if not data or not isinstance(data, dict):
        return jsonify({"status": "failed", "error": "Request body must be a JSON object"}), 400

    try:
        sport = Sport.parse(data.get("sport"))
        frames = parse_frames(data)
    except (ValueError, KeyError, TypeError) as e:
        return jsonify({"status": "failed", "error": str(e)}), 400

    calculator = MetricsCalculator(config=calculator_config())
    metrics = calculator.calculate_streaming_metrics(frames, sport)

    if metrics is None:
        return jsonify({
            "status": "pending",
            "frames_received": len(frames),
            "frames_required": calculator.config.streaming_min_frames,
        })

    return jsonify({
        "status": "partial",
        "sport": sport.value,
        "metrics": metrics.to_dict(),
    })
