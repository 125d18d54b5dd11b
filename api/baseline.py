"""
Ideal baseline endpoints.

Stores and reads the per-sport reference swing used for consistency
scoring. Saving a baseline replaces the previous one for that sport.
"""

import logging

from flask import Blueprint, jsonify, request

from api.analyze import (
    calculator_config,
    check_secret,
    get_repository,
    insufficient_frames_response,
    parse_frames,
)
from services.metrics import SwingMetrics
from services.metrics_calculator import InsufficientFramesError, MetricsCalculator
from services.models import Sport, SwingSession
from services.repository import RepositoryError

logger = logging.getLogger(__name__)

baseline_bp = Blueprint("baseline", __name__)


def _parse_sport(name):
    try:
        return Sport.parse(name), None
    except ValueError as e:
        return None, (jsonify({"status": "failed", "error": str(e)}), 400)


@baseline_bp.route("/api/baseline/<sport_name>", methods=["PUT"])
def save_baseline(sport_name):
    """
    Store a swing as the ideal baseline for a sport.

    Expects JSON body: { "frames": [...], "metrics": {...} (optional) }
    Metrics are calculated from the frames when not supplied.

    Returns:
        JSON with the stored session id, or error.
    """
    unauthorized = check_secret()
    if unauthorized:
        return unauthorized

    sport, error = _parse_sport(sport_name)
    if error:
        return error

    data = request.get_json()
    if not data or not isinstance(data, dict):
        return jsonify({"status": "failed", "error": "Request body must be a JSON object"}), 400

    try:
        frames = parse_frames(data)
        metrics = data.get("metrics")
        metrics = SwingMetrics.from_dict(metrics) if metrics else None
    except (ValueError, KeyError, TypeError) as e:
        return jsonify({"status": "failed", "error": str(e)}), 400

    try:
        if metrics is None:
            # No repository: a new baseline is not compared to the old one
            metrics = MetricsCalculator(config=calculator_config()).calculate_metrics(frames, sport)
        elif not frames:
            raise InsufficientFramesError()

        session = SwingSession(sport=sport, frames=frames, metrics=metrics)
        get_repository().save_as_ideal_baseline(session, sport)

    except InsufficientFramesError as e:
        return insufficient_frames_response(e)

    except RepositoryError as e:
        logger.exception("Failed to store %s baseline", sport.value)
        return jsonify({"status": "failed", "error": str(e)}), 500

    logger.info("Stored %s baseline %s (%d frames)", sport.value, session.id, session.frame_count)
    return jsonify({
        "status": "saved",
        "sport": sport.value,
        "session_id": session.id,
        "overall_score": metrics.overall_score,
    })


@baseline_bp.route("/api/baseline/<sport_name>", methods=["GET"])
def get_baseline(sport_name):
    """
    Summary of the current ideal baseline for a sport.

    Returns:
        JSON summary, or 404 when no baseline is stored.
    """
    unauthorized = check_secret()
    if unauthorized:
        return unauthorized

    sport, error = _parse_sport(sport_name)
    if error:
        return error

    try:
        session = get_repository().get_ideal_baseline(sport)
    except RepositoryError as e:
        logger.exception("Failed to load %s baseline", sport.value)
        return jsonify({"status": "failed", "error": str(e)}), 500

    if session is None:
        return jsonify({"status": "failed", "error": f"No baseline stored for {sport.value}"}), 404

    return jsonify({
        "status": "found",
        "sport": sport.value,
        "session_id": session.id,
        "recorded_at": session.recorded_at.isoformat(),
        "frame_count": session.frame_count,
        "duration": session.duration,
        "quality_score": session.quality_score,
        "metrics": session.metrics.to_dict() if session.metrics else None,
    })
