"""
Health check endpoints.

Provides root status and health check routes for monitoring.
"""

from flask import Blueprint, jsonify

from services.models import Sport
from services.storage import is_configured

health_bp = Blueprint("health", __name__)


@health_bp.route("/", methods=["GET"])
def root():
    """
    Root status endpoint.

    Returns:
        JSON with service name and status.
    """
    return jsonify({"message": "Swing Metrics API", "status": "running"})


@health_bp.route("/health", methods=["GET"])
def health():
    """
    Health check endpoint.

    Returns:
        JSON with health status, supported sports and whether session
        storage is backed by Supabase.
    """
    return jsonify({
        "status": "healthy",
        "service": "Swing Phase Detection and Metrics API",
        "sports": [sport.value for sport in Sport],
        "supabase_configured": is_configured(),
    })
