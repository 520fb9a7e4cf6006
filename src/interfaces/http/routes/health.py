from __future__ import annotations

from flask import Blueprint, current_app, jsonify

health_bp = Blueprint("health_bp", __name__)


@health_bp.route("/health")
def health():
    return jsonify({"status": "ok", "service": current_app.config.get("SERVICE_NAME")}), 200


@health_bp.route("/readyz")
def readyz():
    """Ready once the collaborators this service needs are wired in."""
    required = current_app.config.get("REQUIRED_EXTENSIONS", ())
    missing = [name for name in required if current_app.extensions.get(name) is None]
    status = 200 if not missing else 503
    payload = {
        "status": "ready" if not missing else "blocked",
        "missing": missing,
    }
    return jsonify(payload), status
