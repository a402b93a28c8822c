"""JSON routes."""

from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

views_bp = Blueprint("views", __name__)


@views_bp.route("/")
def index():
    return jsonify(
        {
            "message": "Welcome to Ricky V1 API",
            "status": "success",
            "version": current_app.config["API_VERSION"],
        }
    )


@views_bp.route("/health")
def health():
    return jsonify(
        {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        }
    )
