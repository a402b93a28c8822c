"""JSON error responses for unknown routes and unhandled exceptions."""

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException, NotFound

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(NotFound)
    def handle_not_found(exc):
        return jsonify({"status": "error", "message": "Route not found"}), 404

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        return jsonify({"status": "error", "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_exception(exc: Exception):
        logger.error("Unhandled error while serving request", exc_info=exc)
        status = getattr(exc, "status", None)
        if not isinstance(status, int) or not 400 <= status < 600:
            status = 500
        return jsonify({"status": "error", "message": str(exc) or "Internal server error"}), status
