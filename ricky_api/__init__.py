from typing import Optional

from flask import Flask
from flask_socketio import SocketIO

socketio = SocketIO()


def create_app(async_mode: Optional[str] = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.

    *async_mode* overrides ``SOCKETIO_ASYNC_MODE``.  The overload monitor
    emits from a ``threading`` thread, so "eventlet" is only safe once
    ``eventlet.monkey_patch()`` has run (see ``wsgi.py``).
    """
    app = Flask(__name__)
    app.config.from_object("ricky_api.core.config.Config")

    # Initialize extensions
    socketio.init_app(
        app,
        async_mode=async_mode or app.config["SOCKETIO_ASYNC_MODE"],
        cors_allowed_origins="*",
    )

    from ricky_api.core.telemetry import init_telemetry

    init_telemetry()

    # Instrument Flask app for OpenTelemetry
    from opentelemetry.instrumentation.flask import FlaskInstrumentor

    FlaskInstrumentor().instrument_app(app)

    # Request logging + security headers
    from ricky_api.web.middleware import register_middleware

    register_middleware(app)

    # Register blueprints and JSON error handlers
    from ricky_api.web.errors import register_error_handlers
    from ricky_api.web.routes import register_blueprints

    register_blueprints(app)
    register_error_handlers(app)

    return app
