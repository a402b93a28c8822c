"""
Ricky API entry point (development server, threading mode).

All application logic lives inside the ``ricky_api`` package.
Run with:  uv run python main.py
Production runs ``wsgi.py`` under Gunicorn with eventlet workers.
"""

import logging
import signal
import sys

from ricky_api import create_app, socketio
from ricky_api.core.config import Config, parse_setting
from ricky_api.database.connection import Database
from ricky_api.services.monitor import start_monitor

logging.basicConfig(level=Config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("ricky_api")

app = create_app(async_mode="threading")


def install_shutdown_handlers(monitor, database):
    """Stop the monitor and close the pool on SIGINT / SIGTERM, then exit 0."""

    def shutdown(signum, frame):
        logger.info("Server is shutting down...")
        monitor.stop()
        database.dispose()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)
    return shutdown


if __name__ == "__main__":
    port = parse_setting(Config, "PORT", int)
    database = Database.from_config(Config)
    database.connect()
    monitor = start_monitor(database, socketio)
    install_shutdown_handlers(monitor, database)

    logger.info(f"Server is running on http://localhost:{port}")
    socketio.run(
        app,
        debug=Config.DEBUG,
        host=Config.HOST,
        port=port,
        use_reloader=False,
        allow_unsafe_werkzeug=True,
    )
