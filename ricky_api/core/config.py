"""Application configuration."""

import os
from pathlib import Path

from ricky_api.core.exceptions import ConfigurationError

# Base directory of the ricky-api project
BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Config:
    SECRET_KEY = os.environ.get(
        "SECRET_KEY",
        "change-me-in-production-" + os.urandom(8).hex(),
    )
    API_VERSION = "1.0.0"

    # Numeric settings stay strings here and are parsed with ``parse_setting``
    HOST = os.environ.get("HOST", "0.0.0.0")
    PORT = os.environ.get("PORT", "3000")
    DEBUG = os.environ.get("DEBUG", "false").lower() == "true"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # "threading" for main.py; wsgi.py switches to "eventlet" after monkey patching
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "threading")

    # -----------------------------------------------------------------------
    # Database (any SQLAlchemy URL)
    # -----------------------------------------------------------------------

    DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{BASE_DIR / 'data' / 'ricky.db'}")
    MAX_POOL_SIZE = os.environ.get("MAX_POOL_SIZE", "50")
    DB_TIMEOUT = os.environ.get("DB_TIMEOUT", "5")  # seconds

    # -----------------------------------------------------------------------
    # Overload monitor (parsed and validated by MonitorConfig.from_config)
    # -----------------------------------------------------------------------

    TIME_CHECK_OVERLOAD = os.environ.get("TIME_CHECK_OVERLOAD", "5000")  # ms between ticks
    MAX_CONNECTIONS_ALLOWED = os.environ.get("MAX_CONNECTIONS_ALLOWED", "1.0")


def parse_setting(config, name: str, kind=int, *, positive: bool = True):
    """
    Read ``config.<name>`` and convert it with *kind*.

    Raises :class:`ConfigurationError` naming the setting when the value is
    missing, unparseable or (with *positive*) not greater than zero.
    """
    raw = getattr(config, name, None)
    try:
        value = kind(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number ({kind.__name__}), got {raw!r}") from exc
    if positive and not value > 0:
        raise ConfigurationError(f"{name} must be greater than zero, got {raw!r}")
    return value
