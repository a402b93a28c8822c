"""
Database connection management.

One ``Database`` is built at process start and handed to whatever needs it
(the overload monitor reads its connection count).  There is no module-level
engine.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, NoSuchModuleError

from ricky_api.core.config import Config, parse_setting
from ricky_api.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Database:
    """Owns the SQLAlchemy engine and tracks its open pooled connections."""

    def __init__(self, url: str, *, max_pool_size: int = 50, timeout: float = 5) -> None:
        self.url = url
        self._lock = threading.Lock()
        self._open_connections = 0
        self.engine = self._create_engine(url, max_pool_size, timeout)

        event.listen(self.engine, "connect", self._on_connect)
        event.listen(self.engine, "close", self._on_close)
        event.listen(self.engine, "close_detached", self._on_close_detached)

    @classmethod
    def from_config(cls, config=Config) -> "Database":
        return cls(
            config.DATABASE_URL,
            max_pool_size=parse_setting(config, "MAX_POOL_SIZE", int),
            timeout=parse_setting(config, "DB_TIMEOUT", float),
        )

    @staticmethod
    def _create_engine(url: str, max_pool_size: int, timeout: float) -> Any:
        try:
            parsed = make_url(url)
            parsed.get_dialect()
        except (ArgumentError, NoSuchModuleError) as exc:
            # Only the scheme is logged; the URL may carry credentials
            scheme = url.split(":", 1)[0]
            logger.error(f"Unsupported DATABASE_URL scheme {scheme!r}")
            raise ConfigurationError(
                f"DATABASE_URL must be a SQLAlchemy URL with an installed dialect, got scheme {scheme!r}"
            ) from exc

        kwargs: dict = {"echo": False, "pool_pre_ping": True}

        if parsed.get_backend_name() == "sqlite":
            # SQLite keeps its default pool; make sure the file's folder exists
            if parsed.database and parsed.database != ":memory:":
                Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
        else:
            kwargs["pool_size"] = max_pool_size
            kwargs["pool_timeout"] = timeout

        engine = create_engine(parsed, **kwargs)

        # Instrument the engine for OpenTelemetry
        SQLAlchemyInstrumentor().instrument(engine=engine)

        return engine

    # -----------------------------------------------------------------------
    # Pool bookkeeping
    # -----------------------------------------------------------------------

    def _on_connect(self, dbapi_connection, connection_record) -> None:
        with self._lock:
            self._open_connections += 1

    def _on_close(self, dbapi_connection, connection_record) -> None:
        with self._lock:
            self._open_connections = max(0, self._open_connections - 1)

    def _on_close_detached(self, dbapi_connection) -> None:
        with self._lock:
            self._open_connections = max(0, self._open_connections - 1)

    def active_connection_count(self) -> int:
        """Number of DBAPI connections currently held open by the pool."""
        with self._lock:
            return self._open_connections

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def connect(self) -> bool:
        """Ping the database.  Logs the outcome instead of raising."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            logger.error(f"Error connecting to database {self.engine.url!r}", exc_info=True)
            return False

        logger.info("Connected to database successfully")
        return True

    def dispose(self) -> None:
        """Close every pooled connection."""
        self.engine.dispose()
        logger.info("Database connection pool disposed")
