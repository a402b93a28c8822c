"""Background thread that periodically checks the process for overload.

Every tick reads the number of open database connections, the logical core
count and the resident memory of this process, then computes::

    load_ratio = connections / cores / resident_memory_mib

A ratio strictly above ``max_connections_allowed_ratio`` is reported as an
``overloaded`` event.  Every evaluated tick is also handed to the
observability sink as a ``sample`` event.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ricky_api.core.config import Config, parse_setting
from ricky_api.core.exceptions import ConfigurationError, MonitorError, TransientMetricsError
from ricky_api.core.oplog import log_ops_event
from ricky_api.core.telemetry import get_meter, get_tracer
from ricky_api.services.metrics import (
    ConnectionRegistry,
    HostMetricsSource,
    OverloadSample,
    PsutilHostMetrics,
    build_sample,
)
from ricky_api.services.sinks import (
    OVERLOADED,
    SAMPLE,
    CompositeSink,
    EventSink,
    LoggingSink,
    MonitorEvent,
    OplogSink,
    SocketIOSink,
    TelemetrySink,
)

logger = logging.getLogger(__name__)

# OpenTelemetry Metrics
meter = get_meter()
tick_counter = meter.create_counter(
    "ricky_api.monitor.ticks",
    description="Number of overload monitor ticks evaluated",
)
skipped_tick_counter = meter.create_counter(
    "ricky_api.monitor.ticks_skipped",
    description="Number of overload monitor ticks skipped because metrics could not be evaluated",
)

tracer = get_tracer()


class MonitorState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass(frozen=True)
class MonitorConfig:
    tick_interval_ms: int = 5000
    max_connections_allowed_ratio: float = 1.0

    def __post_init__(self) -> None:
        interval = self.tick_interval_ms
        if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
            raise ConfigurationError(f"tick_interval_ms must be a positive integer, got {interval!r}")

        ratio = self.max_connections_allowed_ratio
        if (
            isinstance(ratio, bool)
            or not isinstance(ratio, (int, float))
            or not math.isfinite(ratio)
            or ratio <= 0
        ):
            raise ConfigurationError(
                f"max_connections_allowed_ratio must be a positive finite number, got {ratio!r}"
            )

    @property
    def tick_interval(self) -> float:
        """Tick interval in seconds."""
        return self.tick_interval_ms / 1000

    @classmethod
    def from_config(cls, config=Config) -> "MonitorConfig":
        """Build from the string/number settings on a ``Config``-like object."""
        interval = parse_setting(config, "TIME_CHECK_OVERLOAD", int, positive=False)
        ratio = parse_setting(config, "MAX_CONNECTIONS_ALLOWED", float, positive=False)
        return cls(tick_interval_ms=interval, max_connections_allowed_ratio=ratio)


class OverloadMonitor:
    """Samples connection and host metrics on a daemon thread."""

    def __init__(
        self,
        config: MonitorConfig,
        connections: ConnectionRegistry,
        host_metrics: Optional[HostMetricsSource] = None,
        *,
        reporter: Optional[EventSink] = None,
        observer: Optional[EventSink] = None,
    ) -> None:
        if not isinstance(config, MonitorConfig):
            raise ConfigurationError(f"expected MonitorConfig, got {type(config).__name__}")

        self.config = config
        self.connections = connections
        self.host_metrics = host_metrics or PsutilHostMetrics()
        self.reporter = reporter or LoggingSink()
        self.observer = observer or LoggingSink()

        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @property
    def state(self) -> MonitorState:
        with self._lock:
            return MonitorState.RUNNING if self._thread is not None else MonitorState.STOPPED

    @property
    def is_running(self) -> bool:
        return self.state is MonitorState.RUNNING

    def start(self) -> None:
        """Start ticking every ``tick_interval_ms``.  No-op when already running."""
        with self._lock:
            if self._thread is not None:
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name="OverloadMonitor",
                daemon=True,
            )
            self._thread.start()

        log_ops_event(
            "monitor_started",
            "Overload monitor started",
            details={
                "tick_interval_ms": self.config.tick_interval_ms,
                "max_connections_allowed_ratio": self.config.max_connections_allowed_ratio,
            },
        )

    def stop(self, timeout: float = 5.0) -> None:
        """
        Stop scheduling ticks.  Safe to call from any thread, any number of
        times.  A tick already running is allowed to finish.
        """
        with self._lock:
            thread, stop_event = self._thread, self._stop_event
            self._thread = None
            self._stop_event = None

        if thread is None:
            return

        stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=timeout)
        log_ops_event("monitor_stopped", "Overload monitor stopped")

    def tick(self) -> Optional[OverloadSample]:
        """
        Evaluate one sample and report it.  Returns *None* when the tick was
        skipped because the metrics could not be read or evaluated.
        """
        with tracer.start_as_current_span("overload_monitor.tick") as span:
            try:
                sample = self._collect()
            except MonitorError as exc:
                skipped_tick_counter.add(1, {"reason": type(exc).__name__})
                span.set_attribute("overload.skipped", type(exc).__name__)
                logger.warning(f"Overload check skipped: {exc}")
                return None

            span.set_attribute("overload.connection_count", sample.connection_count)
            span.set_attribute("overload.core_count", sample.core_count)
            span.set_attribute("overload.resident_memory_mib", sample.resident_memory_mib)
            span.set_attribute("overload.load_ratio", sample.load_ratio)
            span.set_attribute("overload.overloaded", sample.overloaded)

            tick_counter.add(1, {"overloaded": sample.overloaded})
            if sample.overloaded:
                self.reporter.record(MonitorEvent(OVERLOADED, sample))
            self.observer.record(MonitorEvent(SAMPLE, sample))
            return sample

    def _collect(self) -> OverloadSample:
        try:
            connection_count = self.connections.active_connection_count()
        except Exception as exc:
            raise TransientMetricsError("connection registry", exc) from exc

        try:
            core_count = self.host_metrics.logical_core_count()
            memory_bytes = self.host_metrics.resident_memory_bytes()
        except Exception as exc:
            raise TransientMetricsError("host metrics", exc) from exc

        return build_sample(
            connection_count,
            core_count,
            memory_bytes,
            self.config.max_connections_allowed_ratio,
        )

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.config.tick_interval):
            try:
                self.tick()
            except Exception:
                logger.error("Error in overload monitor tick", exc_info=True)


def start_monitor(database: ConnectionRegistry, socketio=None, config: Optional[MonitorConfig] = None) -> OverloadMonitor:
    """Build the monitor with the default sinks, start it and return it."""
    config = config or MonitorConfig.from_config(Config)

    reporters: list = [LoggingSink(), OplogSink()]
    if socketio is not None:
        reporters.append(SocketIOSink(socketio))

    monitor = OverloadMonitor(
        config,
        database,
        reporter=CompositeSink(reporters),
        observer=CompositeSink([LoggingSink(), TelemetrySink()]),
    )
    monitor.start()
    return monitor
