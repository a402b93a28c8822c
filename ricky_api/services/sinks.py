"""Event sinks the overload monitor reports through.

A sink is any object with a ``record(event)`` method.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Protocol

from ricky_api.core.oplog import log_ops_event
from ricky_api.core.telemetry import get_meter
from ricky_api.services.metrics import OverloadSample

logger = logging.getLogger(__name__)

SAMPLE = "sample"
OVERLOADED = "overloaded"


@dataclass(frozen=True)
class MonitorEvent:
    kind: str
    sample: OverloadSample

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, **self.sample.to_dict()}


class EventSink(Protocol):
    def record(self, event: MonitorEvent) -> None: ...


class LoggingSink:
    """Plain log lines: overloads at WARNING, raw samples at INFO."""

    def __init__(self, log: logging.Logger = logger) -> None:
        self.log = log

    def record(self, event: MonitorEvent) -> None:
        sample = event.sample
        if event.kind == OVERLOADED:
            self.log.warning(
                f"Overload detected: ratio {sample.load_ratio:.6f} "
                f"({sample.connection_count} connections, {sample.core_count} cores, "
                f"{sample.resident_memory_mib:.1f} MiB)"
            )
        else:
            self.log.info(
                f"Number of connections: {sample.connection_count}, "
                f"number of cores: {sample.core_count}, "
                f"memory usage: {sample.resident_memory_mib:.1f} MiB"
            )


class OplogSink:
    """Structured JSON line on the operations logger."""

    def record(self, event: MonitorEvent) -> None:
        level = logging.WARNING if event.kind == OVERLOADED else logging.INFO
        log_ops_event(event.kind, f"Overload monitor {event.kind}", details=event.to_dict(), level=level)


class SocketIOSink:
    """Broadcast events to every connected Socket.IO client."""

    EVENT_NAMES = {OVERLOADED: "overload", SAMPLE: "overload_sample"}

    def __init__(self, socketio) -> None:
        self.socketio = socketio

    def record(self, event: MonitorEvent) -> None:
        self.socketio.emit(self.EVENT_NAMES.get(event.kind, event.kind), event.to_dict())


class TelemetrySink:
    """OpenTelemetry instruments fed from monitor events."""

    def __init__(self, meter=None) -> None:
        meter = meter or get_meter()
        self.load_ratio = meter.create_histogram(
            "ricky_api.overload.load_ratio",
            description="Connections per core per MiB of resident memory",
        )
        self.overload_counter = meter.create_counter(
            "ricky_api.overload.detected",
            description="Number of ticks that exceeded the overload threshold",
        )

    def record(self, event: MonitorEvent) -> None:
        if event.kind == OVERLOADED:
            self.overload_counter.add(1)
        else:
            self.load_ratio.record(event.sample.load_ratio)


class CompositeSink:
    """Fan one event out to several sinks, in order.  A failing sink is logged and skipped."""

    def __init__(self, sinks: Iterable[EventSink]) -> None:
        self.sinks = list(sinks)

    def record(self, event: MonitorEvent) -> None:
        for sink in self.sinks:
            try:
                sink.record(event)
            except Exception:
                logger.error(f"{type(sink).__name__} failed to record {event.kind} event", exc_info=True)
