import io
import json
import logging

from fakes import RecordingSink

from ricky_api.core.oplog import ops_logger
from ricky_api.services.metrics import build_sample
from ricky_api.services.sinks import (
    OVERLOADED,
    SAMPLE,
    CompositeSink,
    LoggingSink,
    MonitorEvent,
    OplogSink,
    SocketIOSink,
    TelemetrySink,
)

MIB = 1024 * 1024


def overloaded_event():
    return MonitorEvent(OVERLOADED, build_sample(10, 4, 2 * MIB, threshold=0.5))


def sample_event():
    return MonitorEvent(SAMPLE, build_sample(1, 8, 100 * MIB, threshold=0.5))


def test_logging_sink_warns_on_overload(caplog):
    with caplog.at_level(logging.INFO, logger="ricky_api.services.sinks"):
        LoggingSink().record(overloaded_event())

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert "Overload detected" in record.getMessage()


def test_logging_sink_logs_raw_sample(caplog):
    with caplog.at_level(logging.INFO, logger="ricky_api.services.sinks"):
        LoggingSink().record(sample_event())

    message = caplog.records[-1].getMessage()
    assert "Number of connections: 1" in message
    assert "number of cores: 8" in message
    assert "memory usage: 100.0 MiB" in message


def test_oplog_sink_writes_json():
    handler = ops_logger.handlers[0]
    buffer = io.StringIO()
    previous = handler.setStream(buffer)
    try:
        OplogSink().record(overloaded_event())
    finally:
        handler.setStream(previous)

    line = buffer.getvalue().strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["event"] == OVERLOADED
    assert payload["levelname"] == "WARNING"
    assert payload["name"] == ops_logger.name
    assert payload["details"]["load_ratio"] == 1.25


def test_socketio_sink_maps_event_names():
    class Emitter:
        def __init__(self):
            self.emitted = []

        def emit(self, name, payload):
            self.emitted.append((name, payload))

    emitter = Emitter()
    sink = SocketIOSink(emitter)
    sink.record(overloaded_event())
    sink.record(sample_event())

    assert [name for name, _ in emitter.emitted] == ["overload", "overload_sample"]
    assert emitter.emitted[1][1]["kind"] == SAMPLE


def test_telemetry_sink_feeds_instruments():
    class Instrument:
        def __init__(self):
            self.values = []

        def add(self, value, attributes=None):
            self.values.append(value)

        def record(self, value, attributes=None):
            self.values.append(value)

    class Meter:
        def __init__(self):
            self.histogram = Instrument()
            self.counter = Instrument()

        def create_histogram(self, name, description=""):
            return self.histogram

        def create_counter(self, name, description=""):
            return self.counter

    meter = Meter()
    sink = TelemetrySink(meter)
    sink.record(overloaded_event())
    sink.record(sample_event())

    assert meter.counter.values == [1]
    assert meter.histogram.values == [sample_event().sample.load_ratio]


def test_composite_sink_isolates_failures(caplog):
    class Broken:
        def record(self, event):
            raise RuntimeError("socket closed")

    first, last = RecordingSink(), RecordingSink()
    with caplog.at_level(logging.ERROR):
        CompositeSink([first, Broken(), last]).record(overloaded_event())

    assert first.kinds == [OVERLOADED]
    assert last.kinds == [OVERLOADED]
    assert "Broken failed to record overloaded event" in caplog.text
