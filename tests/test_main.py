import signal

import pytest

import main


class FakeMonitor:
    def __init__(self):
        self.stopped = 0

    def stop(self):
        self.stopped += 1


class FakeDatabase:
    def __init__(self):
        self.disposed = 0

    def dispose(self):
        self.disposed += 1


@pytest.fixture
def installed(monkeypatch):
    handlers = {}
    monkeypatch.setattr(main.signal, "signal", lambda signum, handler: handlers.__setitem__(signum, handler))
    monitor, database = FakeMonitor(), FakeDatabase()
    main.install_shutdown_handlers(monitor, database)
    return handlers, monitor, database


def test_handlers_cover_interrupt_and_terminate(installed):
    handlers, _, _ = installed
    assert set(handlers) == {signal.SIGINT, signal.SIGTERM}


@pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGTERM])
def test_shutdown_stops_monitor_and_disposes_pool(installed, signum):
    handlers, monitor, database = installed

    with pytest.raises(SystemExit) as exc_info:
        handlers[signum](signum, None)

    assert exc_info.value.code == 0
    assert monitor.stopped == 1
    assert database.disposed == 1


def test_dev_server_uses_threading_mode():
    assert main.socketio.async_mode == "threading"
