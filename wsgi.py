import eventlet

eventlet.monkey_patch()

import atexit  # noqa: E402

from ricky_api import create_app, socketio  # noqa: E402
from ricky_api.database.connection import Database  # noqa: E402
from ricky_api.services.monitor import start_monitor  # noqa: E402

# Monkey patching turns the monitor thread into a green thread, so emits are safe
app = create_app(async_mode="eventlet")
database = Database.from_config()
database.connect()
monitor = start_monitor(database, socketio)


@atexit.register
def shutdown() -> None:
    monitor.stop()
    database.dispose()


if __name__ == "__main__":
    # This file is intended to be run by Gunicorn:
    # gunicorn --worker-class eventlet -w 1 wsgi:app
    socketio.run(app)
