"""
Operations log for events an operator should see (overload alerts, monitor
lifecycle).  Lines are structured JSON so log shippers can index them.
"""

import logging
import sys
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

ops_logger = logging.getLogger("ricky_api.ops")
ops_logger.setLevel(logging.INFO)

# Keep ops lines out of the plain-text root handler
ops_logger.propagate = False

if not ops_logger.handlers:
    log_handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s", datefmt="%Y-%m-%dT%H:%M:%S%z"
    )
    log_handler.setFormatter(formatter)
    ops_logger.addHandler(log_handler)


def log_ops_event(
    event: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    level: int = logging.INFO,
) -> None:
    """
    Emit one structured operations event.

    :param event: Machine-readable event name (e.g. "overloaded", "monitor_started")
    :param message: Human-readable summary
    :param details: Extra fields merged into the JSON record
    :param level: Logging level for the record
    """
    ops_logger.log(level, message, extra={"event_type": "ops", "event": event, "details": details or {}})
