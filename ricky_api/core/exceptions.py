"""Exception hierarchy for the API process and its overload monitor."""


class RickyError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(RickyError, ValueError):
    """An invalid setting was supplied; raised at construction time."""


class MonitorError(RickyError):
    """A single monitor tick could not be evaluated.

    The monitor logs these and skips the tick; they never reach the caller
    of ``start()``.
    """


class TransientMetricsError(MonitorError):
    """A metrics source failed to answer for this tick."""

    def __init__(self, source: str, cause: BaseException):
        super().__init__(f"{source} unavailable: {cause}")
        self.source = source
        self.cause = cause


class DegenerateComputationError(MonitorError):
    """The load ratio has a zero denominator or is not finite."""
