class WatchdogError(Exception):
    """Base class for every error raised by the watchdog."""


class ConfigError(WatchdogError):
    """Misconfiguration detected before any probing starts."""


class FatalError(WatchdogError):
    """
    Abort the current invocation.

    A silent fatal error is logged but ends the process with exit code 0,
    e.g. the monitoring backend is unreachable during the very outage
    being monitored.
    """

    def __init__(self, message: str, silent: bool = False):
        super().__init__(message)
        self.silent = silent

    @property
    def exit_code(self) -> int:
        return 0 if self.silent else 1


class TelemetryError(FatalError):
    """Telemetry could not be delivered after all attempts."""

    def __init__(self, message: str, status_code: int):
        # Status code 0 means no HTTP response at all (transport failure)
        super().__init__(message, silent=(status_code == 0))
        self.status_code = status_code
