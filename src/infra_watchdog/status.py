# --- Standard library imports ---
import socket
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional

# --- Project imports ---
from . import __version__
from .logger import get_logger


SEP = " ... "

STATUS_PREFIX = {
    logging.DEBUG: "INFO",
    logging.INFO: "INFO",
    logging.WARNING: "WARNING",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "FATAL",
}


class StatusSink:
    """
    Heartbeat (tick) file plus log output.

    The status file is truncated at the start of every invocation and gets
    one line per significant step, so an absent or stale file signals that
    the watchdog is not running. Nothing written here feeds back into
    decisions.
    """

    def __init__(self, path: Optional[str], name: str = "infra_watchdog"):
        self.path = Path(path) if path else None
        self.tag = f"{name} {__version__}"
        self.host = socket.gethostname()
        self.logger = get_logger("status")

    def _line(self, level: int, message: str) -> str:
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        prefix = STATUS_PREFIX.get(level, "INFO")
        return f"{prefix} -- {stamp} -- {self.tag} -- {self.host}: {message}\n"

    def status(self, message: str, level: int = logging.INFO, append: bool = True) -> None:
        """
        Write a line to the status file.

        Without `append` the file is replaced; an empty message with
        `append=False` just removes the file.
        """
        if self.path is None:
            return

        if not append:
            self.path.unlink(missing_ok=True)

        if message:
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(self._line(level, message))

    def clear(self) -> None:
        self.status("", append=False)

    def log(self, level: int, message: str) -> None:
        """Log a message and mirror it into the status file."""
        self.logger.log(level, message, stacklevel=2)
        self.status(message, level=level)
