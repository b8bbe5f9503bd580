# --- Standard library imports ---
import os
import sys
import logging
import logging.handlers
from typing import Optional


# --- Syslog intensity (0=none, 1=errors, 2=warnings, 3=info, 4=full) ---
SYSLOG_LEVELS = {
    1: logging.ERROR,
    2: logging.WARNING,
    3: logging.INFO,
    4: logging.DEBUG,
}

SYSLOG_SOCKET = "/dev/log"
SYSLOG_TAG = "INFRA_WATCHDOG"

# --- Format configuration constants ---
LOG_LEVEL_EMOJIS = {
    logging.DEBUG: "🧱",
    logging.INFO: "🟢",
    logging.WARNING: "⚠️ ",
    logging.ERROR: "❌",
    logging.CRITICAL: "🔥",
}

LEVEL_NAME_MAP = {
    "WARNING": "WARN",
    "CRITICAL": "FATAL",
}

# --- Formatters ---
class EmojiFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        """
        Formatter that prepends an emoji per
        log level and shortens log level names.
        """
        record.levelemoji = LOG_LEVEL_EMOJIS.get(record.levelno, "")
        record.levelname = LEVEL_NAME_MAP.get(record.levelname, record.levelname)
        return super().format(record)


def syslog_level(intensity: int) -> Optional[int]:
    """
    Map the 0–4 logging intensity to a logging level.

    Returns None when syslog output is disabled (intensity 0).
    """
    if intensity <= 0:
        return None
    return SYSLOG_LEVELS.get(min(intensity, 4))


def _syslog_handler(level: int) -> Optional[logging.Handler]:
    if not os.path.exists(SYSLOG_SOCKET):
        return None
    try:
        handler = logging.handlers.SysLogHandler(address=SYSLOG_SOCKET)
    except OSError:
        return None
    handler.ident = f"{SYSLOG_TAG}: "
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)s -- %(message)s"))
    return handler


# --- Public logging setup API ---
def setup_logging(level=logging.INFO, logging_level: int = 0) -> None:
    """
    Configure global logging with emoji decorations on stdout and,
    when `logging_level` > 0, a system log handler gated by that intensity.
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    handlers[0].setLevel(level)
    handlers[0].setFormatter(
        EmojiFormatter(
            fmt="%(asctime)s %(levelemoji)s %(name)s:%(funcName)s → %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    sys_level = syslog_level(logging_level)
    if sys_level is not None:
        handler = _syslog_handler(sys_level)
        if handler is not None:
            handlers.append(handler)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(min(h.level for h in handlers))
    for handler in handlers:
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """
    Return a namespaced logger for any module.
    """
    return logging.getLogger(f"infra_watchdog.{name}")
