"""Central logging configuration for TimetableBot."""

import logging
import os
import sys
from contextvars import ContextVar
from colorlog import ColoredFormatter

DEBUG_ENV_VAR = "TIMETABLEBOT_DEBUG"
NO_REQUEST_ID = "no-request-id"

LOG_FORMAT = (
    "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s [%(request_id)s] %(name)s: %(message)s"
)
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

# Third-party libraries that are too chatty below WARNING
NOISY_LOGGERS = ("aiohttp.access", "aiohttp.server", "httpx", "httpcore", "asyncio", "aiosqlite")

# Context variable for storing request correlation ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Get current request correlation ID from context.

    Returns:
        Current request correlation ID, or "no-request-id" if not set
    """
    request_id = request_id_var.get()
    return request_id if request_id else NO_REQUEST_ID


class CorrelationIdFilter(logging.Filter):
    """Add correlation ID to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


def _env_debug_enabled() -> bool:
    return os.environ.get(DEBUG_ENV_VAR, "").strip().lower() in ("1", "true", "yes", "on")


def configure_logging(level_name: str = "INFO", debug: bool = False) -> logging.Logger:
    """Configure the root logger with a colored stderr handler.

    Calling this again replaces the handler installed by a previous call
    instead of stacking a second one.

    Args:
        level_name: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        debug: Force DEBUG regardless of ``level_name``

    Returns:
        The package logger
    """
    if debug or _env_debug_enabled():
        level_name = "DEBUG"
    level = getattr(logging, level_name.upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_timetablebot_handler", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS))
    handler.addFilter(CorrelationIdFilter())
    handler._timetablebot_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    package_logger = logging.getLogger("timetablebot")
    package_logger.setLevel(level)
    package_logger.debug("Logging configured at %s", logging.getLevelName(level))
    return package_logger

