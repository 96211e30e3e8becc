"""
Structured Logging Configuration
Every module logs structlog events through `get_logger`. Nothing is emitted
until a host calls `configure_logging`, which attaches one handler to the
`screenspec` logger and leaves the host's root logger alone.
"""

import logging
import sys
from typing import IO, Any

import structlog
from pythonjsonlogger import jsonlogger

from .config import Settings

PACKAGE_LOGGER = "screenspec"


def _handler(json_logs: bool, stream: IO[str] | None) -> logging.Handler:
    handler = logging.StreamHandler(stream or sys.stderr)
    if json_logs:
        handler.setFormatter(jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s %(name)s %(message)s"))
    return handler


def configure_logging(level: str = "INFO", json_logs: bool = False, stream: IO[str] | None = None) -> logging.Logger:
    """
    Route resolver and runtime events to a stream.

    Calling it again replaces the previous handler, so hosts can switch
    format or level at runtime.

    Args:
        level: Log level name; unknown names fall back to INFO
        json_logs: One JSON object per line instead of console text
        stream: Destination, stderr by default

    Returns:
        The configured package logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    package_logger.addHandler(_handler(json_logs, stream))
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    package_logger.propagate = False

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    return package_logger


def configure_from_settings(settings: Settings) -> logging.Logger:
    return configure_logging(level=settings.log_level, json_logs=settings.json_logs)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Structured logger for a module; pass `__name__`."""
    return structlog.get_logger(name)


class LogContext:
    """
    Bind fields (document id, session id) to every event logged in scope.

    Previous values of the same keys are restored on exit, so contexts nest.
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._tokens: Any = None

    def __enter__(self) -> "LogContext":
        self._tokens = structlog.contextvars.bind_contextvars(**self.fields)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
