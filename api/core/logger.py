"""Structured logging for the API, the CLI and Alembic.

Everything goes through structlog, including stdlib records from uvicorn and
SQLAlchemy, and ends up on stdout. ``LOG_FORMAT=json`` switches the console
renderer for one JSON object per line; ``LOG_LEVEL`` sets the threshold.

Usage:
    from core import get_logger
    logger = get_logger(__name__)
    logger.info("author.created", author_id=12)

    log = LoggerService(__name__)
    log.warn("request.not_found", context="AuthorsController.GetById", entity_id=12)
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars
from structlog.types import Processor

__all__ = [
    "LoggerService",
    "bind_contextvars",
    "clear_contextvars",
    "configure_logging",
    "get_logger",
]

_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


def _level_from_env() -> int:
    name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _renderer() -> Processor:
    if os.environ.get("LOG_FORMAT", "").lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True, exception_formatter=structlog.dev.plain_traceback
    )


def configure_logging() -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Safe to call more than once; the root handlers are replaced each time.
    """
    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                _renderer(),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(_level_from_env())

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Structlog logger named after the calling module."""
    return structlog.stdlib.get_logger(name)


class LoggerService:
    """Leveled logger whose every record names the call site that wrote it.

    ``context`` identifies the caller (for request handlers,
    ``"<Controller>.<Action>"``) and is emitted as a structured field so
    lines from every entity controller can be filtered the same way. It
    falls back to the logger name.
    """

    def __init__(self, name: str | None = None):
        self.name = name or "app"
        self._logger = get_logger(name)

    def _write(self, level: str, message: str, context: str | None, fields) -> None:
        getattr(self._logger, level)(message, context=context or self.name, **fields)

    def info(self, message: str, *, context: str | None = None, **fields: Any):
        self._write("info", message, context, fields)

    def warn(self, message: str, *, context: str | None = None, **fields: Any):
        self._write("warning", message, context, fields)

    def error(self, message: str, *, context: str | None = None, **fields: Any):
        self._write("error", message, context, fields)

    def debug(self, message: str, *, context: str | None = None, **fields: Any):
        self._write("debug", message, context, fields)
