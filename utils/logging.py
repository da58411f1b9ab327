# utils/logging.py
"""Logging setup for the ArcLoom engine and its command-line tool.

Library modules only ask structlog for a logger. Nothing is emitted until
:func:`setup_logging` renders structlog events to text and hands them to the
standard library, where a console handler and an optional rotating log file
pick them up. Handlers installed by the host application are left alone.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

import structlog
from rich.console import Console
from rich.logging import RichHandler

from config import LOG_LEVELS, settings

logger = structlog.get_logger(__name__)

__all__ = ["close_logging", "resolve_log_path", "setup_logging"]

# handlers added by setup_logging, removed again on the next call
_installed: list[logging.Handler] = []


def resolve_log_path(log_file: str | None = None) -> Path | None:
    """Return the log file location, or ``None`` when no file is configured.

    Relative names are placed under ``BASE_OUTPUT_DIR``.
    """
    name = log_file if log_file is not None else settings.LOG_FILE
    if not name:
        return None
    path = Path(name).expanduser()
    if not path.is_absolute():
        path = Path(settings.BASE_OUTPUT_DIR) / path
    return path


def _plain_formatter() -> logging.Formatter:
    return logging.Formatter(settings.LOG_FORMAT, datefmt=settings.LOG_DATE_FORMAT)


def _console_handler(level: str, rich_output: bool) -> logging.Handler:
    if rich_output:
        # stderr keeps the CLI's tables and panels on stdout clean
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_path=False,
            markup=False,
        )
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(_plain_formatter())
    handler.setLevel(level)
    return handler


def _file_handler(path: Path) -> logging.Handler | None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=settings.LOG_FILE_MAX_BYTES,
            backupCount=settings.LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as exc:
        logger.error(
            "Could not open log file; logging to the console only.",
            path=str(path),
            error=str(exc),
        )
        return None
    handler.setFormatter(_plain_formatter())
    return handler


def _install(handler: logging.Handler) -> None:
    logging.getLogger().addHandler(handler)
    _installed.append(handler)


def close_logging() -> None:
    """Flush, close and detach every handler added by :func:`setup_logging`."""
    root_logger = logging.getLogger()
    while _installed:
        handler = _installed.pop()
        root_logger.removeHandler(handler)
        handler.close()


def setup_logging(
    level: str | None = None,
    log_file: str | None = None,
    *,
    file_logging: bool = True,
    rich_output: bool | None = None,
) -> Path | None:
    """Configure structlog and the standard-library handlers.

    ``level`` and ``log_file`` override ``ARCLOOM_LOG_LEVEL`` and ``LOG_FILE``
    for this process and ``file_logging=False`` skips the file entirely.
    Calling it again replaces the handlers of the previous call. Returns the
    log file in use, if any.
    """
    level = (level or settings.LOG_LEVEL_STR).strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"unknown log level {level!r}")
    if rich_output is None:
        rich_output = settings.ENABLE_RICH_OUTPUT

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    close_logging()
    logging.getLogger().setLevel(level)
    _install(_console_handler(level, rich_output))

    path = resolve_log_path(log_file) if file_logging else None
    if path is not None:
        handler = _file_handler(path)
        if handler is None:
            path = None
        else:
            _install(handler)

    logger.info(
        "Logging configured.",
        level=level,
        log_file=str(path) if path is not None else None,
    )
    return path
