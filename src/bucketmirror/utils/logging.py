"""Structured logging for the mirror.

structlog renders each event into a single line, and one handler on the root
logger delivers it: colored console output on stderr, or a rotating file when
``LoggingSettings.file_path`` is set. stdout stays free for command output.
"""

import functools
import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import List, Optional

import colorlog
import structlog
from structlog.typing import Processor

from ..config.settings import get_settings


HANDLER_NAME = "bucketmirror"

# Chatty third-party loggers, held at WARNING unless DEBUG is requested
SDK_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3")

CONSOLE_FORMAT = "%(log_color)s%(asctime)s %(levelname)-8s%(reset)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}

FILE_MAX_BYTES = 10 * 1024 * 1024
FILE_BACKUP_COUNT = 5


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None
) -> None:
    """Configure structlog and install the mirror's log handler.

    Arguments override the matching ``LoggingSettings`` values. ``log_format``
    is ``console`` (key=value text) or ``json`` (one JSON object per line,
    carrying its own level, logger and timestamp). Calling this again replaces
    the handler installed by the previous call.
    """
    options = get_settings().logging
    level = (log_level or options.level).upper()
    format_type = (log_format or options.format).lower()
    file_path = log_file or options.file_path

    structlog.configure(
        processors=_event_processors(format_type),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # Module-level loggers must pick up a later reconfiguration
        cache_logger_on_first_use=False,
    )

    if file_path:
        handler = _file_handler(file_path, format_type)
    else:
        handler = _console_handler(format_type)
    handler.set_name(HANDLER_NAME)
    handler.setLevel(level)

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)
        existing.close()
    root.addHandler(handler)
    root.setLevel(level)

    sdk_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)


def _event_processors(format_type: str) -> List[Processor]:
    processors: List[Processor] = [structlog.stdlib.filter_by_level]

    if format_type == "json":
        processors += [
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    else:
        # Time, level and logger name come from the handler's format string
        processors += [
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    return processors


def _console_handler(format_type: str) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stderr)
    if format_type == "json":
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler.setFormatter(colorlog.ColoredFormatter(
            CONSOLE_FORMAT,
            datefmt=DATE_FORMAT,
            reset=True,
            log_colors=LOG_COLORS
        ))
    return handler


def _file_handler(file_path: str, format_type: str) -> logging.Handler:
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        file_path,
        maxBytes=FILE_MAX_BYTES,
        backupCount=FILE_BACKUP_COUNT,
        encoding="utf-8"
    )
    if format_type == "json":
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_execution_time(func):
    """Record the duration of each call at debug level.

    Failures are timed too, but reporting the exception is left to whoever
    handles it.
    """
    logger = get_logger(func.__module__)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        started = time.perf_counter()
        outcome = "completed"
        try:
            return func(*args, **kwargs)
        except Exception:
            outcome = "failed"
            raise
        finally:
            logger.debug(
                "Timed call",
                function=func.__qualname__,
                outcome=outcome,
                elapsed=f"{time.perf_counter() - started:.4f}s"
            )

    return wrapper
