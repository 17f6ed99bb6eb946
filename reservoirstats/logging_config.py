"""Opt-in logging for reservoirstats.

Every module logs through ``logging.getLogger(__name__)`` under the
``reservoirstats`` logger, which carries only a NullHandler until an
application asks for output. What gets logged:

- DEBUG: reservoir restores and which bulk-load subsampling branch ran
- INFO: aggregator checkpoints and restores, saved plots
- WARNING: oversized snapshots, restored keys whose capacity differs

Example usage:
    import reservoirstats

    reservoirstats.enable_console_logging(level="DEBUG")
    reservoirstats.enable_file_logging("logs/aggregator.log")
    reservoirstats.configure_from_env()

Environment variables (read by configure_from_env):
    RS_LOGGING: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    RS_LOG_FILE: Log to this rotating file instead of stderr
    RS_LOG_JSON: "1" for one JSON object per line
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Literal

__all__ = [
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_file_logging",
    "enable_json_logging",
    "enable_timed_file_logging",
    "set_level",
    "set_module_level",
]

LOGGER_NAME = "reservoirstats"

LEVEL_ENV = "RS_LOGGING"
FILE_ENV = "RS_LOG_FILE"
JSON_ENV = "RS_LOG_JSON"

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROTATE_MAX_BYTES = 10 * 1024 * 1024
ROTATE_BACKUPS = 5

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log shippers.

    Example output:
        {"timestamp": "2024-01-15T10:30:00.123456+00:00", "level": "INFO",
         "logger": "reservoirstats.aggregation", "message": "Checkpointed 3 keys"}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _get_level(level: str | int) -> int:
    """Level number for a name or number. Unknown names mean INFO."""
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _clear_handlers() -> None:
    """Detach and close every handler of the package logger but NullHandlers."""
    logger = _get_logger()
    for handler in [h for h in logger.handlers if not isinstance(h, logging.NullHandler)]:
        logger.removeHandler(handler)
        handler.close()


def _install[H: logging.Handler](
    handler: H, level: LogLevel | int, formatter: logging.Formatter
) -> H:
    """Attach `handler` to the package logger, both at `level`."""
    number = _get_level(level)
    handler.setLevel(number)
    handler.setFormatter(formatter)
    logger = _get_logger()
    logger.setLevel(number)
    logger.addHandler(handler)
    return handler


def _rotating(path: str | Path, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = TEXT_FORMAT,
    date_format: str = TEXT_DATE_FORMAT,
) -> logging.StreamHandler:
    """Send package logs to stderr as text.

    Args:
        level: Level name or number for both logger and handler.
        format: %-style record format.
        date_format: strftime format for %(asctime)s.

    Returns:
        The installed handler, for later removal.
    """
    return _install(logging.StreamHandler(), level, logging.Formatter(format, date_format))


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = ROTATE_MAX_BYTES,
    backup_count: int = ROTATE_BACKUPS,
    format: str = TEXT_FORMAT,
    date_format: str = TEXT_DATE_FORMAT,
) -> RotatingFileHandler:
    """Send package logs to a text file that rotates by size.

    Args:
        path: Log file. Missing parent directories are created.
        level: Level name or number.
        max_bytes: Size at which the file is rolled over (10 MB by default).
        backup_count: Rolled-over files to keep (5 by default).

    Returns:
        The installed RotatingFileHandler.
    """
    handler = _rotating(path, max_bytes, backup_count)
    return _install(handler, level, logging.Formatter(format, date_format))


def enable_timed_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    when: str = "midnight",
    interval: int = 1,
    backup_count: int = ROTATE_BACKUPS,
    format: str = TEXT_FORMAT,
    date_format: str = TEXT_DATE_FORMAT,
) -> TimedRotatingFileHandler:
    """Send package logs to a text file that rotates on a schedule.

    Args:
        path: Log file. Missing parent directories are created.
        when: Rotation unit as understood by TimedRotatingFileHandler
            ('S', 'M', 'H', 'D', 'midnight', 'W0'-'W6').
        interval: Units between rotations.

    Returns:
        The installed TimedRotatingFileHandler.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        path, when=when, interval=interval, backupCount=backup_count
    )
    return _install(handler, level, logging.Formatter(format, date_format))


def enable_json_logging(level: LogLevel | int = "INFO") -> logging.StreamHandler:
    """Send package logs to stderr as JSON lines."""
    return _install(logging.StreamHandler(), level, JsonFormatter())


def enable_json_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = ROTATE_MAX_BYTES,
    backup_count: int = ROTATE_BACKUPS,
) -> RotatingFileHandler:
    """Send package logs to a size-rotated file as JSON lines."""
    return _install(_rotating(path, max_bytes, backup_count), level, JsonFormatter())


def configure_from_env() -> None:
    """Enable logging as described by RS_LOGGING, RS_LOG_FILE and RS_LOG_JSON.

    Leaves logging untouched when neither RS_LOGGING nor RS_LOG_FILE is set.
    The level defaults to INFO when only a file is given.
    """
    level = os.environ.get(LEVEL_ENV, "").strip().upper()
    log_file = os.environ.get(FILE_ENV, "").strip()
    if not (level or log_file):
        return

    level = level or "INFO"
    as_json = os.environ.get(JSON_ENV, "").strip() == "1"

    if log_file and as_json:
        enable_json_file_logging(log_file, level=level)
    elif log_file:
        enable_file_logging(log_file, level=level)
    elif as_json:
        enable_json_logging(level=level)
    else:
        enable_console_logging(level=level)


def set_level(level: LogLevel | int) -> None:
    """Change the package logger's level without touching handlers."""
    _get_logger().setLevel(_get_level(level))


def set_module_level(module: str, level: LogLevel | int) -> None:
    """Change one submodule's level, e.g. "aggregation" or "sketching.reservoir"."""
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_get_level(level))


def disable_logging() -> None:
    """Drop all output handlers and mute the package logger."""
    _clear_handlers()
    logger = _get_logger()
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
