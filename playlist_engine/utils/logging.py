"""
Logging setup for the playlist analytics engine.

Components log under dotted names ("estimator.tempo", "engine",
"playlists.filters", ...). Console output goes to stderr so command line
reports on stdout stay machine-readable; the optional rotating log file is
always JSON.
"""

import copy
import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    The "context" attribute stamped by ContextLoggerAdapter (playlist id,
    track position, ...) is emitted as a nested object.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ColoredFormatter(logging.Formatter):
    """Text formatter that colors the level name for terminals."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Other handlers receive the same record; color a copy only
        shaded = copy.copy(record)
        color = self.LEVEL_COLORS.get(shaded.levelname)
        if color:
            shaded.levelname = f"{color}{shaded.levelname}{self.RESET}"
        return super().format(shaded)


def _console_formatter(log_format: str, colored: bool) -> logging.Formatter:
    if log_format == "json":
        return JSONFormatter()
    if colored:
        return ColoredFormatter(TEXT_FORMAT, TEXT_DATEFMT)
    return logging.Formatter(TEXT_FORMAT, TEXT_DATEFMT)


def _file_handler(log_file: str, max_bytes: int, backup_count: int) -> logging.Handler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    console_enabled: bool = True,
    colored: bool = True,
) -> None:
    """
    Replace the root logger's handlers.

    Args:
        level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Console format, "json" or "text"
        log_file: Optional path of a rotating JSON log file
        max_bytes: Rotation size of the log file
        backup_count: Rotated files kept
        console_enabled: Whether to log to stderr
        colored: Color level names (text console only)
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    root.handlers = []

    if console_enabled:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(_console_formatter(log_format, colored))
        root.addHandler(console)

    if log_file:
        root.addHandler(_file_handler(log_file, max_bytes, backup_count))


def configure_logging(config: Mapping[str, Any], verbose: bool = False) -> None:
    """
    Set up logging from the "logging" config section.

    Recognized keys: level, format, file, max_bytes, backup_count.
    `verbose` forces DEBUG.
    """
    section = config.get("logging", {}) or {}
    setup_logging(
        level="DEBUG" if verbose else section.get("level", "INFO"),
        log_format=section.get("format", "text"),
        log_file=section.get("file"),
        max_bytes=section.get("max_bytes", DEFAULT_MAX_BYTES),
        backup_count=section.get("backup_count", DEFAULT_BACKUP_COUNT),
    )


def get_logger(name: str) -> logging.Logger:
    """Logger for a dotted component name, e.g. "estimator.key"."""
    return logging.getLogger(name)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    Adapter that stamps a fixed context dict on every record.

    A per-call `extra={"context": {...}}` is merged over the fixed
    context, so `position` can be added to a playlist-scoped logger.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> "tuple[str, Dict[str, Any]]":
        extra = dict(kwargs.get("extra") or {})
        context = {**self.extra, **extra.pop("context", {})}
        kwargs["extra"] = {**extra, "context": context}
        return msg, kwargs


def create_logger_with_context(name: str, context: Dict[str, Any]) -> ContextLoggerAdapter:
    """
    Logger whose records all carry `context`.

    Example:
        logger = create_logger_with_context("engine", {"playlist_id": "p1"})
        logger.info("Enriching tracks")
    """
    return ContextLoggerAdapter(get_logger(name), context)
