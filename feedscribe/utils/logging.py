"""
FeedScribe Logging Configuration
===============================

Every component logs through ``get_logger_for_component``, which tags
records with the component name and, inside a pipeline run, the feed type.
Console output is colored text or JSON; the rotating log file is always JSON.
"""

import json
import logging
import logging.handlers
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


ROOT_LOGGER_NAME = "feedscribe"

# Attributes present on every LogRecord; anything else came in through ``extra``
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}

_QUIET_LIBRARIES = ("urllib3", "requests", "feedparser", "google")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with context fields under ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRIBUTES}
        if context:
            payload["extra"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL component[feed] message``, colored by level."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, "")
        source = getattr(record, "component", record.name)
        feed_type = getattr(record, "feed_type", None)
        if feed_type:
            source = f"{source}[{feed_type}]"

        line = (
            f"{color}{time.strftime('%H:%M:%S', time.localtime(record.created))} "
            f"{record.levelname:<8}{self.RESET} {source} {record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class LoggerAdapter(logging.LoggerAdapter):
    """Adds the fixed component context to every record, keeping call-site extras."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger_for_component(component_name: str, feed_type: Optional[str] = None) -> LoggerAdapter:
    """Logger adapter for ``feedscribe.<component_name>``.

    Args:
        component_name: Component name, e.g. 'feed_parser' or 'classifier'
        feed_type: Feed type of the current run, when there is one
    """
    context = {"component": component_name}
    if feed_type:
        context["feed_type"] = feed_type
    return LoggerAdapter(logging.getLogger(f"{ROOT_LOGGER_NAME}.{component_name}"), context)


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/feedscribe.log",
    enable_console: bool = True,
    structured_logging: bool = False,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> logging.Logger:
    """Install handlers on the ``feedscribe`` logger, replacing earlier ones.

    Args:
        log_level: Level name (DEBUG, INFO, ...)
        log_file: Rotating JSON log file, or None for no file
        enable_console: Log to stdout
        structured_logging: JSON instead of colored text on the console
        max_file_size_mb: Rotation threshold for the log file
        backup_count: Number of rotated files to keep
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level.upper())
    logger.handlers.clear()

    if enable_console:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(StructuredFormatter() if structured_logging else ColoredConsoleFormatter())
        logger.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


class StageTimer:
    """Times one pipeline stage and logs its duration.

    ``duration`` is set on exit whether or not the stage raised; a failed
    stage is logged at ERROR and the exception propagates.
    """

    def __init__(self, logger: logging.LoggerAdapter, stage: str):
        self.logger = logger
        self.stage = stage
        self.duration: float = 0.0
        self._started: Optional[float] = None

    def __enter__(self) -> "StageTimer":
        self._started = time.perf_counter()
        self.logger.debug(f"Stage '{self.stage}' started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration = time.perf_counter() - self._started
        timing = {"stage": self.stage, "duration_seconds": round(self.duration, 4)}

        if exc_type is None:
            self.logger.debug(f"Stage '{self.stage}' finished in {self.duration:.3f}s", extra=timing)
        else:
            self.logger.error(f"Stage '{self.stage}' failed after {self.duration:.3f}s: {exc_val}",
                              extra=timing)
