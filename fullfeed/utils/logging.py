"""
FullFeed Logging Configuration
==============================

Logging setup for the enrichment pipeline. Every component logs through a
``LoggerAdapter`` carrying its context (component, feed, entry URL); the
formatters below surface that context in console and JSON output.
"""

import logging
import logging.handlers
import sys
import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional

# Pipeline context promoted to top-level keys in structured output
CONTEXT_FIELDS = ("component", "feed_id", "entry_url", "error_code")

# LogRecord attributes that are not user-supplied ``extra`` fields
_RESERVED_RECORD_FIELDS = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class StructuredFormatter(logging.Formatter):
    """JSON lines formatter for log files."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields = {}
        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_FIELDS:
                continue
            if key in CONTEXT_FIELDS:
                log_data[key] = value
            else:
                extra_fields[key] = value

        if extra_fields:
            log_data["extra"] = extra_fields

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Colored console formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        component = getattr(record, "component", record.name)
        feed_id = getattr(record, "feed_id", None)
        scope = f"{component}[feed {feed_id}]" if feed_id is not None else component

        formatted = f"{color}{timestamp} {record.levelname:<8}{self.RESET} {scope}: {record.getMessage()}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def setup_logger(
    name: str = "fullfeed",
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    structured: bool = False,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Attach console and rotating file handlers to the ``name`` logger.

    Log files are always JSON lines; the console is colored text unless
    ``structured`` is set.
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            StructuredFormatter() if structured else ColoredConsoleFormatter()
        )
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
        )
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """Adapter merging its bound context into each record's ``extra``."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def bind(self, **context: Any) -> "LoggerAdapter":
        """Return a new adapter carrying this adapter's context plus ``context``."""
        merged = {**self.extra, **{k: v for k, v in context.items() if v is not None}}
        return LoggerAdapter(self.logger, merged)


def get_logger_for_component(
    component_name: str,
    feed_id: Optional[int] = None,
    entry_url: Optional[str] = None,
) -> LoggerAdapter:
    """Logger for a pipeline component, e.g. ``scraper`` or ``entry_processor``.

    The returned adapter logs under ``fullfeed.<component_name>`` and tags
    every record with the component plus any feed or entry given.
    """
    adapter = LoggerAdapter(logging.getLogger(f"fullfeed.{component_name}"), {"component": component_name})
    return adapter.bind(feed_id=feed_id, entry_url=entry_url or None)


# Libraries whose INFO chatter drowns the pipeline's own output
QUIET_LOGGERS = ("urllib3", "requests", "charset_normalizer")


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/fullfeed.log",
    enable_console: bool = True,
    structured_logging: bool = False,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """Configure the ``fullfeed`` logger tree once at startup."""
    setup_logger(
        name="fullfeed",
        level=log_level,
        log_file=log_file or None,
        console=enable_console,
        structured=structured_logging,
        max_file_size=max_file_size_mb * 1024 * 1024,
        backup_count=backup_count,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class PerformanceLogger:
    """Context manager timing an operation and logging its outcome."""

    def __init__(self, logger: logging.Logger, operation: str, **context: Any):
        self.logger = logger
        self.operation = operation
        self.context = context
        self._started: Optional[float] = None

    def __enter__(self) -> "PerformanceLogger":
        self._started = time.perf_counter()
        self.logger.debug(f"Starting {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        duration = time.perf_counter() - (self._started or time.perf_counter())
        context = {**self.context, "duration_seconds": round(duration, 3)}

        if exc_type:
            self.logger.error(
                f"Failed {self.operation} after {duration:.3f}s: {exc_val}", extra=context
            )
        else:
            self.logger.info(f"Completed {self.operation} in {duration:.3f}s", extra=context)
