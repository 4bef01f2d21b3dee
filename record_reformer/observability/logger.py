"""
Structured JSON logging for record-reformer

Events are written to stdout by the CLI, so all log output goes to stderr.
Expansion warnings carry the failing field and template as `extra` fields;
the JSON formatter nests them under a "placeholder" key so log shippers can
index them without knowing every field name.
"""
import logging
import os
import sys
import time
from contextlib import contextmanager
from typing import Iterator, TextIO

from pythonjsonlogger import jsonlogger

PACKAGE_LOGGER = "record_reformer"

# Extra fields attached to template expansion warnings
PLACEHOLDER_FIELDS = ("field", "template", "error_class", "error")

JSON_FORMAT = "%(timestamp)s %(level)s %(logger)s %(message)s"
TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class ReformJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter with timestamp, level, logger and source location.

    Placeholder fields are moved from the top level into one nested object.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["location"] = f"{record.module}:{record.funcName}:{record.lineno}"

        placeholder = {key: log_record.pop(key) for key in PLACEHOLDER_FIELDS if key in log_record}
        if placeholder:
            log_record["placeholder"] = placeholder


def _resolve_level(level: str | None) -> int:
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    name: str = PACKAGE_LOGGER,
    level: str | None = None,
    format_type: str | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Setup and configure a logger

    Configuring the package logger covers every module logger beneath it,
    since those are created with logging.getLogger(__name__).

    Args:
        name: Logger name
        level: Level name; LOG_LEVEL env var (default INFO) if None
        format_type: "json" or "text"; LOG_FORMAT env var (default json) if None
        stream: Output stream (stderr if None)

    Returns:
        Configured logger instance
    """
    log_level = _resolve_level(level)
    format_type = format_type or os.getenv("LOG_FORMAT", "json")

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(log_level)
    if format_type == "json":
        handler.setFormatter(ReformJsonFormatter(fmt=JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    else:
        handler.setFormatter(logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)

    # Keep reformer output out of the host application's root handlers
    logger.propagate = False

    return logger


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Get a logger instance

    Loggers beneath the package logger are returned as-is and rely on
    propagation; any other name is set up on first use.
    """
    logger = logging.getLogger(name)
    if name.startswith(PACKAGE_LOGGER + ".") or logger.handlers:
        return logger
    return setup_logger(name)


@contextmanager
def log_operation(operation_name: str, logger: logging.Logger | None = None, **extra_fields) -> Iterator[None]:
    """
    Log the start, end and duration of an operation

    Usage:
        with log_operation("Reforming events", logger=logger, source="events.jsonl"):
            pipeline.process_lines(lines, sink)

    Exceptions are logged with their traceback and re-raised.
    """
    logger = logger or get_logger()
    fields = {"operation": operation_name, **extra_fields}

    logger.info(f"Starting: {operation_name}", extra=fields)
    start = time.time()
    try:
        yield
    except Exception as e:
        logger.error(
            f"Failed: {operation_name}",
            extra={
                **fields,
                "duration_seconds": round(time.time() - start, 3),
                "status": "error",
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        raise

    logger.info(
        f"Completed: {operation_name}",
        extra={**fields, "duration_seconds": round(time.time() - start, 3), "status": "success"},
    )
