"""
Logging setup for the listings pipeline.

JSON lines by default (python-json-logger), plain text with format_type="text".
"""
from __future__ import annotations

import logging
import os
import sys
import time

from pythonjsonlogger.json import JsonFormatter

ROOT_LOGGER_NAME = "toyota"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class PipelineJsonFormatter(JsonFormatter):
    """Adds timestamp, level, logger and module fields to every record."""

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)
        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["module"] = record.module


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str | None = None,
    format_type: str = "json",
) -> logging.Logger:
    """
    Configure a logger with a single stdout handler.

    Args:
        name: Logger name
        level: DEBUG/INFO/WARNING/ERROR/CRITICAL, falls back to $LOG_LEVEL then INFO
        format_type: "json" or "text"
    """
    log_level_str = level or os.getenv("LOG_LEVEL", "INFO")
    log_level = LOG_LEVELS.get(log_level_str.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if format_type == "json":
        formatter = PipelineJsonFormatter(
            fmt="%(timestamp)s %(level)s %(logger)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the pipeline root logger, e.g. get_logger(__name__) -> toyota.preprocess."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class log_operation:
    """
    Log start, finish and duration of a pipeline stage.

    with log_operation("clean", logger, rows=len(df)):
        ...
    """

    def __init__(self, operation_name: str, logger: logging.Logger, **extra_fields):
        self.operation_name = operation_name
        self.logger = logger
        self.extra_fields = extra_fields
        self.start_time: float | None = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.info(
            f"Starting: {self.operation_name}",
            extra={"operation": self.operation_name, **self.extra_fields},
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = round(time.perf_counter() - self.start_time, 3)
        if exc_type is None:
            self.logger.info(
                f"Completed: {self.operation_name}",
                extra={"operation": self.operation_name, "duration_seconds": duration, **self.extra_fields},
            )
        else:
            self.logger.error(
                f"Failed: {self.operation_name}",
                extra={
                    "operation": self.operation_name,
                    "duration_seconds": duration,
                    "error_type": exc_type.__name__,
                    "error_message": str(exc_val),
                    **self.extra_fields,
                },
            )
        return False
