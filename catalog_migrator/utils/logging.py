"""
Logging module for the catalog migration tool
"""

import json
import logging
import os
from typing import Any, Optional

LOGGER_NAME = "catalog_migrator"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_STANDARD_ATTRS = frozenset(
    (
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "id",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    )
)


def _context_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}


class JsonFormatter(logging.Formatter):
    def format(self, record):
        data = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }
        # Include any additional attributes from the record
        data.update(_context_fields(record))
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


class EnhancedFormatter(logging.Formatter):
    """
    Custom formatter that supports verbose mode (with source location) and
    optionally appends the structured context passed to log_with_context.
    """

    def __init__(
        self,
        fmt=None,
        datefmt=None,
        style="%",
        verbose=False,
        include_context=False,
    ):
        # Use more detailed format for verbose mode
        if verbose:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s:%(lineno)d] - %(message)s"
        elif not fmt:
            fmt = "%(asctime)s - %(levelname)s - %(message)s"

        super().__init__(fmt, datefmt, style)
        self.include_context = include_context

    def format(self, record):
        result = super().format(record)

        if self.include_context:
            context = _context_fields(record)
            if context:
                rendered = ", ".join(f"{k}={v}" for k, v in sorted(context.items()))
                result += f" [{rendered}]"

        return result


def setup_main_log_file(output_dir: str, json_logs: bool = False) -> logging.FileHandler:
    """
    Set up a file handler for the run's main log file.

    Args:
        output_dir: The output directory path
        json_logs: If True, write one JSON object per line instead of text

    Returns:
        The file handler for the main log file
    """
    os.makedirs(output_dir, exist_ok=True)

    log_file = os.path.join(output_dir, "migration.log")

    file_handler = logging.FileHandler(log_file, mode="w")
    file_handler.setLevel(logging.DEBUG)  # Always use DEBUG level for file handlers

    if json_logs:
        file_handler.setFormatter(JsonFormatter())
    else:
        file_handler.setFormatter(
            EnhancedFormatter(
                "%(asctime)s - %(levelname)s - %(message)s", include_context=True
            )
        )

    logger = logging.getLogger(LOGGER_NAME)
    # One main log file per run
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
            handler.close()
    logger.addHandler(file_handler)

    logger.info(f"Main log file created at: {log_file}")
    return file_handler


def setup_logger(
    verbose: bool = False,
    output_dir: Optional[str] = None,
    json_logs: bool = False,
) -> logging.Logger:
    """
    Set up and return the logger with appropriate formatting.

    Args:
        verbose: If True, set console handler to DEBUG level; otherwise INFO level
        output_dir: Optional output directory for the main log file
        json_logs: If True, emit JSON lines on the console and in the log file

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Clear any existing handlers to prevent duplicate messages
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(logging.DEBUG)  # Always set logger to DEBUG to capture all logs

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    if json_logs:
        console_handler.setFormatter(JsonFormatter())
    else:
        console_handler.setFormatter(
            EnhancedFormatter(verbose=verbose, include_context=verbose)
        )
    logger.addHandler(console_handler)

    if output_dir:
        setup_main_log_file(output_dir, json_logs)

    return logger


def log_with_context(level: int, message: str, **kwargs: Any) -> None:
    """
    Log a message with additional context information.

    Args:
        level: The logging level (e.g., logging.INFO)
        message: The log message
        **kwargs: Additional context to include in the log record
    """
    exc_info = kwargs.pop("exc_info", None)
    # Filter out None values from kwargs
    extras = {k: v for k, v in kwargs.items() if v is not None}

    logger = logging.getLogger(LOGGER_NAME)
    logger.log(level, message, extra=extras, exc_info=exc_info)


def get_logger():
    """Get the catalog_migrator logger, creating it with defaults if needed."""
    migrator_logger = logging.getLogger(LOGGER_NAME)
    if not migrator_logger.handlers:
        migrator_logger.setLevel(logging.INFO)
        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)
        handler.setFormatter(EnhancedFormatter())
        migrator_logger.addHandler(handler)
    return migrator_logger


# Module logger - will be properly initialized when setup_logger is called
logger = get_logger()
