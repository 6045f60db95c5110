"""
Logging Configuration

Logger namespace and handler setup for archlens. Library modules only
ever call ``get_logger``; handlers are installed by the CLI through
``setup_logging``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "archlens"

# Format for the optional log file; the console handler renders its own
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_initialized = False

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> None:
    """
    Configure logging for archlens.

    Console output goes to stderr so report JSON on stdout stays clean.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional path to log file
        format_string: Log message format for the file handler
        date_format: Date format for timestamps in the file handler
    """
    global _initialized

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(level)

    if _initialized:
        for handler in root_logger.handlers:
            handler.setLevel(level)
        if log_file and not _has_file_handler(root_logger, log_file):
            root_logger.addHandler(_file_handler(log_file, format_string, date_format, level))
        return

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_file:
        root_logger.addHandler(_file_handler(log_file, format_string, date_format, level))

    _initialized = True


def _file_handler(log_file: Path, format_string: str, date_format: str, level: int) -> logging.FileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setFormatter(logging.Formatter(format_string, datefmt=date_format))
    handler.setLevel(level)
    return handler


def _has_file_handler(logger: logging.Logger, log_file: Path) -> bool:
    target = os.path.abspath(log_file)
    return any(
        isinstance(h, logging.FileHandler) and h.baseFilename == target
        for h in logger.handlers
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger under the ``archlens`` namespace
    """
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


class LogContext:
    """
    Context manager that brackets a pipeline stage in the log.

    Usage:
        logger = get_logger(__name__)
        with LogContext(logger, "Parsing sources"):
            logger.info("Step 1...")
    """

    def __init__(self, logger: logging.Logger, context: str) -> None:
        self.logger = logger
        self.context = context

    def __enter__(self) -> "LogContext":
        self.logger.info(f"{self.context}...")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.logger.error(f"{self.context} failed: {exc_val}")
        else:
            self.logger.info(f"{self.context} completed")
