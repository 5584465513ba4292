"""
Logging module for the site content migration tool
"""

import hashlib
import logging
import os
import re
from typing import Any, Optional

LOGGER_NAME = "site_migrator"


class EnhancedFormatter(logging.Formatter):
    """
    Formatter that adds module/line information in verbose mode and appends
    the list a record belongs to when one is attached
    """

    def __init__(self, fmt=None, datefmt=None, style="%", verbose=False):
        if verbose:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s:%(lineno)d] - %(message)s"
        elif not fmt:
            fmt = "%(asctime)s - %(levelname)s - %(message)s"

        super().__init__(fmt, datefmt, style)
        self.verbose = verbose

    def format(self, record):
        result = super().format(record)

        list_title = getattr(record, "list_title", None)
        if self.verbose and list_title:
            result = f"{result} [list={list_title}]"

        return result


class MainLogFilter(logging.Filter):
    """Pass only records that are not tagged with a list title."""

    def filter(self, record):
        return not getattr(record, "list_title", None)


class ListFilter(logging.Filter):
    """Pass only records tagged with one specific list title."""

    def __init__(self, list_title: str):
        super().__init__()
        self.list_title = list_title

    def filter(self, record):
        return getattr(record, "list_title", None) == self.list_title


def list_log_filename(list_title: str) -> str:
    """Return a filesystem-safe log file name for a list title.

    Titles that had to be rewritten get a short digest of the original title
    appended, so two titles never share a log file.
    """
    safe = re.sub(r"[^A-Za-z0-9._-]+", "_", list_title).strip("_") or "list"
    if safe != list_title:
        digest = hashlib.sha1(list_title.encode("utf-8")).hexdigest()[:8]
        safe = f"{safe}_{digest}"
    return f"{safe}_migration.log"


def setup_main_log_file(output_dir: str) -> logging.FileHandler:
    """
    Set up a file handler for the main log file that contains non-list-specific logs.

    Args:
        output_dir: The output directory path

    Returns:
        The file handler for the main log file
    """
    os.makedirs(output_dir, exist_ok=True)
    log_file = os.path.join(output_dir, "migration.log")

    file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)  # Always use DEBUG level for file handlers
    file_handler.setFormatter(EnhancedFormatter())
    file_handler.addFilter(MainLogFilter())

    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(file_handler)

    logger.info(f"Main log file created at: {log_file}")
    return file_handler


def setup_logger(verbose: bool = False, output_dir: Optional[str] = None) -> logging.Logger:
    """
    Set up and return the logger with appropriate formatting.

    Args:
        verbose: If True, set console handler to DEBUG level; otherwise INFO level
        output_dir: Optional output directory for the main log file

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
    console_handler.setFormatter(EnhancedFormatter(verbose=verbose))
    logger.addHandler(console_handler)

    if output_dir:
        setup_main_log_file(output_dir)

    return logger


def setup_list_logger(
    output_dir: str, list_title: str, verbose: bool = False
) -> logging.FileHandler:
    """
    Set up a file handler for list-specific logging.

    Args:
        output_dir: The output directory path
        list_title: The title of the list or library
        verbose: If True, use the verbose record format

    Returns:
        The file handler for the list log
    """
    logs_dir = os.path.join(output_dir, "list_logs")
    os.makedirs(logs_dir, exist_ok=True)
    log_file = os.path.join(logs_dir, list_log_filename(list_title))

    file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(EnhancedFormatter(verbose=verbose))
    file_handler.addFilter(ListFilter(list_title))

    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(file_handler)

    logger.debug(f"List log file created at: {log_file}", extra={"list_title": list_title})
    return file_handler


def close_handler(handler: logging.Handler) -> None:
    """Detach a handler from the migrator logger and close it."""
    handler.flush()
    handler.close()
    logging.getLogger(LOGGER_NAME).removeHandler(handler)


def log_with_context(level: int, message: str, **kwargs: Any) -> None:
    """
    Log a message with additional context information.

    Args:
        level: The logging level (e.g., logging.INFO)
        message: The log message
        **kwargs: Additional context to include in the log record; ``exc_info``
            is passed through to the logger
    """
    exc_info = kwargs.pop("exc_info", None)
    # Filter out None values from kwargs
    extras = {k: v for k, v in kwargs.items() if v is not None}

    logger = logging.getLogger(LOGGER_NAME)
    logger.log(level, message, extra=extras, exc_info=exc_info)


def get_logger():
    """Get the site_migrator logger, creating it with defaults if needed."""
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
