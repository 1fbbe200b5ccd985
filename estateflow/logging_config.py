"""Logging configuration using loguru"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def _is_monitoring(record) -> bool:
    return bool(record["extra"].get("monitoring"))


def setup_logging(
    verbose: bool = False,
    log_file: Optional[Path] = None,
    json_logs: bool = False,
    monitoring_file: Optional[Path] = None,
) -> None:
    """
    Configure loguru for the CLI and API server.

    Console output goes to stderr so command results on stdout stay
    machine-readable. Structured error entries (records bound with
    ``monitoring=True``) are only shown on the console in verbose mode.

    Args:
        verbose: Enable debug-level logging
        log_file: Optional file path for log output
        json_logs: Emit one JSON object per console record
        monitoring_file: Optional JSON-lines file receiving only error entries
    """
    logger.remove()

    log_level = "DEBUG" if verbose else "INFO"
    console_filter = None if verbose else (lambda record: not _is_monitoring(record))
    if json_logs:
        logger.add(sys.stderr, level=log_level, serialize=True, filter=console_filter)
    else:
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=log_level,
            colorize=True,
            filter=console_filter,
        )

    # File handler with rotation
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="100 MB",
            retention="30 days",
            compression="zip",
            enqueue=True,  # Thread-safe
        )
        logger.info(f"Logging to file: {log_file}")

    if monitoring_file:
        monitoring_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            monitoring_file,
            format="{extra[entry]}",
            level="INFO",
            filter=_is_monitoring,
            rotation="50 MB",
            enqueue=True,
        )
        logger.info(f"Monitoring entries: {monitoring_file}")
