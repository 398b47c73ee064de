# -*- coding: utf-8 -*-
"""
Centralized logging configuration for RavenLoom services

Entry points (scripts, request handlers) call setup_logging() once; modules
use logger = logging.getLogger(__name__).

Examples:
    from ravenloom.utils.logger import setup_logging
    setup_logging(log_file="logs/ingest.log")

    import logging
    logger = logging.getLogger(__name__)
    logger.info("Processing started")

"""
# Standard library
import logging
import sys
from pathlib import Path
from typing import Optional, Union

# Global flag to prevent duplicate configuration
_logging_configured = False


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
) -> None:
    """
    Configure logging for the application.

    Sets up console output and optional file output with consistent formatting.
    Safe to call multiple times (only the first call configures).

    Args:
        level: Logging level as int or name ("INFO", "DEBUG")
        log_file: Optional path to log file. Parent directory is created.
        format_string: Log message format
    """
    global _logging_configured

    if _logging_configured:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter(format_string)
    handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True
    )

    # asyncpg and httpx are chatty at DEBUG
    for noisy in ('asyncpg', 'httpx', 'httpcore'):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
