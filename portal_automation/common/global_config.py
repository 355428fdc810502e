"""
================================================================================
Global Logging Configuration
================================================================================

Centralized Loguru setup for the framework, its test suites and run_tests.py.

Features:
    - One stderr sink configured from the ``logging`` config section
    - Optional rotating file sink (``logging.file``)
    - Idempotent: repeated calls keep the first configuration unless forced

Author: Automation Team
License: MIT
================================================================================
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from portal_automation.framework.config_loader import ConfigLoader, ConfigSource


DEFAULT_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"

LOGGING_DEFAULTS = {
    "level": "INFO",
    "format": DEFAULT_LOG_FORMAT,
    "file": "",
    "rotation": "10 MB",
    "retention": "7 days",
}

_logger_initialized: bool = False


def init_logger(
    level: Optional[str] = None,
    format_str: Optional[str] = None,
    config: Optional[ConfigSource] = None,
    force: bool = False,
) -> None:
    """
    Initializes the global Loguru logger with consistent configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_str: Custom log format string. Defaults to config value.
        config: Configuration to read from (default: the shared ConfigLoader)
        force: Reconfigure even if the logger was already initialized
    """
    global _logger_initialized

    if _logger_initialized and not force:
        return

    config = config or ConfigLoader()
    section = config.get_section("logging", LOGGING_DEFAULTS)
    log_level = (level or section["level"]).upper()
    log_format = format_str or section["format"]

    # Remove default logger and add configured one
    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        format=log_format,
        colorize=True,
        backtrace=True,
        diagnose=True,
    )

    log_file = section["file"]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=log_level,
            format=log_format.replace("{level: <8}", "{level}"),  # Remove padding for file
            rotation=section["rotation"],
            retention=section["retention"],
            compression="zip",
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {log_level}")


def get_logger():
    """
    Returns the configured Loguru logger instance.

    Ensures the logger is initialized before returning.
    """
    if not _logger_initialized:
        init_logger()
    return logger


__all__ = [
    "init_logger",
    "get_logger",
]
