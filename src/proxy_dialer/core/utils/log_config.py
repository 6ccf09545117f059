"""Logging configuration for the proxy clients.

This module provides centralized logging configuration using Loguru.
Library modules only emit records; handlers are installed here, on demand,
so that importing ``proxy_dialer`` leaves the application's own logging
setup untouched.
"""

import sys
from pathlib import Path

from loguru import logger

# Logs directory in user's home directory
LOG_DIR = Path.home() / ".proxy-dialer" / "logs"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(*, debug: bool = False, log_to_file: bool = True, log_dir: Path = LOG_DIR) -> None:
    """Install console and rotating file handlers.

    Args:
        debug: Log handshake details to the console as well
        log_to_file: Also write DEBUG records to ``log_dir/proxy.log``
        log_dir: Directory for the log file
    """
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level="DEBUG" if debug else "WARNING",
        backtrace=True,
        diagnose=debug,
    )

    if log_to_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "proxy.log",
            rotation="10 MB",
            retention="1 week",
            compression="zip",
            format=FILE_FORMAT,
            level="DEBUG",
            backtrace=True,
            diagnose=False,
        )


__all__ = ["LOG_DIR", "logger", "setup_logging"]
