"""Logging configuration for ftptree.

Provides centralized logging with credential redaction so that FTP
passwords are never written to log output.
"""

import logging
import re
import sys
from pathlib import Path
from typing import Optional

from ftptree.config.paths import get_log_file_path


LOGGER_NAME = "ftptree"

# Patterns to redact from logs
PII_PATTERNS = [
    # Password in various formats
    (re.compile(r'(password["\s:=]+)[^\s,}\]]+', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'(passwd["\s:=]+)[^\s,}\]]+', re.IGNORECASE), r'\1[REDACTED]'),
    (re.compile(r'(PASS )\S+'), r'\1[REDACTED]'),
    # FTP URLs with credentials
    (re.compile(r'(ftps?)://[^:/\s]+:[^@\s]+@'), r'\1://[REDACTED]@'),
]


class PIIRedactingFormatter(logging.Formatter):
    """Custom formatter that redacts credentials from log messages."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record, redacting any credentials."""
        message = super().format(record)
        for pattern, replacement in PII_PATTERNS:
            message = pattern.sub(replacement, message)
        return message


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True,
    file_output: bool = True
) -> logging.Logger:
    """
    Configure library logging with credential redaction.

    Args:
        level: Logging level (default INFO)
        log_file: File path for log output, defaults to the application log file
        console: Whether to output to console (default True)
        file_output: Whether to write a log file (default True)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Clear any existing handlers
    logger.handlers.clear()

    formatter = PIIRedactingFormatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if file_output:
        log_file = log_file or get_log_file_path()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (default is the library logger)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
