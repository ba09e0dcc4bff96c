"""
Logging setup for Contacts Atlas.

One root configuration for the data layer: a console handler for operators,
an optional file handler for diagnostics, and a filter that
masks bearer tokens and private keys before any handler formats a record.
"""

import logging
import re
from pathlib import Path
from typing import Optional


_logger_initialized = False

# Chatty at INFO (one line per HTTP request)
NOISY_LOGGERS = ("urllib3", "google.auth")

SECRET_PATTERNS = (
    (re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+"), r"\1***"),
    (re.compile(r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----",
                re.DOTALL), "***PRIVATE KEY***"),
    (re.compile(r'("private_key"\s*:\s*")[^"]*(")'), r"\1***\2"),
    (re.compile(r'("access_token"\s*:\s*")[^"]*(")'), r"\1***\2"),
    (re.compile(r"(assertion=)[A-Za-z0-9._-]+"), r"\1***"),
)


def redact(text: str) -> str:
    """Mask credentials in a log message."""
    for pattern, replacement in SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactingFilter(logging.Filter):
    """Rewrites each record's message with credentials masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = redact(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def initialize_logger(log_level: str = "INFO",
                      log_file: Optional[str] = "logs/app.log") -> None:
    """
    Configure the root logger once per process.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (unknown -> INFO)
        log_file: Diagnostics file at DEBUG level, or None for console only
    """
    global _logger_initialized

    if _logger_initialized:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    redactor = SecretRedactingFilter()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    console_handler.addFilter(redactor)
    root_logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        file_handler.addFilter(redactor)
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logger_initialized = True
    root_logger.info(f"Logging at {log_level.upper()}" + (f", file: {log_file}" if log_file else ""))


def log_debug(message: str) -> None:
    logging.getLogger().debug(message)


def log_info(message: str) -> None:
    """
    Log an info message.

    Args:
        message: Message to log
    """
    logging.getLogger().info(message)


def log_warning(message: str) -> None:
    """
    Log a warning message (a fallback applied, the operation continues).

    Args:
        message: Message to log
    """
    logging.getLogger().warning(message)


def log_error(message: str) -> None:
    """
    Log an error message (an operation failed).

    Args:
        message: Message to log
    """
    logging.getLogger().error(message)
