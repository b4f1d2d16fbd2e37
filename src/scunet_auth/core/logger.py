"""
Logging configuration for SCUNET authentication.

Console and file logging for the CLI, with credentials scrubbed from every
record before it is written.
"""

import logging
import os
import re
import time
from pathlib import Path
from typing import Optional


# key=value pairs that carry secrets in portal URLs and form bodies
_SECRET_FIELDS = re.compile(
    r"((?:user_password|password|pass|operatorPwd)=)([^&\s'\"]+)",
    re.IGNORECASE,
)


class RedactingFilter(logging.Filter):
    """Mask password fields in log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _SECRET_FIELDS.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def setup_logger(
    name: str = "scunet_auth",
    log_file: Optional[str] = None,
    log_level: str = "INFO"
) -> logging.Logger:
    """
    Set up application logger with console and file handlers.

    Args:
        name: Logger name
        log_file: Path to log file. If None, uses LOG_FILE env var or default.
            An empty string disables the file handler.
        log_level: Console logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    if log_file is None:
        log_file = os.getenv("LOG_FILE", "logs/scunet_auth.log")

    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(min(level, logging.DEBUG))

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    redacting = RedactingFilter()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S"
    ))
    console_handler.addFilter(redacting)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        file_handler.addFilter(redacting)
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


class LoggerContext:
    """Context manager that times one login/logout and logs its result."""

    def __init__(self, logger: logging.Logger, operation: str, trace_id: Optional[str] = None):
        """
        Initialize logger context.

        Args:
            logger: Logger instance
            operation: Name of the operation being logged
            trace_id: Request trace id prefixed to each line
        """
        self.logger = logger
        self.operation = operation
        self.prefix = f"[{trace_id}] " if trace_id else ""
        self.started: Optional[float] = None

    def __enter__(self):
        self.started = time.monotonic()
        self.logger.info(f"{self.prefix}Starting {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Log completion or failure; exceptions always propagate."""
        duration = time.monotonic() - (self.started or time.monotonic())

        if exc_type is not None:
            self.logger.error(f"{self.prefix}Failed {self.operation} after {duration:.2f}s: {exc_val}")
            return False

        self.logger.info(f"{self.prefix}Completed {self.operation} in {duration:.2f}s")
        return False
