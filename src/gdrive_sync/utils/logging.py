"""Logging setup for gdrive-sync runs."""

import logging
import logging.handlers
import time
from pathlib import Path
from typing import Optional, Union

from rich.logging import RichHandler

LOGGER_NAME = "gdrive_sync"

# HTTP and OAuth libraries log every request at DEBUG/INFO
NOISY_LOGGERS = (
    "urllib3", "google.auth", "google_auth_oauthlib", "requests_oauthlib", "googleapiclient",
)

FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    log_to_console: bool = True,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5
) -> logging.Logger:
    """Configure the ``gdrive_sync`` logger for one run.

    Console output goes through rich at ``log_level``. The rotating log
    file, when given, records everything down to DEBUG so a failed upload
    can be traced after the fact.

    Args:
        log_level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Rotating log file, or None to skip file logging
        log_to_console: Attach the rich console handler
        max_file_size: Bytes before the log file is rotated
        backup_count: Rotated files kept next to ``log_file``

    Returns:
        The package logger
    """
    level = logging.getLevelName(log_level.upper())
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG if log_file else level)
    logger.propagate = False

    if log_to_console:
        console = RichHandler(level=level, show_path=False, rich_tracebacks=True)
        console.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(console)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
        )
        rotating.setLevel(logging.DEBUG)
        rotating.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(rotating)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


class TimedOperation:
    """Log how long a block took, and whether it raised.

    ``elapsed`` holds the duration in seconds once the block exits.
    """

    def __init__(self, logger: logging.Logger, operation_name: str, log_level: str = "INFO"):
        self.logger = logger
        self.operation_name = operation_name
        self.log_level = logging.getLevelName(log_level.upper())
        self.started: Optional[float] = None
        self.elapsed = 0.0

    def __enter__(self) -> "TimedOperation":
        self.started = time.monotonic()
        self.logger.log(self.log_level, f"{self.operation_name}: started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.monotonic() - self.started
        if exc_type is None:
            self.logger.log(self.log_level, f"{self.operation_name}: done in {self.elapsed:.2f}s")
        else:
            self.logger.error(f"{self.operation_name}: failed after {self.elapsed:.2f}s: {exc_val}")
        return False
