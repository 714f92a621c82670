"""Byte progress accounting for a sync run."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

REPORT_LEVEL = 1 << 20  # 1 MiB


class ProgressCounter:
    """Cumulative bytes of every file considered in the current run."""

    def __init__(self, level: int = REPORT_LEVEL):
        self.level = level
        self.reset()

    def reset(self):
        self.total = 0
        self._reported = 0

    def add(self, size: int):
        self.total += size
        if self.total - self._reported > self.level:
            self._reported = self.total
            logger.info(f"completed bytes: {self.total:,}")


@dataclass
class SyncStats:
    """Counters for one sync run."""
    files_uploaded: int = 0
    files_failed: int = 0
    files_skipped: int = 0
    folders_created: int = 0
    remote_deleted: int = 0
    bytes_uploaded: int = 0
    duration: float = 0.0
