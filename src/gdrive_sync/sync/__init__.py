"""Sync engine: planner, runner, retry policy and state cache."""

from .planner import TreePlanner, UploadTask
from .retry import RetryExecutor
from .runner import ConcurrencyRunner
from .sync_manager import SyncManager
from .sync_state import CacheEntry, SyncState

__all__ = [
    "SyncManager",
    "SyncState",
    "CacheEntry",
    "TreePlanner",
    "UploadTask",
    "RetryExecutor",
    "ConcurrencyRunner",
]
