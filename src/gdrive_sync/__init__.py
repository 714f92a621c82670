"""
Google Drive folder sync

Mirrors a local directory tree into a Google Drive folder, uploading new and
changed files with bounded concurrency and a persistent metadata cache.
"""

__version__ = "1.0.0"
__author__ = "gdrive-sync"
__description__ = "Mirror a local directory tree into Google Drive"

from .config.settings import SyncConfig
from .sync.sync_manager import SyncManager
from .sync.sync_state import SyncState

__all__ = ["SyncConfig", "SyncManager", "SyncState"]
