"""Persistent cache of remote object metadata keyed by local path."""

import asyncio
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Any, Dict, Optional, Union

import yaml

from ..remote.models import RemoteObject

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


@dataclass(frozen=True)
class CacheEntry:
    """Last known outcome for one local path."""
    ok: bool
    remote_object: Optional[RemoteObject] = None
    http_resp: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'ok': self.ok}
        if self.remote_object is not None:
            data['remote_object'] = self.remote_object.to_api()
        if self.http_resp is not None:
            data['http_resp'] = self.http_resp
        if self.error is not None:
            data['error'] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        remote = data.get('remote_object')
        remote_object = RemoteObject.from_api(remote) if remote else None
        return cls(
            ok=bool(data.get('ok')) and remote_object is not None,
            remote_object=remote_object,
            http_resp=data.get('http_resp'),
            error=data.get('error'),
        )


MISSING = CacheEntry(ok=False)


class SyncState:
    """Map of local path to last known remote object.

    Keys are paths relative to ``path_prefix`` so the cache survives moving
    the local tree. The map is shared by concurrently completing uploads and
    the periodic saver, hence the lock.
    """

    def __init__(self, state_file: PathLike, path_prefix: PathLike = ''):
        """Initialize the sync state.

        Args:
            state_file: YAML file the state is persisted to
            path_prefix: Local root stripped from paths to form keys
        """
        self.state_file = Path(state_file)
        self.path_prefix = str(path_prefix)
        self._state: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

    def load(self):
        """Load persisted state; a missing file leaves the cache empty."""
        if not self.state_file.exists():
            logger.info(f"No sync state at {self.state_file}, starting empty")
            return

        with open(self.state_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        with self._lock:
            self.path_prefix = data.get('path_prefix', self.path_prefix) or ''
            self._state = {
                key: CacheEntry.from_dict(entry)
                for key, entry in (data.get('state') or {}).items()
            }
        logger.info(f"Loaded {len(self._state)} sync state entries from {self.state_file}")

    def save(self):
        """Write the state file, replacing any previous version."""
        with self._lock:
            data = {
                'path_prefix': self.path_prefix,
                'state': {key: entry.to_dict() for key, entry in self._state.items()},
            }

        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.state_file.with_name(self.state_file.name + '.tmp')
        with open(tmp_file, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True)
        os.replace(tmp_file, self.state_file)
        logger.info("sync state saved")

    async def autosave(self, interval_minutes: float):
        """Save every ``interval_minutes`` until cancelled."""
        while True:
            await asyncio.sleep(interval_minutes * 60)
            await asyncio.to_thread(self.save)

    def rebase(self, path_prefix: PathLike):
        """Adopt a new local root, keeping the relative keys."""
        path_prefix = str(path_prefix)
        if path_prefix != self.path_prefix:
            logger.info(f"Local root changed from {self.path_prefix!r} to {path_prefix!r}")
            with self._lock:
                self.path_prefix = path_prefix

    def rel_path(self, abs_path: PathLike) -> str:
        """Cache key for ``abs_path``.

        Raises:
            ValueError: If the path is not below ``path_prefix``
        """
        if not self.path_prefix:
            return PurePath(abs_path).as_posix()
        return PurePath(abs_path).relative_to(self.path_prefix).as_posix()

    def get(self, abs_path: PathLike) -> CacheEntry:
        key = self.rel_path(abs_path)
        with self._lock:
            return self._state.get(key, MISSING)

    def set_success(self, abs_path: PathLike, remote_object: RemoteObject):
        key = self.rel_path(abs_path)
        with self._lock:
            self._state[key] = CacheEntry(ok=True, remote_object=remote_object)

    def set_failed(self, abs_path: PathLike, http_resp: Optional[Dict[str, Any]] = None,
                   error: Optional[BaseException] = None):
        key = self.rel_path(abs_path)
        message = str(error) if error is not None else None
        with self._lock:
            self._state[key] = CacheEntry(ok=False, http_resp=http_resp, error=message)

    def __len__(self) -> int:
        with self._lock:
            return len(self._state)

    def get_stats(self) -> Dict[str, int]:
        """Get statistics about cached entries.

        Returns:
            Dictionary with statistics
        """
        with self._lock:
            entries = list(self._state.values())
        ok_entries = [e for e in entries if e.ok]
        return {
            'total_entries': len(entries),
            'ok_entries': len(ok_entries),
            'failed_entries': len(entries) - len(ok_entries),
            'folders': len([e for e in ok_entries if e.remote_object.is_folder]),
            'total_size': sum(e.remote_object.size or 0 for e in ok_entries),
        }
