"""Depth-first reconciliation of a local tree against Drive."""

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, List, Optional, Tuple

from ..remote.models import RemoteObject

if TYPE_CHECKING:
    from .sync_manager import SyncManager

logger = logging.getLogger(__name__)

FILE, DIRECTORY, OTHER = 0, 1, 2


@dataclass(frozen=True)
class UploadTask:
    """Deferred upload of one local file into a remote folder."""
    local_path: Path
    name: str
    remote_parent: RemoteObject
    upload: Callable[[Path, str, RemoteObject], Awaitable[Optional[RemoteObject]]]

    async def __call__(self) -> Optional[RemoteObject]:
        return await self.upload(self.local_path, self.name, self.remote_parent)


def _entry_kind(entry: os.DirEntry) -> int:
    if entry.is_file(follow_symlinks=False):
        return FILE
    if entry.is_dir(follow_symlinks=False):
        return DIRECTORY
    return OTHER


def scan_directory(folder: Path) -> List[Tuple[str, int]]:
    """List ``(name, kind)`` pairs, files first, then directories.

    Entries that are neither plain files nor directories, symlinks included,
    are dropped.
    """
    with os.scandir(folder) as it:
        entries = [(entry.name, _entry_kind(entry)) for entry in it]
    entries.sort(key=lambda item: (item[1], item[0]))
    return [(name, kind) for name, kind in entries if kind != OTHER]


class TreePlanner:
    """Walk the local tree and queue one :class:`UploadTask` per file to send.

    Deletions and folder creation happen inline while walking, so a task is
    only queued once its remote parent exists.
    """

    def __init__(self, manager: "SyncManager"):
        self.manager = manager
        self.sync_state = manager.sync_state

    async def produce(self, queue: asyncio.Queue, local_root: Path, remote_root: RemoteObject):
        """Walk ``local_root`` and put upload tasks on ``queue``."""
        await self._dfs(Path(local_root), remote_root, queue)

    def _cached_children(self, local_folder: Path, entries: List[Tuple[str, int]]) -> Dict[str, RemoteObject]:
        children = {}
        for name, _ in entries:
            cached = self.sync_state.get(local_folder / name)
            if cached.ok and cached.remote_object is not None:
                children[name] = cached.remote_object
        return children

    async def _remote_children(self, local_folder: Path, remote_folder: RemoteObject,
                               entries: List[Tuple[str, int]]) -> Dict[str, RemoteObject]:
        children = self._cached_children(local_folder, entries)
        if len(children) == len(entries):
            return children

        children = await self.manager.list_children(remote_folder)
        for name, remote_object in children.items():
            self.sync_state.set_success(local_folder / name, remote_object)
        return children

    async def _dfs(self, local_folder: Path, remote_folder: RemoteObject, queue: asyncio.Queue):
        logger.info(f"> {local_folder}")
        entries = await asyncio.to_thread(scan_directory, local_folder)
        children = await self._remote_children(local_folder, remote_folder, entries)
        stats = self.manager.stats

        for name, kind in entries:
            local_path = local_folder / name
            existing = children.get(name)

            if existing is not None:
                if kind == DIRECTORY:
                    if not existing.is_folder:
                        logger.info(f"{name} should be a folder but is {existing.mime_type}. Deleting file...")
                        await self.manager.rm(existing)
                        del children[name]
                else:
                    local_size = (await asyncio.to_thread(local_path.stat)).st_size
                    self.manager.progress.add(local_size)
                    if existing.size == local_size:
                        stats.files_skipped += 1
                        continue
                    logger.info(f"{name} size mismatch: remote {existing.size}, local {local_size}. Deleting...")
                    await self.manager.rm(existing)

            if kind == FILE:
                await queue.put(UploadTask(local_path, name, remote_folder, self.manager.upload_file))
                continue

            folder = children.get(name)
            if folder is None:
                folder = await self.manager.mkdir(name, remote_folder, local_path)
            if folder is None:
                logger.warning(f"Skipping {local_path}: remote folder unavailable")
                continue
            await self._dfs(local_path, folder, queue)
