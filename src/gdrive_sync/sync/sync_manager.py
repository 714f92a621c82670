"""Sync manager mirroring a local folder into a Drive folder."""

import asyncio
import logging
import time
from pathlib import Path
from typing import Dict, Optional

from ..config.settings import SyncConfig
from ..exceptions import RemoteCallError, SyncError
from ..remote.drive_client import DriveClient
from ..remote.models import RemoteObject
from .planner import TreePlanner
from .progress import ProgressCounter, SyncStats
from .retry import RetryExecutor
from .runner import ConcurrencyRunner
from .sync_state import SyncState

logger = logging.getLogger(__name__)


class SyncManager:
    """Orchestrates one-way sync of ``local_root_folder`` into Drive."""

    def __init__(self, client: DriveClient, config: SyncConfig, sync_state: SyncState,
                 retry: Optional[RetryExecutor] = None):
        """Initialize sync manager.

        Args:
            client: Drive client issuing the raw calls
            config: Sync configuration
            sync_state: Cache of remote metadata, shared with the caller
            retry: Retry policy (built from ``config.schedule`` when omitted)
        """
        self.client = client
        self.config = config
        self.sync_state = sync_state
        self.retry = retry or RetryExecutor(config.schedule.retransmit_interval)
        self.progress = ProgressCounter()
        self.stats = SyncStats()

    async def get_by_id(self, file_id: str) -> RemoteObject:
        payload = await self.retry.run(lambda: self.client.get_by_id(file_id))
        return RemoteObject.from_api(payload)

    async def list_children(self, remote_parent: RemoteObject) -> Dict[str, RemoteObject]:
        return await self.client.list_children(remote_parent.id, retry=self.retry.run)

    async def _remove_duplicates(self, name: str, remote_parent: RemoteObject):
        """Delete every child called ``name`` left behind by a failed attempt."""
        duplicates = await self.client.find_children(remote_parent.id, name, retry=self.retry.run)
        await asyncio.gather(*(self.rm(obj) for obj in duplicates))

    async def upload_file(self, local_path: Path, name: str,
                          remote_parent: RemoteObject) -> Optional[RemoteObject]:
        """Upload one file; failures are logged and leave the file unsynced.

        Failures are counted in ``stats.files_failed`` and never raise, so the
        runner sees every upload task as completed.

        Returns:
            The created remote file, or None on failure
        """
        logger.debug(f"upload file {local_path} -> {remote_parent.name}")
        try:
            payload = await self.retry.run(
                lambda: self.client.create_file(name, remote_parent.id, local_path),
                pre_retry=lambda: self._remove_duplicates(name, remote_parent),
            )
        except Exception as e:
            logger.error(f"Failed to upload {local_path}: {e}")
            self.stats.files_failed += 1
            return None

        remote_file = RemoteObject.from_api(payload)
        self.sync_state.set_success(local_path, remote_file)
        self.stats.files_uploaded += 1
        self.stats.bytes_uploaded += remote_file.size or 0
        self.progress.add(remote_file.size or 0)
        return remote_file

    async def mkdir(self, name: str, remote_parent: RemoteObject,
                    local_path: Path) -> Optional[RemoteObject]:
        """Create a remote folder for ``local_path``.

        Returns:
            The new folder, or None on failure
        """
        logger.debug(f"mkdir {name} in {remote_parent.name}")
        try:
            payload = await self.retry.run(lambda: self.client.create_folder(name, remote_parent.id))
        except RemoteCallError as e:
            logger.error(f"Failed to create folder for {local_path}: {e}")
            self.sync_state.set_failed(local_path, e.to_http_resp(), e)
            return None
        except Exception as e:
            logger.error(f"Failed to create folder for {local_path}: {e}")
            self.sync_state.set_failed(local_path, None, e)
            return None

        folder = RemoteObject.from_api(payload)
        self.sync_state.set_success(local_path, folder)
        self.stats.folders_created += 1
        return folder

    async def rm(self, remote_object: RemoteObject) -> bool:
        """Delete a remote object; returns False if the delete failed."""
        logger.debug(f"rm {remote_object.name} ({remote_object.id})")
        try:
            await self.retry.run(lambda: self.client.delete(remote_object.id))
        except Exception as e:
            logger.error(f"Failed to delete {remote_object.name} ({remote_object.id}): {e}")
            return False
        self.stats.remote_deleted += 1
        return True

    async def do_sync(self):
        """Mirror the local root into the remote root folder.

        Raises:
            SyncError: If the local root is missing or the remote root is not a folder
        """
        local_root = Path(self.config.local_root_folder)
        if not local_root.exists():
            raise SyncError(f"{local_root} does not exist")
        if not local_root.is_dir():
            raise SyncError(f"{local_root} is not a directory")

        remote_root = await self.get_by_id(self.config.remote_root_folder_id)
        if not remote_root.is_folder:
            raise SyncError(
                f"Google drive file ID {self.config.remote_root_folder_id} is not a folder"
            )
        logger.info(f"Syncing {local_root} -> {remote_root.name}")

        self.sync_state.rebase(local_root)
        self.progress.reset()
        self.stats = SyncStats()
        start_time = time.monotonic()

        planner = TreePlanner(self)
        runner = ConcurrencyRunner(self.config.max_concurrency)
        try:
            await runner.drain(lambda queue: planner.produce(queue, local_root, remote_root))
        finally:
            self.stats.duration = time.monotonic() - start_time
            logger.info(
                f"Sync finished: {self.stats.files_uploaded} uploaded, "
                f"{self.stats.files_skipped} up to date, {self.stats.files_failed} failed, "
                f"{self.progress.total:,} bytes"
            )

    async def run(self):
        """Run :meth:`do_sync` while saving the sync state periodically.

        The state is saved one last time however the sync ends.
        """
        saver = asyncio.create_task(self.sync_state.autosave(self.config.schedule.sync_state_save))
        try:
            await self.do_sync()
        finally:
            saver.cancel()
            await asyncio.gather(saver, return_exceptions=True)
            self.sync_state.save()
