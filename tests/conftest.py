"""Shared fixtures: an in-memory Drive and helpers to build sync managers."""

import asyncio
import itertools
from collections import defaultdict
from pathlib import Path

import pytest

from gdrive_sync.config.settings import ScheduleOptions, SyncConfig
from gdrive_sync.remote.drive_client import DriveClient
from gdrive_sync.remote.models import FOLDER_TYPE, ApiResponse
from gdrive_sync.sync.sync_manager import SyncManager
from gdrive_sync.sync.sync_state import SyncState

ROOT_ID = "root-id"


class FakeDriveClient(DriveClient):
    """DriveClient whose raw calls hit an in-memory store instead of HTTP.

    Pagination, duplicate lookup and error swallowing still run through the
    real ``DriveClient`` code.
    """

    def __init__(self, page_size: int = 100, upload_delay: float = 0.0):
        super().__init__(session=None)
        self.objects = {}
        self.calls = []
        self.scripted = defaultdict(list)
        self.create_on_error = False
        self.page_size = page_size
        self.upload_delay = upload_delay
        self.active_uploads = 0
        self.peak_uploads = 0
        self._ids = itertools.count(1)
        self.add_folder("root", None, file_id=ROOT_ID)

    def _new_id(self) -> str:
        return f"id-{next(self._ids)}"

    def add_file(self, name, parent_id, size, file_id=None):
        file_id = file_id or self._new_id()
        self.objects[file_id] = {
            'id': file_id, 'name': name, 'mimeType': 'text/plain',
            'size': str(size), 'parents': [parent_id],
        }
        return self.objects[file_id]

    def add_folder(self, name, parent_id, file_id=None):
        file_id = file_id or self._new_id()
        self.objects[file_id] = {
            'id': file_id, 'name': name, 'mimeType': FOLDER_TYPE,
            'parents': [parent_id] if parent_id else [],
        }
        return self.objects[file_id]

    def children(self, parent_id, name=None):
        return [
            obj for obj in sorted(self.objects.values(), key=lambda o: o['id'])
            if parent_id in obj['parents'] and (name is None or obj['name'] == name)
        ]

    def child(self, parent_id, name):
        found = self.children(parent_id, name)
        assert len(found) == 1, f"expected one {name!r} in {parent_id}, got {found}"
        return found[0]

    def calls_of(self, op):
        return [call for call in self.calls if call[0] == op]

    def mutating_calls(self):
        return [call for call in self.calls if call[0] in ('create_file', 'create_folder', 'delete')]

    def _next_scripted(self, op):
        if self.scripted[op]:
            status = self.scripted[op].pop(0)
            return ApiResponse(None, status, f"scripted {status}")
        return None

    async def get_by_id(self, file_id):
        self.calls.append(('get_by_id', file_id))
        await asyncio.sleep(0)
        scripted = self._next_scripted('get_by_id')
        if scripted:
            return scripted
        if file_id not in self.objects:
            return ApiResponse(None, 404, "Not Found")
        return ApiResponse(dict(self.objects[file_id]), 200, "OK")

    async def list_page(self, parent_id, name=None, page_token=None):
        self.calls.append(('list_page', parent_id, name, page_token))
        await asyncio.sleep(0)
        scripted = self._next_scripted('list_page')
        if scripted:
            return scripted
        children = self.children(parent_id, name)
        offset = int(page_token or 0)
        payload = {'files': [dict(obj) for obj in children[offset:offset + self.page_size]]}
        if offset + self.page_size < len(children):
            payload['nextPageToken'] = str(offset + self.page_size)
        return ApiResponse(payload, 200, "OK")

    async def create_file(self, name, parent_id, local_path):
        self.calls.append(('create_file', name, parent_id))
        self.active_uploads += 1
        self.peak_uploads = max(self.peak_uploads, self.active_uploads)
        try:
            await asyncio.sleep(self.upload_delay)
            size = Path(local_path).stat().st_size
            scripted = self._next_scripted('create_file')
            if scripted:
                if self.create_on_error:
                    self.add_file(name, parent_id, size)
                return scripted
            return ApiResponse(dict(self.add_file(name, parent_id, size)), 200, "OK")
        finally:
            self.active_uploads -= 1

    async def create_folder(self, name, parent_id):
        self.calls.append(('create_folder', name, parent_id))
        await asyncio.sleep(0)
        scripted = self._next_scripted('create_folder')
        if scripted:
            return scripted
        return ApiResponse(dict(self.add_folder(name, parent_id)), 200, "OK")

    async def delete(self, file_id):
        self.calls.append(('delete', file_id))
        await asyncio.sleep(0)
        scripted = self._next_scripted('delete')
        if scripted:
            return scripted
        if self.objects.pop(file_id, None) is None:
            return ApiResponse(None, 404, "Not Found")
        return ApiResponse(None, 204, "No Content")


def write_file(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


@pytest.fixture
def fake_drive():
    """In-memory Drive with an empty root folder."""
    return FakeDriveClient()


@pytest.fixture
def local_root(tmp_path):
    """Empty local folder to sync."""
    root = tmp_path / "local"
    root.mkdir()
    return root


@pytest.fixture
def make_manager(tmp_path, local_root):
    """Build a SyncManager over a fake drive with a fresh or given sync state."""
    def _make(client, sync_state=None, **overrides):
        options = {
            'local_root_folder': local_root,
            'remote_root_folder_id': ROOT_ID,
            'max_concurrency': 4,
            'schedule': ScheduleOptions(retransmit_interval=0),
            'state_file': tmp_path / "sync_state.yml",
        }
        options.update(overrides)
        config = SyncConfig(**options)
        if sync_state is None:
            sync_state = SyncState(config.state_file, path_prefix=config.local_root_folder)
        return SyncManager(client, config, sync_state)

    return _make
