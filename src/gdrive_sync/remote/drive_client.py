"""Google Drive v3 operations used by the sync engine."""

import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httplib2
import requests
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload

from ..exceptions import RemoteCallError
from .models import FOLDER_TYPE, ApiResponse, RemoteObject

logger = logging.getLogger(__name__)

API_URL = 'https://www.googleapis.com/drive/v3/files'

FILE_FIELDS = 'id, name, mimeType, size, parents'
LIST_FIELDS = f'nextPageToken, files({FILE_FIELDS})'

# Files above this size go up in resumable chunks instead of one multipart request
RESUMABLE_THRESHOLD = 5 * 1024 * 1024
UPLOAD_CHUNK_SIZE = 8 * 1024 * 1024

ApiCall = Callable[[], Awaitable[ApiResponse]]
Retry = Callable[[ApiCall], Awaitable[Any]]


def quote_query_value(value: str) -> str:
    """Quote a string literal for a Drive search query."""
    escaped = value.replace('\\', '\\\\').replace("'", "\\'")
    return f"'{escaped}'"


async def _expect_ok(call: ApiCall) -> Any:
    response = await call()
    if response.status >= 300:
        raise RemoteCallError(response.status_text, status=response.status)
    return response.payload


def _error_response(error: HttpError) -> ApiResponse:
    try:
        payload = json.loads(error.content)
    except ValueError:
        payload = error.content.decode('utf-8', errors='replace')
    return ApiResponse(payload, int(error.resp.status), error.resp.reason or '')


class DriveClient:
    """Thin async wrapper around the Drive REST API.

    Metadata calls run the blocking ``requests`` session in a worker thread.
    Uploads go through the ``googleapiclient`` Drive service with its own
    authorized ``httplib2`` connection per call. Every call returns the raw
    :class:`ApiResponse`; status codes are left to the caller and transport
    errors propagate as raised by the transport.
    """

    def __init__(self, session: requests.Session, timeout: float = 300.0, service=None):
        """Initialize the client.

        Args:
            session: Authorized session (e.g. ``AuthorizedSession``)
            timeout: Per-request timeout in seconds
            service: Prebuilt Drive v3 service; built from the session's
                credentials on first upload when omitted
        """
        self.session = session
        self.timeout = timeout
        self._service = service
        self._service_lock = threading.Lock()

    @property
    def service(self):
        with self._service_lock:
            if self._service is None:
                self._service = build('drive', 'v3', credentials=self.session.credentials,
                                      cache_discovery=False)
            return self._service

    def _authorized_http(self) -> AuthorizedHttp:
        # httplib2.Http must not be shared across threads
        return AuthorizedHttp(self.session.credentials, http=httplib2.Http(timeout=self.timeout))

    async def _send(self, method: str, url: str, **kwargs) -> ApiResponse:
        kwargs.setdefault('timeout', self.timeout)
        response = await asyncio.to_thread(self.session.request, method, url, **kwargs)
        payload = None
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
        return ApiResponse(payload, response.status_code, response.reason or '')

    async def get_by_id(self, file_id: str) -> ApiResponse:
        return await self._send('GET', f'{API_URL}/{file_id}', params={'fields': FILE_FIELDS})

    async def list_page(self, parent_id: str, name: Optional[str] = None,
                        page_token: Optional[str] = None) -> ApiResponse:
        """Fetch one page of the non-trashed children of a folder."""
        q = f"{quote_query_value(parent_id)} in parents and trashed = false"
        if name is not None:
            q += f" and name = {quote_query_value(name)}"
        params = {'q': q, 'fields': LIST_FIELDS, 'spaces': 'drive'}
        if page_token:
            params['pageToken'] = page_token
        return await self._send('GET', API_URL, params=params)

    async def _pages(self, parent_id: str, name: Optional[str], retry: Optional[Retry]):
        retry = retry or _expect_ok
        page_token = None
        while True:
            data = await retry(
                lambda token=page_token: self.list_page(parent_id, name=name, page_token=token)
            )
            files = data.get('files') if isinstance(data, dict) else None
            if not isinstance(files, list):
                return
            yield files
            page_token = data.get('nextPageToken')
            if not page_token:
                return

    async def list_children(self, parent_id: str, retry: Optional[Retry] = None) -> Dict[str, RemoteObject]:
        """List the children of a folder keyed by name.

        Later entries win on duplicate names. A failure while paginating is
        logged and whatever was collected so far is returned, so the caller
        treats the missing part as absent and re-uploads it.
        """
        children: Dict[str, RemoteObject] = {}
        try:
            async for files in self._pages(parent_id, None, retry):
                for item in files:
                    obj = RemoteObject.from_api(item)
                    children[obj.name] = obj
        except Exception as e:
            logger.error(f"Failed to list children of {parent_id}: {e}")
        return children

    async def find_children(self, parent_id: str, name: str,
                            retry: Optional[Retry] = None) -> List[RemoteObject]:
        """Return every child of ``parent_id`` called ``name``."""
        found = []
        async for files in self._pages(parent_id, name, retry):
            found.extend(RemoteObject.from_api(item) for item in files)
        return found

    def _upload(self, name: str, parent_id: str, local_path: Path) -> ApiResponse:
        size = local_path.stat().st_size
        media = MediaFileUpload(
            str(local_path),
            chunksize=UPLOAD_CHUNK_SIZE,
            resumable=size > RESUMABLE_THRESHOLD,
        )
        request = self.service.files().create(
            body={'name': name, 'parents': [parent_id]},
            media_body=media,
            fields=FILE_FIELDS,
            enforceSingleParent=True,
        )
        try:
            payload = request.execute(http=self._authorized_http())
        except HttpError as e:
            return _error_response(e)
        finally:
            media.stream().close()
        return ApiResponse(payload, 200, 'OK')

    async def create_file(self, name: str, parent_id: str, local_path: Path) -> ApiResponse:
        """Upload ``local_path`` as a new file with a single parent.

        The file is re-opened on every call, so a retried upload starts over.
        """
        return await asyncio.to_thread(self._upload, name, parent_id, Path(local_path))

    async def create_folder(self, name: str, parent_id: str) -> ApiResponse:
        metadata = {'name': name, 'mimeType': FOLDER_TYPE, 'parents': [parent_id]}
        return await self._send('POST', API_URL, params={'fields': FILE_FIELDS}, json=metadata)

    async def delete(self, file_id: str) -> ApiResponse:
        return await self._send('DELETE', f'{API_URL}/{file_id}')
