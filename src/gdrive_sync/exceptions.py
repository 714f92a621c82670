"""Exceptions raised by the sync engine."""

from typing import Optional


class GdriveSyncError(Exception):
    """Base exception for gdrive-sync."""


class RemoteCallError(GdriveSyncError):
    """A remote call ended with a non-retriable status."""

    def __init__(self, status_text: str, status: Optional[int] = None):
        super().__init__(status_text)
        self.status = status
        self.status_text = status_text

    def to_http_resp(self) -> dict:
        """Response summary stored in the sync state."""
        return {'status': self.status, 'statusText': self.status_text}


class SyncError(GdriveSyncError):
    """A sync precondition failed (missing local root, remote root not a folder)."""
