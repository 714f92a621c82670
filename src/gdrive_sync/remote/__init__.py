"""Google Drive client and remote object models."""

from .drive_client import DriveClient
from .models import FOLDER_TYPE, ApiResponse, RemoteKind, RemoteObject

__all__ = ["DriveClient", "ApiResponse", "RemoteObject", "RemoteKind", "FOLDER_TYPE"]
