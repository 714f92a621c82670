"""Remote object snapshots and raw API responses."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, NamedTuple, Optional

FOLDER_TYPE = "application/vnd.google-apps.folder"


class RemoteKind(str, Enum):
    """Kinds of objects stored in Drive."""
    FILE = "file"
    FOLDER = "folder"


class ApiResponse(NamedTuple):
    """Outcome of a single remote call."""
    payload: Any
    status: int
    status_text: str


@dataclass(frozen=True)
class RemoteObject:
    """Immutable snapshot of a Drive file or folder."""
    id: str
    name: str
    mime_type: str = ""
    size: Optional[int] = None  # files only
    parents: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def kind(self) -> RemoteKind:
        return RemoteKind.FOLDER if self.mime_type == FOLDER_TYPE else RemoteKind.FILE

    @property
    def is_folder(self) -> bool:
        return self.kind is RemoteKind.FOLDER

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RemoteObject":
        """Build from a Drive API file resource."""
        size = data.get('size')
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            mime_type=data.get('mimeType', ''),
            size=int(size) if size is not None else None,
            parents=frozenset(data.get('parents') or ()),
        )

    def to_api(self) -> Dict[str, Any]:
        """Drive-shaped dictionary, used for persistence."""
        data: Dict[str, Any] = {
            'id': self.id,
            'name': self.name,
            'mimeType': self.mime_type,
        }
        if self.size is not None:
            data['size'] = self.size
        if self.parents:
            data['parents'] = sorted(self.parents)
        return data
