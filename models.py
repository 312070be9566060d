"""Data models for the Drive to Markdown export pipeline."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger('drive_markdown_exporter')

FOLDER_MIME_TYPE = 'application/vnd.google-apps.folder'
DOCUMENT_MIME_TYPE = 'application/vnd.google-apps.document'


class EntryKind(Enum):
    """Kinds of remote entries visible to discovery."""
    DOCUMENT = "document"
    FOLDER = "folder"

    @classmethod
    def from_mime_type(cls, mime_type: Optional[str]) -> Optional['EntryKind']:
        """Map a Drive mime type to an entry kind, or None for other file types."""
        if mime_type == DOCUMENT_MIME_TYPE:
            return cls.DOCUMENT
        if mime_type == FOLDER_MIME_TYPE:
            return cls.FOLDER
        return None


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class RemoteEntry:
    """A child entry of a remote folder, as listed by the store."""

    id: str
    name: str
    kind: EntryKind
    created_time: Optional[datetime] = None
    modified_time: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize entry to dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'kind': self.kind.value,
            'created_time': _isoformat(self.created_time),
            'modified_time': _isoformat(self.modified_time)
        }


@dataclass(frozen=True)
class FolderRef:
    """Identifies a folder during traversal."""

    id: str
    name: str


@dataclass(frozen=True)
class DocumentDescriptor:
    """A discovered document annotated with its ancestor folder names."""

    id: str
    name: str
    created_time: Optional[datetime] = None
    modified_time: Optional[datetime] = None
    tag_path: Tuple[str, ...] = ()

    @classmethod
    def from_entry(cls, entry: RemoteEntry, tag_path: Tuple[str, ...]) -> 'DocumentDescriptor':
        """Build a descriptor from a listed document entry."""
        return cls(
            id=entry.id,
            name=entry.name,
            created_time=entry.created_time,
            modified_time=entry.modified_time,
            tag_path=tuple(tag_path)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize descriptor to dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'created_time': _isoformat(self.created_time),
            'modified_time': _isoformat(self.modified_time),
            'tag_path': list(self.tag_path)
        }


@dataclass(frozen=True)
class ExportedDocument:
    """A discovered document together with its raw exported HTML."""

    descriptor: DocumentDescriptor
    raw_html: str

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def created_time(self) -> Optional[datetime]:
        return self.descriptor.created_time

    @property
    def modified_time(self) -> Optional[datetime]:
        return self.descriptor.modified_time

    @property
    def tag_path(self) -> Tuple[str, ...]:
        return self.descriptor.tag_path

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exported document to dictionary."""
        data = self.descriptor.to_dict()
        data['raw_html'] = self.raw_html
        return data


@dataclass(frozen=True)
class ConvertedDocument:
    """Markdown conversion result for one document."""

    title: str
    body: str
    tags: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize converted document to dictionary."""
        return {
            'title': self.title,
            'body': self.body,
            'tags': list(self.tags)
        }


@dataclass
class DocumentFailure:
    """Tracks a per-document failure for reporting."""

    document_id: str
    document_name: str
    stage: str  # "fetch", "convert", "write"
    error_message: str
    timestamp: Optional[str] = field(default=None)

    def __post_init__(self) -> None:
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize failure to dictionary."""
        return {
            'document_id': self.document_id,
            'document_name': self.document_name,
            'stage': self.stage,
            'error_message': self.error_message,
            'timestamp': self.timestamp
        }


__all__ = [
    'DOCUMENT_MIME_TYPE',
    'FOLDER_MIME_TYPE',
    'ConvertedDocument',
    'DocumentDescriptor',
    'DocumentFailure',
    'EntryKind',
    'ExportedDocument',
    'FolderRef',
    'RemoteEntry'
]
