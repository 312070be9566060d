"""Remote store capability interface and fetcher errors."""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from models import DocumentDescriptor, RemoteEntry


class FetcherError(Exception):
    """Base exception for fetcher-related errors."""
    pass


class DiscoveryError(FetcherError):
    """Listing a folder failed, or the folder tree is too deep."""

    def __init__(self, message: str, folder_id: Optional[str] = None,
                 tag_path: Sequence[str] = ()):
        super().__init__(message)
        self.folder_id = folder_id
        self.tag_path = tuple(tag_path)


class FetchError(FetcherError):
    """Exporting the HTML of a single document failed."""

    def __init__(self, descriptor: DocumentDescriptor, cause: BaseException):
        super().__init__(
            f"Failed to export document '{descriptor.name}' ({descriptor.id}): {cause}"
        )
        self.descriptor = descriptor
        self.cause = cause


class RemoteStore(ABC):
    """Capability object giving access to a hierarchical document store.

    Implementations are constructed once at process start and passed to the
    walker and fetcher explicitly.
    """

    @abstractmethod
    def list_children(self, folder_id: str) -> List[RemoteEntry]:
        """
        List the documents and sub-folders directly inside a folder.

        Entries of any other kind are omitted. Entries are ordered by
        last-modified time, most recent first.

        Args:
            folder_id: Remote folder identifier

        Returns:
            List of RemoteEntry objects
        """
        pass

    @abstractmethod
    def export_document_html(self, document_id: str) -> str:
        """
        Export a document as HTML.

        Args:
            document_id: Remote document identifier

        Returns:
            Raw exported HTML
        """
        pass
