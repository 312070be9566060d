"""Recursive folder discovery producing tagged document descriptors."""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from models import DocumentDescriptor, EntryKind, FolderRef
from .base_fetcher import DiscoveryError, RemoteStore

logger = logging.getLogger('drive_markdown_exporter.fetchers.walker')

DEFAULT_MAX_DEPTH = 64


class FolderWalker:
    """Walks a folder tree depth-first, tagging documents with their folder path."""

    def __init__(self, store: RemoteStore, max_depth: int = DEFAULT_MAX_DEPTH,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the walker.

        Args:
            store: Remote store used to list folders
            max_depth: Deepest folder nesting accepted below the root
            logger: Logger instance (optional)
        """
        if max_depth < 0:
            raise ValueError("max_depth must not be negative")
        self.store = store
        self.max_depth = max_depth
        self.logger = logger or logging.getLogger('drive_markdown_exporter.fetchers.walker')
        self.folders_visited = 0

    async def discover(self, folder_id: str, tag_path: Sequence[str] = ()) -> List[DocumentDescriptor]:
        """
        Discover every document below a folder.

        Sub-folders are explored sequentially in the order the store returns
        them, so the result is a depth-first pre-order listing with siblings
        ordered by descending modified time.

        Args:
            folder_id: Root folder identifier
            tag_path: Folder names already above the root (usually empty)

        Returns:
            Flat list of DocumentDescriptor objects

        Raises:
            DiscoveryError: If a listing fails or the tree is deeper than max_depth
        """
        self.folders_visited = 0
        root = FolderRef(id=folder_id, name=tag_path[-1] if tag_path else '')
        documents = await self._walk(root, tuple(tag_path), depth=0)
        self.logger.info(
            f"Discovered {len(documents)} documents in {self.folders_visited} folders "
            f"below {folder_id}"
        )
        return documents

    async def _walk(self, folder: FolderRef, tag_path: Tuple[str, ...], depth: int) -> List[DocumentDescriptor]:
        if depth > self.max_depth:
            raise DiscoveryError(
                f"Folder hierarchy deeper than {self.max_depth} levels at "
                f"'{'/'.join(tag_path)}' ({folder.id})",
                folder_id=folder.id,
                tag_path=tag_path
            )

        self.logger.debug(f"Listing folder {folder.id} (depth={depth}, path={list(tag_path)})")

        try:
            children = await asyncio.to_thread(self.store.list_children, folder.id)
        except DiscoveryError:
            raise
        except Exception as e:
            self.logger.error(f"Failed to list folder {folder.id} at '{'/'.join(tag_path)}': {e}")
            raise DiscoveryError(
                f"Failed to list folder {folder.id} at '{'/'.join(tag_path) or '/'}': {e}",
                folder_id=folder.id,
                tag_path=tag_path
            ) from e

        self.folders_visited += 1
        documents: List[DocumentDescriptor] = []

        for entry in children:
            if entry.kind is EntryKind.DOCUMENT:
                documents.append(DocumentDescriptor.from_entry(entry, tag_path))
            elif entry.kind is EntryKind.FOLDER:
                subfolder = FolderRef(id=entry.id, name=entry.name)
                documents.extend(
                    await self._walk(subfolder, tag_path + (entry.name,), depth + 1)
                )
            else:
                self.logger.debug(f"Skipping entry '{entry.name}' of unsupported kind")

        return documents
