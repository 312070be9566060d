"""Concurrent retrieval of exported document HTML."""

import asyncio
import logging
import sys
from typing import List, Optional, Sequence

from tqdm import tqdm

from models import DocumentDescriptor, DocumentFailure, ExportedDocument
from .base_fetcher import FetchError, RemoteStore

logger = logging.getLogger('drive_markdown_exporter.fetchers.content')

DEFAULT_MAX_CONCURRENCY = 8


class ContentFetcher:
    """Fetches raw HTML for discovered documents with bounded concurrency."""

    def __init__(self, store: RemoteStore, max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
                 fail_fast: bool = True, show_progress: bool = False,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the fetcher.

        Args:
            store: Remote store used to export documents
            max_concurrency: Maximum number of in-flight exports
            fail_fast: Abort the whole batch on the first failure when True,
                otherwise record failures and keep going
            show_progress: Display a progress bar when attached to a terminal
            logger: Logger instance (optional)
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be a positive integer")
        self.store = store
        self.max_concurrency = max_concurrency
        self.fail_fast = fail_fast
        self.show_progress = show_progress
        self.logger = logger or logging.getLogger('drive_markdown_exporter.fetchers.content')
        self.failures: List[DocumentFailure] = []

    async def fetch_all(self, descriptors: Sequence[DocumentDescriptor]) -> List[ExportedDocument]:
        """
        Fetch the HTML of every descriptor.

        The result preserves the input order. In fail-fast mode the first
        FetchError cancels outstanding fetches and propagates; otherwise
        failed documents are left out of the result and listed in
        ``self.failures``.

        Args:
            descriptors: Documents to fetch

        Returns:
            List of ExportedDocument objects

        Raises:
            FetchError: In fail-fast mode, if any document fails
        """
        self.failures = []
        if not descriptors:
            return []

        self.logger.info(
            f"Fetching {len(descriptors)} documents "
            f"(max {self.max_concurrency} concurrent, fail_fast={self.fail_fast})"
        )
        semaphore = asyncio.Semaphore(self.max_concurrency)
        progress = tqdm(
            total=len(descriptors),
            desc="Fetching documents",
            unit="doc",
            leave=False,
            disable=not self._should_show_progress()
        )

        try:
            tasks = [
                asyncio.create_task(self._fetch_one(descriptor, semaphore, progress))
                for descriptor in descriptors
            ]

            if self.fail_fast:
                try:
                    return list(await asyncio.gather(*tasks))
                except FetchError:
                    for task in tasks:
                        task.cancel()
                    # Drain so no task outlives the batch; results are discarded
                    await asyncio.gather(*tasks, return_exceptions=True)
                    raise

            results = await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            progress.close()

        exported: List[ExportedDocument] = []
        for descriptor, result in zip(descriptors, results):
            if isinstance(result, FetchError):
                self.failures.append(DocumentFailure(
                    document_id=descriptor.id,
                    document_name=descriptor.name,
                    stage='fetch',
                    error_message=str(result.cause)
                ))
            elif isinstance(result, BaseException):
                raise result
            else:
                exported.append(result)

        if self.failures:
            self.logger.warning(
                f"{len(self.failures)} of {len(descriptors)} documents could not be fetched"
            )
        return exported

    async def _fetch_one(self, descriptor: DocumentDescriptor, semaphore: asyncio.Semaphore,
                         progress: tqdm) -> ExportedDocument:
        async with semaphore:
            self.logger.debug(f"Exporting document '{descriptor.name}' ({descriptor.id})")
            try:
                raw_html = await asyncio.to_thread(self.store.export_document_html, descriptor.id)
            except Exception as e:
                self.logger.error(f"Failed to export document '{descriptor.name}' ({descriptor.id}): {e}")
                raise FetchError(descriptor, e) from e
            finally:
                progress.update(1)

        return ExportedDocument(descriptor=descriptor, raw_html=raw_html)

    def _should_show_progress(self) -> bool:
        """Check if a progress bar should be displayed."""
        if not self.show_progress:
            return False
        return sys.stdout.isatty()
