"""Fetchers package for discovering and retrieving documents from the remote store."""

from .base_fetcher import DiscoveryError, FetchError, FetcherError, RemoteStore
from .content_fetcher import ContentFetcher
from .folder_walker import FolderWalker


class FetcherFactory:
    """Factory for creating walker and fetcher instances from configuration."""

    @staticmethod
    def create_walker(config: dict, store: RemoteStore, logger=None) -> FolderWalker:
        """Create a FolderWalker honoring advanced.max_depth."""
        max_depth = config.get('advanced', {}).get('max_depth', 64)
        return FolderWalker(store, max_depth=max_depth, logger=logger)

    @staticmethod
    def create_fetcher(config: dict, store: RemoteStore, logger=None) -> ContentFetcher:
        """Create a ContentFetcher honoring the concurrency and failure settings."""
        advanced = config.get('advanced', {})
        return ContentFetcher(
            store,
            max_concurrency=advanced.get('max_concurrent_fetches', 8),
            fail_fast=advanced.get('fail_fast', True),
            show_progress=advanced.get('show_progress', False),
            logger=logger
        )


__all__ = [
    'ContentFetcher',
    'DiscoveryError',
    'FetchError',
    'FetcherError',
    'FetcherFactory',
    'FolderWalker',
    'RemoteStore'
]
