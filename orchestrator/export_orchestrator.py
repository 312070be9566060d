"""
Export orchestrator for coordinating the complete export pipeline.

This module provides the central coordinator that sequences all export phases:
Discover → Fetch → Convert → Write → Report.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from converters import ConversionError, MarkdownConverter
from exporters import MarkdownExporter, WriteError
from fetchers import FetcherError, FetcherFactory, RemoteStore
from logger import ProgressTracker, log_section
from models import ConvertedDocument, DocumentFailure, ExportedDocument
from orchestrator.export_report import ExportReport

logger = logging.getLogger('drive_markdown_exporter.orchestrator')


class ExportOrchestrator:
    """Central coordinator sequencing all export phases: Discover → Fetch → Convert → Write."""

    def __init__(self, config: Dict[str, Any], store: RemoteStore, logger: Optional[logging.Logger] = None):
        """
        Initialize export orchestrator.

        Args:
            config: Configuration dictionary
            store: Remote store capability shared by discovery and fetching
            logger: Optional logger instance
        """
        self.config = config
        self.store = store
        self.logger = logger or logging.getLogger('drive_markdown_exporter.orchestrator')

        self.walker = FetcherFactory.create_walker(config, store)
        self.fetcher = FetcherFactory.create_fetcher(config, store)
        self.converter = MarkdownConverter()
        self.exporter = MarkdownExporter(config)

        self.logger.info(
            f"ExportOrchestrator initialized (output: {self.exporter.output_directory}, "
            f"fail_fast: {self.fetcher.fail_fast})"
        )

    async def run(self, folder_id: str, dry_run: bool = False) -> ExportReport:
        """
        Export every document below a folder.

        Discovery, fetch (in fail-fast mode) and write errors abort the run
        and are recorded on the report; conversion errors only fail the
        affected document.

        Args:
            folder_id: Root folder identifier
            dry_run: Only discover documents, fetch and write nothing

        Returns:
            ExportReport describing the run
        """
        report = ExportReport(
            folder_id=folder_id,
            output_directory=str(self.exporter.output_directory),
            dry_run=dry_run
        )

        try:
            log_section("Phase 1: Discovery")
            report.documents = await self.walker.discover(folder_id)

            if dry_run:
                self.logger.info(f"Dry run: {report.discovered} documents discovered, nothing fetched")
                return report.finish()

            if not report.documents:
                self.logger.warning(f"No documents found below folder {folder_id}")

            # Collisions are a property of the document names alone
            self.exporter.check_collisions(report.documents)

            log_section("Phase 2: Fetch")
            exported = await self.fetcher.fetch_all(report.documents)
            report.fetched = len(exported)
            for failure in self.fetcher.failures:
                report.add_failure(failure)

            log_section("Phase 3: Conversion")
            converted = self._convert_all(exported, report)
            report.converted = len(converted)

            log_section("Phase 4: Write")
            self.exporter.prepare_output_directory()
            await self._write_all(converted, report)
            self.exporter.log_export_summary()

        except (FetcherError, WriteError) as e:
            self.logger.error(f"Export aborted: {e}")
            report.abort(e)

        return report.finish()

    def _convert_all(self, exported: List[ExportedDocument],
                     report: ExportReport) -> List[Tuple[ExportedDocument, ConvertedDocument]]:
        """Convert fetched documents, isolating per-document conversion failures."""
        converted = []

        with ProgressTracker(total_items=len(exported), item_type='conversions') as tracker:
            for document in exported:
                try:
                    converted.append((document, self.converter.convert_exported_document(document)))
                    tracker.increment(success=True)
                except ConversionError as e:
                    self.logger.error(f"Failed to convert document '{document.name}' ({document.id}): {e}")
                    report.add_failure(DocumentFailure(
                        document_id=document.id,
                        document_name=document.name,
                        stage='convert',
                        error_message=str(e)
                    ))
                    tracker.increment(success=False)

        report.conversion_stats = tracker.get_stats()
        return converted

    async def _write_all(self, converted: List[Tuple[ExportedDocument, ConvertedDocument]],
                         report: ExportReport) -> None:
        """Write all converted documents concurrently, raising the first write error."""
        tasks = [
            asyncio.to_thread(
                self.exporter.write,
                self.exporter.output_path_for(document.descriptor),
                result,
                document
            )
            for document, result in converted
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        first_error = None
        for (document, _), result in zip(converted, results):
            if isinstance(result, WriteError):
                report.add_failure(DocumentFailure(
                    document_id=document.id,
                    document_name=document.name,
                    stage='write',
                    error_message=str(result)
                ))
                first_error = first_error or result
            elif isinstance(result, BaseException):
                raise result
            else:
                report.written.append(str(result))

        if first_error is not None:
            raise first_error


__all__ = ['ExportOrchestrator']
