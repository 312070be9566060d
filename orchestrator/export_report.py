"""
Export report for aggregating run statistics and formatting reports.

This module collects the outcome of one export run, formatting it for
console display and JSON export.
"""

import json
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from models import DocumentDescriptor, DocumentFailure

logger = logging.getLogger('drive_markdown_exporter.orchestrator.report')


class ExportReport:
    """Accumulates per-stage counts and failures of a single export run."""

    def __init__(self, folder_id: str, output_directory: str, dry_run: bool = False,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize an empty report.

        Args:
            folder_id: Root folder of the run
            output_directory: Directory documents are written to
            dry_run: Whether the run only discovers documents
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('drive_markdown_exporter.orchestrator.report')
        self.folder_id = folder_id
        self.output_directory = str(output_directory)
        self.dry_run = dry_run

        self.documents: List[DocumentDescriptor] = []
        self.fetched = 0
        self.converted = 0
        self.written: List[str] = []
        self.failures: List[DocumentFailure] = []
        self.aborted: Optional[str] = None
        self.conversion_stats: Optional[Dict[str, Any]] = None

        self.start_time = datetime.now()
        self.end_time: Optional[datetime] = None
        self._started = time.time()
        self.duration = 0.0

    @property
    def discovered(self) -> int:
        return len(self.documents)

    @property
    def success(self) -> bool:
        """True when the run completed without abort or per-document failure."""
        return self.aborted is None and not self.failures

    def add_failure(self, failure: DocumentFailure) -> None:
        """Record a per-document failure."""
        self.failures.append(failure)

    def abort(self, error: BaseException) -> None:
        """Mark the run as aborted by an error."""
        self.aborted = f"{type(error).__name__}: {error}"

    def finish(self) -> 'ExportReport':
        """Stamp the end time and duration."""
        self.end_time = datetime.now()
        self.duration = time.time() - self._started
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the report to a dictionary."""
        return {
            'summary': {
                'folder_id': self.folder_id,
                'output_directory': self.output_directory,
                'dry_run': self.dry_run,
                'discovered': self.discovered,
                'fetched': self.fetched,
                'converted': self.converted,
                'written': len(self.written),
                'failed': len(self.failures),
                'aborted': self.aborted,
                'success': self.success,
                'duration_seconds': self.duration,
                'duration_formatted': self._format_duration(self.duration)
            },
            'conversion': self.conversion_stats,
            'documents': [d.to_dict() for d in self.documents],
            'written_files': list(self.written),
            'errors': [f.to_dict() for f in self.failures],
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat() if self.end_time else None
        }

    def format_console_report(self) -> str:
        """
        Format report for console display.

        Returns:
            Formatted console string
        """
        sections = []

        sections.append("=" * 60)
        sections.append("DRY RUN REPORT" if self.dry_run else "EXPORT REPORT")
        sections.append("=" * 60)
        sections.append("")

        sections.append("Summary:")
        sections.append(f"  Folder:      {self.folder_id}")
        sections.append(f"  Output:      {self.output_directory}")
        sections.append(f"  Discovered:  {self.discovered}")
        if not self.dry_run:
            sections.append(f"  Fetched:     {self.fetched}")
            sections.append(f"  Converted:   {self.converted}")
            sections.append(f"  Written:     {len(self.written)}")
        if self.conversion_stats:
            sections.append(f"  Conversion:  {self.conversion_stats['success_rate']:.1f}% succeeded "
                            f"in {self.conversion_stats['elapsed_time_formatted']}")
        sections.append(f"  Duration:    {self._format_duration(self.duration)}")
        sections.append("")

        if self.dry_run and self.documents:
            sections.append("Documents:")
            sections.append("-" * 60)
            for document in self.documents:
                tags = ' / '.join(document.tag_path) or '(root)'
                sections.append(f"  {document.name}  [{tags}]")
            sections.append("")

        if self.aborted:
            sections.append("Run aborted:")
            sections.append(f"  {self.aborted}")
            sections.append("")

        if self.failures:
            sections.append("Error Summary:")
            sections.append(f"  Total errors: {len(self.failures)}")

            errors_by_stage: Dict[str, int] = {}
            for failure in self.failures:
                errors_by_stage[failure.stage] = errors_by_stage.get(failure.stage, 0) + 1

            for stage, count in sorted(errors_by_stage.items()):
                sections.append(f"  {stage}: {count} errors")

            for failure in self.failures[:10]:
                sections.append(
                    f"    - {failure.document_name} ({failure.document_id}): {failure.error_message}"
                )
            if len(self.failures) > 10:
                sections.append(f"    ... and {len(self.failures) - 10} more")
            sections.append("")

        sections.append("=" * 60)

        return "\n".join(sections)

    def export_json_report(self, filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=2, ensure_ascii=False, default=str)

            self.logger.info(f"JSON report exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")

    @staticmethod
    def _format_duration(seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes}m {secs}s"
        else:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            secs = int(seconds % 60)
            return f"{hours}h {minutes}m {secs}s"


__all__ = ['ExportReport']
