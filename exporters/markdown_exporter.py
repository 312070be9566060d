"""Markdown exporter writing converted documents to local files with YAML frontmatter."""

import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

from models import ConvertedDocument, DocumentDescriptor, ExportedDocument

# Characters that cannot appear in a filename on common filesystems
RESERVED_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
MARKDOWN_SUFFIX = '.md'


class WriteError(Exception):
    """Writing an exported markdown file failed."""
    pass


class FilenameCollisionError(WriteError):
    """Two documents of the same run map to the same output file."""
    pass


class MarkdownExporter:
    """
    Writes converted documents to a flat output directory.

    Each document becomes one UTF-8 file: YAML frontmatter between `---`
    fences, a blank line, then the markdown body. Files are written through
    a temporary file in the target directory and moved into place, so a
    failed write never leaves a partial file behind.
    """

    def __init__(self, config: Dict[str, Any], logger: Optional[logging.Logger] = None, output_dir: Optional[str] = None):
        """
        Initialize the markdown exporter.

        Args:
            config: Configuration dictionary with export settings
            logger: Logger instance
            output_dir: Optional output directory override (takes precedence over config)
        """
        self.config = config
        self.logger = logger or logging.getLogger('drive_markdown_exporter.exporters.markdown_exporter')

        export_config = config.get('export', {})
        self.output_directory = Path(output_dir) if output_dir else Path(export_config.get('output_directory', './drive-export'))
        self.slugify_filenames = export_config.get('slugify_filenames', False)
        self.include_source_metadata = export_config.get('include_source_metadata', False)

        self.stats = {
            'total_documents_written': 0,
            'total_bytes_written': 0,
            'total_errors': 0
        }
        self._stats_lock = threading.Lock()

        self.logger.debug(f"MarkdownExporter initialized (output: {self.output_directory})")

    def prepare_output_directory(self) -> Path:
        """
        Create the output directory if it does not exist.

        Raises:
            WriteError: If the directory cannot be created
        """
        try:
            self.output_directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Failed to create output directory {self.output_directory}: {e}")
            raise WriteError(f"Cannot create output directory {self.output_directory}: {e}") from e

        self.logger.debug(f"Output directory ready: {self.output_directory}")
        return self.output_directory

    def output_path_for(self, document: DocumentDescriptor) -> Path:
        """
        Compute the output file path for a document.

        The file is named after the source document, made filesystem-safe,
        with `.md` appended when missing.

        Args:
            document: Descriptor (or exported document) of the source document

        Returns:
            Path inside the output directory
        """
        if self.slugify_filenames:
            stem = document.name[:-len(MARKDOWN_SUFFIX)] if document.name.lower().endswith(MARKDOWN_SUFFIX) else document.name
            filename = self._sanitize_filename(stem) + MARKDOWN_SUFFIX
        else:
            filename = self._safe_filename(document.name)
            if not filename.lower().endswith(MARKDOWN_SUFFIX):
                filename += MARKDOWN_SUFFIX

        return self.output_directory / filename

    def check_collisions(self, documents: Iterable[DocumentDescriptor]) -> List[Tuple[DocumentDescriptor, Path]]:
        """
        Resolve output paths for a batch and reject duplicates.

        Returns:
            List of (document, path) pairs in input order

        Raises:
            FilenameCollisionError: If two documents map to the same file
        """
        seen: Dict[str, DocumentDescriptor] = {}
        targets = []

        for document in documents:
            path = self.output_path_for(document)
            key = os.path.normcase(str(path))
            if key in seen:
                other = seen[key]
                raise FilenameCollisionError(
                    f"Documents '{other.name}' ({other.id}) and '{document.name}' ({document.id}) "
                    f"both map to {path}"
                )
            seen[key] = document
            targets.append((document, path))

        return targets

    def render_document(self, converted: ConvertedDocument, exported: Optional[ExportedDocument] = None) -> str:
        """
        Render a converted document as frontmatter plus markdown body.

        Args:
            converted: Conversion result
            exported: Source document, used for source metadata when enabled

        Returns:
            Full file content ending with a newline
        """
        frontmatter = self._generate_frontmatter(converted, exported)
        return f"{frontmatter}\n\n{converted.body}\n"

    def write(self, path: Path, converted: ConvertedDocument, exported: Optional[ExportedDocument] = None) -> Path:
        """
        Atomically write one rendered document, replacing any existing file.

        Args:
            path: Target file path
            converted: Conversion result
            exported: Source document for optional metadata

        Returns:
            The written path

        Raises:
            WriteError: If the file cannot be written
        """
        path = Path(path)
        content = self.render_document(converted, exported)
        tmp_path = None

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
            os.replace(tmp_path, path)
        except OSError as e:
            with self._stats_lock:
                self.stats['total_errors'] += 1
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            self.logger.error(f"Failed to write {path}: {e}")
            raise WriteError(f"Cannot write {path}: {e}") from e

        # Writes run on worker threads
        with self._stats_lock:
            self.stats['total_documents_written'] += 1
            self.stats['total_bytes_written'] += len(content.encode('utf-8'))
        self.logger.info(f"Wrote {path}")
        return path

    def _generate_frontmatter(self, converted: ConvertedDocument, exported: Optional[ExportedDocument] = None) -> str:
        """Generate the YAML frontmatter block, fences included."""
        frontmatter = {
            'title': converted.title,
            'tags': list(converted.tags)
        }

        if self.include_source_metadata and exported is not None:
            frontmatter['source_id'] = exported.id
            if exported.created_time:
                frontmatter['created_time'] = exported.created_time.isoformat()
            if exported.modified_time:
                frontmatter['modified_time'] = exported.modified_time.isoformat()

        yaml_str = yaml.safe_dump(
            frontmatter,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=1000
        )

        return f"---\n{yaml_str}---"

    @staticmethod
    def _safe_filename(name: str) -> str:
        """Replace path separators and reserved characters, keeping the name readable."""
        safe = RESERVED_FILENAME_CHARS.sub('_', name or '').strip().rstrip('.')
        if safe in ('', '.', '..'):
            return 'untitled'
        return safe

    def _sanitize_filename(self, title: str) -> str:
        """
        Convert a document name to a lowercase hyphenated slug.

        Args:
            title: Document name

        Returns:
            Sanitized filename stem
        """
        if not title:
            return "untitled"

        sanitized = title.lower()

        # Replace spaces and special characters with hyphens
        sanitized = re.sub(r'[^a-z0-9\-_]', '-', sanitized)

        # Remove consecutive hyphens
        sanitized = re.sub(r'-+', '-', sanitized)

        sanitized = sanitized.strip('-')

        max_len = 100
        if len(sanitized) > max_len:
            sanitized = sanitized[:max_len]

        if not sanitized:
            sanitized = "untitled"

        return sanitized

    def log_export_summary(self) -> None:
        """Log final export statistics."""
        self.logger.info("=" * 60)
        self.logger.info("MARKDOWN EXPORT SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Documents written: {self.stats['total_documents_written']}")
        self.logger.info(f"Total size: {self._format_bytes(self.stats['total_bytes_written'])}")
        self.logger.info(f"Total errors: {self.stats['total_errors']}")
        self.logger.info(f"Output directory: {self.output_directory}")
        self.logger.info("=" * 60)

    def _format_bytes(self, bytes_val: int) -> str:
        """Format bytes to human-readable string."""
        if bytes_val == 0:
            return "0 B"

        for unit in ['B', 'KB', 'MB', 'GB']:
            if bytes_val < 1024.0:
                return f"{bytes_val:.1f} {unit}"
            bytes_val /= 1024.0

        return f"{bytes_val:.1f} TB"


__all__ = ['FilenameCollisionError', 'MarkdownExporter', 'WriteError']
