"""Markdown export package for the Drive to Markdown export pipeline.

This package writes converted documents to a flat directory of markdown
files, one per source document, each carrying YAML frontmatter.

Configuration Referenced:
- export.output_directory: Base output path for exported files
- export.slugify_filenames: Use lowercase hyphenated filenames
- export.include_source_metadata: Add source id and timestamps to frontmatter
"""

from .markdown_exporter import FilenameCollisionError, MarkdownExporter, WriteError

__all__ = [
    'FilenameCollisionError',
    'MarkdownExporter',
    'WriteError'
]
