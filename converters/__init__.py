"""Converters package for turning exported document HTML into markdown."""

import logging

from .html_cleaner import ConversionError, HtmlCleaner
from .markdown_converter import MarkdownConverter

logger = logging.getLogger('drive_markdown_exporter.converters')


def convert_document(raw_html, logger=None):
    """
    Convenience function to convert one exported HTML document to markdown.

    This runs the full conversion pipeline:
    1. Parse the HTML and take the body
    2. Strip element ids
    3. Drop paragraphs holding only an empty span
    4. Remove color and font-size declarations from span styles
    5. Resolve redirect-wrapped links to their real targets
    6. Extract the first body element as the title
    7. Generate markdown with markdownify, keeping img and span as raw HTML

    Args:
        raw_html: Exported HTML string
        logger: Optional logger instance (uses module logger if not provided)

    Returns:
        ConvertedDocument with an empty tags tuple

    Raises:
        ConversionError: If the HTML has no body or no title element

    Example:
        >>> from converters import convert_document
        >>> doc = convert_document('<body><h1>Doc</h1><p>Hello</p></body>')
        >>> doc.title, doc.body
        ('Doc', 'Hello')
    """
    if logger is None:
        logger = logging.getLogger('drive_markdown_exporter.converters')

    converter = MarkdownConverter(logger=logger)
    return converter.convert_document(raw_html)


__all__ = [
    'convert_document',
    'ConversionError',
    'HtmlCleaner',
    'MarkdownConverter'
]
