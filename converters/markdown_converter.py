"""Markdown converter turning exported Google Docs HTML into markdown documents."""

import logging

from bs4 import BeautifulSoup
from markdownify import MarkdownConverter as MarkdownifyConverter

from models import ConvertedDocument, ExportedDocument
from .html_cleaner import ConversionError, HtmlCleaner

logger = logging.getLogger('drive_markdown_exporter.converters.markdownconverter')


class MarkdownConverter(MarkdownifyConverter):
    """
    Converts one exported HTML document into a title and a markdown body.

    This class extends markdownify.MarkdownConverter to provide:
    - Export artifact cleanup through HtmlCleaner
    - Title extraction from the first body element
    - Raw HTML passthrough for img and span elements, whose attributes
      (inline styles, image sizing) have no markdown equivalent
    """

    def __init__(self, logger: logging.Logger = None, **kwargs):
        """Initialize markdown converter with logger and markdownify options."""
        markdownify_options = {
            'heading_style': 'ATX',  # Use # for headings
            'bullets': '-',  # Use - for unordered lists
            'escape_misc': True,  # Literal <, >, & etc. in text stay literal
        }
        markdownify_options.update(kwargs)

        super().__init__(**markdownify_options)

        self.logger = logger or logging.getLogger('drive_markdown_exporter.converters.markdownconverter')
        self.html_cleaner = HtmlCleaner(self.logger)

    def convert_document(self, raw_html: str) -> ConvertedDocument:
        """
        Convert raw exported HTML to a ConvertedDocument.

        Tags are left empty; the caller attaches the document's tag path.

        Args:
            raw_html: HTML as exported by the remote store

        Returns:
            ConvertedDocument with title and markdown body

        Raises:
            ConversionError: If the HTML has no body or no title element
        """
        soup = self._parse_html(raw_html or '')
        body = self.html_cleaner.extract_body(soup)
        body = self.html_cleaner.clean(body)
        title, body = self.html_cleaner.extract_title(body)

        markdown = self._convert_to_markdown(body)
        self.logger.debug(f"Converted document '{title}' ({len(markdown)} chars of markdown)")

        return ConvertedDocument(title=title, body=markdown)

    def convert_exported_document(self, document: ExportedDocument) -> ConvertedDocument:
        """
        Convert an exported document and attach its tag path as tags.

        Any failure inside parsing or conversion, including RecursionError on
        very deeply nested HTML, is raised as ConversionError so that it only
        fails this document.
        """
        self.logger.info(f"Converting document '{document.name}' ({document.id})")
        try:
            converted = self.convert_document(document.raw_html)
        except Exception as e:
            raise ConversionError(f"Document '{document.name}' ({document.id}): {e}") from e
        return ConvertedDocument(title=converted.title, body=converted.body, tags=document.tag_path)

    def _parse_html(self, html_content: str) -> BeautifulSoup:
        """Parse HTML content with BeautifulSoup."""
        return BeautifulSoup(html_content, 'lxml')

    def _convert_to_markdown(self, body) -> str:
        """Convert a cleaned body tree with the subclassed converter."""
        markdown = self.convert_soup(body)
        return markdown.strip('\n').rstrip()

    def convert_span(self, el, text, parent_tags=None, **kwargs):
        """Keep spans as embedded HTML so their remaining inline styles survive."""
        return str(el)

    def convert_img(self, el, text, parent_tags=None, **kwargs):
        """Keep images as embedded HTML so sizing and title attributes survive."""
        return str(el)


__all__ = ['ConversionError', 'MarkdownConverter']
