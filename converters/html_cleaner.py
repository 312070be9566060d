"""HTML cleaner for removing Google Docs export artifacts before markdown conversion."""

import copy
import logging
from typing import Callable, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger('drive_markdown_exporter.converters.htmlcleaner')

# Substrings of a style declaration that mark it as a source-tool artifact
DISCARDED_STYLE_MARKERS = ('color', 'font-size')


class ConversionError(Exception):
    """Exported HTML does not have the shape the converter expects."""
    pass


class HtmlCleaner:
    """Rewrites an exported document body through a fixed sequence of pure passes.

    Every pass takes a body tree, works on a copy of it and returns the copy,
    so the input tree is never modified and each rule can be exercised on its
    own. Identifier stripping and empty paragraph removal run before title
    extraction, which relies on the first remaining element being meaningful.
    """

    def __init__(self, logger: logging.Logger = None):
        """Initialize HTML cleaner with optional logger."""
        self.logger = logger or logging.getLogger('drive_markdown_exporter.converters.htmlcleaner')

    @property
    def passes(self) -> List[Callable[[Tag], Tag]]:
        """Body rewrite passes in the order they are applied."""
        return [
            self.strip_ids,
            self.drop_empty_paragraphs,
            self.normalize_span_styles,
            self.resolve_tracked_links,
        ]

    def extract_body(self, soup: BeautifulSoup) -> Tag:
        """
        Return a detached copy of the document body.

        Raises:
            ConversionError: If the document has no body
        """
        if soup.body is None:
            raise ConversionError("Exported HTML has no <body> element")
        return copy.copy(soup.body)

    def clean(self, body: Tag) -> Tag:
        """
        Apply every rewrite pass to a body tree.

        Args:
            body: Body element of a parsed export

        Returns:
            Rewritten copy of the body
        """
        self.logger.debug("Cleaning exported HTML body")
        for rewrite in self.passes:
            body = rewrite(body)
        return body

    def strip_ids(self, body: Tag) -> Tag:
        """Remove the id attribute from every element."""
        body = copy.copy(body)
        for element in [body] + body.find_all(True):
            if 'id' in element.attrs:
                del element['id']
        return body

    def drop_empty_paragraphs(self, body: Tag) -> Tag:
        """Remove elements whose whole content is a single empty span."""
        body = copy.copy(body)
        removed_count = 0

        for element in body.find_all(True):
            if element.decomposed:
                continue
            if self._is_empty_span_wrapper(element):
                element.decompose()
                removed_count += 1

        if removed_count > 0:
            self.logger.debug(f"Removed {removed_count} empty paragraphs")
        return body

    def normalize_span_styles(self, body: Tag) -> Tag:
        """Drop color and font-size declarations from span inline styles."""
        body = copy.copy(body)

        for span in body.find_all('span', style=True):
            declarations = [d.strip() for d in span['style'].split(';') if d.strip()]
            kept = [
                d for d in declarations
                if not any(marker in d.lower() for marker in DISCARDED_STYLE_MARKERS)
            ]
            if kept:
                span['style'] = ';'.join(kept)
            else:
                del span['style']

        return body

    def resolve_tracked_links(self, body: Tag) -> Tag:
        """Replace redirect-wrapped hrefs with the target carried in their q parameter."""
        body = copy.copy(body)

        for link in body.find_all('a', href=True):
            target = self._redirect_target(link['href'])
            if target is not None:
                link['href'] = target

        return body

    def extract_title(self, body: Tag) -> Tuple[str, Tag]:
        """
        Take the first element of the body as the document title.

        Returns:
            Tuple of (title text, copy of the body without the title element)

        Raises:
            ConversionError: If the body contains no element
        """
        body = copy.copy(body)
        title_node = body.find(True, recursive=False)
        if title_node is None:
            raise ConversionError("Exported HTML body has no title element")

        title = title_node.get_text().strip()
        title_node.decompose()
        return title, body

    @staticmethod
    def _is_empty_span_wrapper(element: Tag) -> bool:
        """Check whether the element's only content is an empty span."""
        if len(element.contents) != 1:
            return False
        child = element.contents[0]
        return isinstance(child, Tag) and child.name == 'span' and not child.contents

    @staticmethod
    def _redirect_target(href: str) -> Optional[str]:
        """Return the q parameter of an absolute URL, or None to leave the href alone."""
        try:
            parsed = urlparse(href)
        except ValueError:
            return None

        if not parsed.scheme:
            return None

        targets = parse_qs(parsed.query).get('q')
        if not targets:
            return None
        return targets[0]


__all__ = ['ConversionError', 'HtmlCleaner']
