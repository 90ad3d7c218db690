"""
Content Extraction Module

Recovers analyzable policy prose from a page, in two modes:
- Live page: first container (policy ids, <main>, <body>) with significant text
- Raw markup: boilerplate removal (scripts, navigation, forms, ads...) and
  whitespace normalization, scoped to <body>
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup

from demystifier.config import settings
from demystifier.exceptions import ContentNotFoundError, InsufficientContentError
from demystifier.page import PageAccessor

logger = logging.getLogger(__name__)

# Non-prose scaffolding stripped from raw markup before measuring text
BOILERPLATE_SELECTORS = (
    "script, style, noscript, meta, link, head, footer, header, nav, iframe, "
    "form, button, input, textarea, select, .ad, .advertisement, "
    '[aria-hidden="true"], [role="navigation"], [role="banner"], [role="contentinfo"]'
)

_WHITESPACE = re.compile(r"\s+")

Selector = Callable[[PageAccessor], Optional[str]]


@dataclass(frozen=True)
class ExtractedDocument:
    """Trimmed policy prose and the page it came from."""
    source_url: str
    text: str


def by_id(element_id: str) -> Selector:
    """Selector for the element with the given id."""
    def select(page: PageAccessor) -> Optional[str]:
        return page.element_text(f'[id="{element_id}"]')
    select.__name__ = f"#{element_id}"
    return select


def by_tag(tag: str) -> Selector:
    """Selector for the first element with the given tag name."""
    def select(page: PageAccessor) -> Optional[str]:
        return page.element_text(tag)
    select.__name__ = tag
    return select


def default_selectors(container_ids: Optional[Iterable[str]] = None) -> List[Selector]:
    """Candidate containers in priority order: policy ids, <main>, then <body>."""
    if container_ids is None:
        container_ids = settings.policy_container_ids_list
    return [by_id(cid) for cid in container_ids] + [by_tag("main"), by_tag("body")]


def looks_like_markup(content: str) -> bool:
    stripped = content.strip()
    return stripped.startswith("<") and stripped.endswith(">")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


class ContentExtractor:
    """Extracts policy text from live pages and raw markup."""

    def __init__(
        self,
        selectors: Optional[List[Selector]] = None,
        live_min_chars: Optional[int] = None,
        markup_min_chars: Optional[int] = None,
    ):
        self.selectors = selectors if selectors is not None else default_selectors()
        self.live_min_chars = settings.live_min_chars if live_min_chars is None else live_min_chars
        self.markup_min_chars = settings.markup_min_chars if markup_min_chars is None else markup_min_chars

    def first_significant(self, page: PageAccessor) -> Optional[Tuple[str, str]]:
        """
        Evaluate selectors in order and stop at the first significant text.

        Returns:
            (selector name, trimmed text) or None when no candidate qualifies
        """
        for select in self.selectors:
            text = select(page)
            if not text:
                continue
            trimmed = text.strip()
            if len(trimmed) > self.live_min_chars:
                return select.__name__, trimmed
            logger.debug(f"Container {select.__name__} too short ({len(trimmed)} chars)")
        return None

    def extract_page(self, page: PageAccessor) -> ExtractedDocument:
        """
        Extract policy text from a rendered page.

        Raises:
            ContentNotFoundError: if no container holds significant text
        """
        match = self.first_significant(page)
        if match is None:
            logger.warning(f"No significant legal text found on {page.url}")
            raise ContentNotFoundError(f"No significant legal text found on {page.url}")

        name, text = match
        logger.info(f"Found significant text in container {name} ({len(text)} chars)")
        return ExtractedDocument(source_url=page.url, text=text)

    @staticmethod
    def strip_markup(html: str) -> str:
        """Remove boilerplate elements and return normalized <body> text."""
        soup = BeautifulSoup(html, "lxml")
        for element in soup.select(BOILERPLATE_SELECTORS):
            element.extract()

        body = soup.body
        if body is None:
            return ""
        return collapse_whitespace(body.get_text())

    def extract_markup(self, content: str, source_url: str) -> ExtractedDocument:
        """
        Extract policy text from fetched HTML, or pass plain text through.

        Raises:
            ContentNotFoundError: if the content is empty
            InsufficientContentError: if fewer than markup_min_chars remain
        """
        if not content or not content.strip():
            raise ContentNotFoundError(f"No content provided for {source_url}")

        if looks_like_markup(content):
            logger.info(f"Content from {source_url} appears to be HTML, stripping tags")
            text = self.strip_markup(content)
        else:
            logger.info(f"Content from {source_url} appears to be plain text")
            text = content.strip()

        if len(text) < self.markup_min_chars:
            logger.warning(f"Cleaned text from {source_url} is very short ({len(text)} chars)")
            raise InsufficientContentError(len(text), self.markup_min_chars)

        logger.info(f"Extracted {len(text)} chars from {source_url}")
        return ExtractedDocument(source_url=source_url, text=text)


def extract_page_text(page: PageAccessor, min_chars: Optional[int] = None) -> ExtractedDocument:
    """Convenience function for live-page extraction."""
    return ContentExtractor(live_min_chars=min_chars).extract_page(page)


def extract_markup_text(content: str, source_url: str, min_chars: Optional[int] = None) -> ExtractedDocument:
    """Convenience function for raw-markup extraction."""
    return ContentExtractor(markup_min_chars=min_chars).extract_markup(content, source_url)
