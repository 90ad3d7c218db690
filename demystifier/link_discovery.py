"""
Link Discovery Module

Finds links to legal/policy documents on a rendered page:
- Candidate anchors: href contains a policy keyword, or anchor sits in a footer/nav
- Resolution against the page base URL (bad hrefs are skipped, never fatal)
- Self-link filtering (current page, current page + "#")
- Keyword match on resolved URL or visible text
- First-seen deduplication by absolute URL
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
from urllib.parse import urljoin

from demystifier.config import settings
from demystifier.exceptions import LinkResolutionError
from demystifier.page import Anchor, PageAccessor
from demystifier.utils import is_http_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LegalLink:
    """A hyperlink that likely leads to a legal document."""
    url: str
    anchor_text: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "text": self.anchor_text}


def matches_keyword(value: str, keywords: Iterable[str]) -> bool:
    """True when any keyword occurs in value (plain substring match)."""
    return any(keyword in value for keyword in keywords)


def resolve_href(href: str, base_url: str) -> str:
    """
    Resolve an anchor href to an absolute http(s) URL.

    Raises:
        LinkResolutionError: if the href is malformed or not an http(s) link
    """
    try:
        full_url = urljoin(base_url, href.strip())
    except ValueError as e:
        raise LinkResolutionError(href, f"invalid URL ({e})") from e

    if not is_http_url(full_url):
        raise LinkResolutionError(href, "not an http(s) link")
    return full_url


class LinkDiscovery:
    """Discovers legal document links on a page."""

    def __init__(self, keywords: Optional[Iterable[str]] = None):
        """Initialize with the keyword set (defaults to LINK_KEYWORDS)."""
        self.keywords = list(keywords) if keywords is not None else settings.link_keywords_list

    def is_candidate(self, anchor: Anchor) -> bool:
        """Anchor qualifies for inspection by href keyword or footer/nav placement."""
        if not anchor.href:
            return False
        return bool(anchor.regions) or matches_keyword(anchor.href, self.keywords)

    @staticmethod
    def is_self_link(full_url: str, page_url: str) -> bool:
        return full_url == page_url or full_url == page_url + "#"

    def discover(self, page: PageAccessor) -> List[LegalLink]:
        """
        Scan the page anchors for legal document links.

        Args:
            page: Accessor for the page being scanned

        Returns:
            Deduplicated LegalLinks in first-seen order (possibly empty)
        """
        anchors = [anchor for anchor in page.anchors() if self.is_candidate(anchor)]
        logger.info(f"Found {len(anchors)} candidate anchors on {page.url}")

        found: Dict[str, LegalLink] = {}
        base_url = page.base_url

        for anchor in anchors:
            try:
                full_url = resolve_href(anchor.href, base_url)
            except LinkResolutionError as e:
                logger.warning(f"Skipping anchor: {e}")
                continue

            if self.is_self_link(full_url, page.url):
                logger.debug(f"Skipping link to current page: {anchor.href}")
                continue

            text = anchor.text.strip()
            if not (matches_keyword(full_url, self.keywords) or matches_keyword(text.lower(), self.keywords)):
                continue

            if full_url not in found:
                found[full_url] = LegalLink(url=full_url, anchor_text=text)
                logger.debug(f"Identified potential legal link: {full_url} (Text: {text!r})")

        links = list(found.values())
        logger.info(f"Discovered {len(links)} unique legal links on {page.url}")
        return links


def discover_legal_links(page: PageAccessor, keywords: Optional[Iterable[str]] = None) -> List[LegalLink]:
    """Convenience function to discover legal links on a page."""
    return LinkDiscovery(keywords).discover(page)
