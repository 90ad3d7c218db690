"""
Page Accessor

Read-only view of a rendered page used by link discovery and live-page
extraction. Callers inject an accessor instead of touching a global DOM, so
the heuristics run the same against a browser snapshot or a fetched page.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Protocol, runtime_checkable
from urllib.parse import urljoin

from bs4 import BeautifulSoup

# Ancestor regions that make an anchor a discovery candidate on their own
LINK_REGIONS = ("footer", "nav")


@dataclass(frozen=True)
class Anchor:
    """An anchor element as seen by link discovery."""
    href: Optional[str]
    text: str
    regions: FrozenSet[str] = field(default_factory=frozenset)


@runtime_checkable
class PageAccessor(Protocol):
    """Capability to read the current page."""

    @property
    def url(self) -> str:
        """Address of the page as loaded (location.href)."""

    @property
    def base_url(self) -> str:
        """Base against which relative hrefs resolve."""

    def element_text(self, selector: str) -> Optional[str]:
        """Untrimmed text content of the first element matching a CSS selector."""

    def anchors(self) -> List[Anchor]:
        """All anchor elements in document order."""


class SoupPageAccessor:
    """PageAccessor over an HTML snapshot parsed with BeautifulSoup."""

    def __init__(self, html: str, url: str, parser: str = "lxml"):
        self._url = url
        self.soup = BeautifulSoup(html, parser)

    @property
    def url(self) -> str:
        return self._url

    @property
    def base_url(self) -> str:
        base = self.soup.find("base", href=True)
        if base:
            return urljoin(self._url, base["href"])
        return self._url

    def element_text(self, selector: str) -> Optional[str]:
        element = self.soup.select_one(selector)
        if element is None:
            return None
        return element.get_text()

    def anchors(self) -> List[Anchor]:
        anchors = []
        for link in self.soup.find_all("a"):
            regions = frozenset(
                parent.name for parent in link.parents if parent.name in LINK_REGIONS
            )
            anchors.append(Anchor(href=link.get("href"), text=link.get_text(), regions=regions))
        return anchors

    def __repr__(self) -> str:
        return f"SoupPageAccessor(url={self._url!r})"
