"""
Shared fixtures: sample pages, a scripted model and an in-memory fetcher.
"""

import json
from typing import Callable, Dict, List, Union

import pytest

from demystifier.database import AnalysisStore
from demystifier.exceptions import FetchError
from demystifier.page import SoupPageAccessor
from demystifier.scraper import FetchedPage

PAGE_URL = "https://example.com/home"

POLICY_SENTENCE = (
    "We collect personal information that you provide to us and share it with "
    "selected partners for advertising purposes. "
)


def policy_text(min_chars: int) -> str:
    """Readable policy prose of at least min_chars characters."""
    repeats = min_chars // len(POLICY_SENTENCE) + 1
    return (POLICY_SENTENCE * repeats).strip()


def model_reply(summary: str = "This policy shares your data.", points: List[dict] = None) -> str:
    if points is None:
        points = [
            {
                "category": "Data Sharing",
                "explanation": "Your data is shared with advertisers.",
                "risk_level": "HIGH",
                "reason": "Allows data sale",
                "original_snippet": "share it with selected partners",
            }
        ]
    return json.dumps({"summary": summary, "critical_points": points})


class ScriptedModel:
    """ModelClient stub: replies chosen by a substring of the prompt."""

    def __init__(self, replies: Dict[str, Union[str, Exception]] = None, default: str = None):
        self.replies = replies or {}
        self.default = default if default is not None else model_reply()
        self.prompts: List[str] = []

    async def agenerate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        for marker, reply in self.replies.items():
            if marker in prompt:
                if isinstance(reply, Exception):
                    raise reply
                return reply
        return self.default


class MemoryFetcher:
    """PageFetcher stub serving pages from a dict."""

    def __init__(self, pages: Dict[str, Union[str, Exception]]):
        self.pages = pages
        self.fetched: List[str] = []

    def fetch(self, url: str) -> FetchedPage:
        self.fetched.append(url)
        page = self.pages.get(url)
        if page is None:
            raise FetchError(url, "HTTP 404", status_code=404)
        if isinstance(page, Exception):
            raise page
        return FetchedPage(url=url, html=page, status_code=200)

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


@pytest.fixture
def make_page() -> Callable[..., SoupPageAccessor]:
    def factory(html: str, url: str = PAGE_URL) -> SoupPageAccessor:
        return SoupPageAccessor(html, url)
    return factory


@pytest.fixture
def policy_page_html() -> str:
    return f"""
    <html>
      <head><title>Privacy</title></head>
      <body>
        <nav><a href="/">Home</a> <a href="/terms">Terms of Service</a></nav>
        <div id="privacy-policy"><h1>Privacy Policy</h1><p>{policy_text(600)}</p></div>
        <footer><a href="/legal/cookies">Cookie settings</a></footer>
      </body>
    </html>
    """


@pytest.fixture
def store():
    store = AnalysisStore("sqlite://")
    store.init_db()
    yield store
    store.close()
