"""
Analysis Pipeline

Coordinates extraction, prompting, the model call and reconciliation:

    discover links -> fetch -> extract -> build prompt -> model -> reconcile -> store

Each analysis makes at most one fetch and one model call. When several
discovered links are analyzed, a failure on one link never aborts the others.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from demystifier.content_extraction import ContentExtractor
from demystifier.database import AnalysisStore
from demystifier.exceptions import (
    ContentNotFoundError,
    DemystifierError,
    FetchError,
    InsufficientContentError,
    ModelUnavailableError,
    ResponseParseError,
    ResponseShapeError,
)
from demystifier.link_discovery import LegalLink, LinkDiscovery
from demystifier.llm_client import ModelClient
from demystifier.page import PageAccessor
from demystifier.prompt_builder import build_prompt
from demystifier.reconciler import ResponseReconciler
from demystifier.schemas import AnalysisResult
from demystifier.scraper import PageFetcher
from demystifier.utils import timeit

logger = logging.getLogger(__name__)


def user_message(exc: BaseException) -> str:
    """One clear, user-facing message per failure kind (no raw payloads)."""
    if isinstance(exc, InsufficientContentError):
        return "No substantial human-readable text found after processing for AI analysis."
    if isinstance(exc, ContentNotFoundError):
        return "No significant legal text found on this page."
    if isinstance(exc, FetchError):
        return "The page could not be retrieved."
    if isinstance(exc, ModelUnavailableError):
        return f"The AI model did not return an analysis: {exc.reason}"
    if isinstance(exc, ResponseParseError):
        return "AI could not generate a valid structured response. Please try again."
    if isinstance(exc, ResponseShapeError):
        return "AI response was missing a summary. Please try again."
    return "Failed to analyze text."


@dataclass
class LinkOutcome:
    """Result of analyzing one discovered link."""
    link: LegalLink
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


class AnalysisPipeline:
    """Request-scoped analysis pipeline."""

    def __init__(
        self,
        fetcher: PageFetcher,
        model: ModelClient,
        store: Optional[AnalysisStore] = None,
        extractor: Optional[ContentExtractor] = None,
        discovery: Optional[LinkDiscovery] = None,
        reconciler: Optional[ResponseReconciler] = None,
    ):
        self.fetcher = fetcher
        self.model = model
        self.store = store
        self.extractor = extractor or ContentExtractor()
        self.discovery = discovery or LinkDiscovery()
        self.reconciler = reconciler or ResponseReconciler()

    async def analyze_text(self, source_url: str, text: str, user_id: Optional[str] = None) -> AnalysisResult:
        """Prompt the model with extracted text and reconcile its reply."""
        prompt = build_prompt(source_url, text)
        raw = await self.model.agenerate(prompt)
        result = self.reconciler.reconcile(raw)

        if self.store is not None and user_id:
            self.store.upsert(user_id, source_url, result)
        return result

    @timeit
    async def analyze_current_page(self, page: PageAccessor, user_id: Optional[str] = None) -> AnalysisResult:
        """Analyze the policy text of an already rendered page."""
        document = self.extractor.extract_page(page)
        return await self.analyze_text(document.source_url, document.text, user_id)

    async def analyze_markup(self, source_url: str, content: str, user_id: Optional[str] = None) -> AnalysisResult:
        """Analyze fetched HTML (or plain text)."""
        document = self.extractor.extract_markup(content, source_url)
        return await self.analyze_text(document.source_url, document.text, user_id)

    async def analyze_link(self, link: LegalLink, user_id: Optional[str] = None) -> LinkOutcome:
        """Fetch and analyze one link, capturing any pipeline failure."""
        try:
            fetched = await asyncio.to_thread(self.fetcher.fetch, link.url)
            result = await self.analyze_markup(link.url, fetched.html, user_id)
        except DemystifierError as e:
            logger.error(f"Analysis of {link.url} failed: {type(e).__name__}: {e}")
            return LinkOutcome(link=link, error=user_message(e))

        logger.info(f"Analysis of {link.url} complete ({len(result.critical_points)} critical points)")
        return LinkOutcome(link=link, result=result)

    @timeit
    async def analyze_linked_pages(self, page: PageAccessor, user_id: Optional[str] = None) -> List[LinkOutcome]:
        """Discover legal links on a page and analyze each concurrently."""
        links = self.discovery.discover(page)
        if not links:
            logger.warning(f"No legal links found on {page.url}")
            return []

        results = await asyncio.gather(
            *(self.analyze_link(link, user_id) for link in links),
            return_exceptions=True,
        )

        outcomes = []
        for link, result in zip(links, results):
            if isinstance(result, BaseException):
                logger.error(f"Unexpected error analyzing {link.url}", exc_info=result)
                result = LinkOutcome(link=link, error=user_message(result))
            outcomes.append(result)

        failed = sum(1 for outcome in outcomes if not outcome.ok)
        logger.info(f"Analyzed {len(outcomes)} links from {page.url} ({failed} failed)")
        return outcomes
