"""
Error taxonomy for the extraction / analysis pipeline.

Only LinkResolutionError is non-fatal; every other error is fatal to the
analysis of the page or link it was raised for.
"""

from typing import Any, Optional


class DemystifierError(Exception):
    """Base class for all pipeline errors."""


class LinkResolutionError(DemystifierError):
    """An anchor's href could not be resolved to an absolute http(s) URL."""

    def __init__(self, href: str, message: str = "could not resolve link"):
        super().__init__(f"{message}: {href!r}")
        self.href = href


class ContentNotFoundError(DemystifierError):
    """No qualifying policy text could be extracted."""


class InsufficientContentError(ContentNotFoundError):
    """Normalized markup text is shorter than the minimum significant length."""

    def __init__(self, length: int, minimum: int):
        super().__init__(
            f"Insufficient content after processing ({length} chars, need {minimum})"
        )
        self.length = length
        self.minimum = minimum


class FetchError(DemystifierError):
    """A page could not be fetched."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class ModelUnavailableError(DemystifierError):
    """The model blocked the prompt or returned an empty reply."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ResponseParseError(DemystifierError):
    """The model reply is not parseable structured data."""

    def __init__(self, message: str, raw_text: str):
        super().__init__(message)
        self.raw_text = raw_text


class ResponseShapeError(DemystifierError):
    """The reply parsed, but is missing the mandatory summary."""

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload
