"""
Utility functions and helpers for the application.
"""

import asyncio
import json
import logging
import logging.handlers
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from functools import wraps
from urllib.parse import urlparse
import time

from demystifier.config import settings, LOGS_DIR


# ============================================================================
# Logging Setup
# ============================================================================

def setup_logging(name: Optional[str] = None, level: Optional[int] = None) -> logging.Logger:
    """
    Configure and return a logger instance.

    Args:
        name: Logger name (None configures the root logger)
        level: Explicit logging level, overriding LOG_LEVEL

    Returns:
        logging.Logger: Configured logger
    """
    logger = logging.getLogger(name)
    if level is None:
        level = getattr(logging, settings.log_level)
    logger.setLevel(level)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_format = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler.setFormatter(console_format)

    # File handler
    LOGS_DIR.mkdir(exist_ok=True)
    log_file = LOGS_DIR / f"demystifier_{datetime.now().strftime('%Y%m%d')}.log"
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
    )
    file_handler.setLevel(level)
    file_format = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler.setFormatter(file_format)

    # Add handlers
    logger.addHandler(console_handler)
    logger.addHandler(file_handler)

    return logger


logger = logging.getLogger(__name__)


# ============================================================================
# Decorators
# ============================================================================

def timeit(func):
    """Decorator to measure function execution time (sync or async)."""
    if asyncio.iscoroutinefunction(func):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            start = time.time()
            try:
                return await func(*args, **kwargs)
            finally:
                logger.info(f"{func.__name__} took {time.time() - start:.2f}s")
        return async_wrapper

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.time()
        try:
            return func(*args, **kwargs)
        finally:
            logger.info(f"{func.__name__} took {time.time() - start:.2f}s")
    return wrapper


# ============================================================================
# JSON Utilities
# ============================================================================

def save_json(data: Any, filepath: Path, indent: int = 2) -> None:
    """
    Save data to JSON file.

    Args:
        data: Data to save
        filepath: Path to output file
        indent: JSON indentation level
    """
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False)
    logger.info(f"Saved JSON to {filepath}")


# ============================================================================
# URL Utilities
# ============================================================================

def extract_domain_from_url(url: str) -> Optional[str]:
    """
    Extract the display domain from a URL (hostname without a leading www.).

    Args:
        url: Full URL

    Returns:
        Domain name or None
    """
    try:
        hostname = urlparse(url).hostname
    except ValueError as e:
        logger.debug(f"Failed to extract domain from {url}: {e}")
        return None
    if not hostname:
        return None
    return hostname[4:] if hostname.startswith("www.") else hostname


def normalize_url(url: str) -> str:
    """
    Normalize a user-supplied URL (ensure a scheme is present).

    Args:
        url: Original URL

    Returns:
        Normalized URL
    """
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url


def is_http_url(url: str) -> bool:
    """True when the URL is absolute with an http(s) scheme and a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
