"""
Terms Demystifier

Discovers legal/policy documents on web pages, extracts their readable text,
asks an LLM for a structured risk analysis, and reconciles the reply into a
validated result.
"""

__version__ = "0.1.0"
__all__ = [
    "config",
    "page",
    "link_discovery",
    "content_extraction",
    "prompt_builder",
    "reconciler",
    "schemas",
    "scoring",
    "scraper",
    "llm_client",
    "database",
    "pipeline",
    "utils",
]
