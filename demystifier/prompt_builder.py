"""
Prompt Builder

Composes the fixed-shape analysis instruction sent to the model.
"""

from typing import Optional

from langchain_core.prompts import PromptTemplate

from demystifier.config import settings

RISK_LEVELS = ("HIGH", "MEDIUM", "LOW", "NEUTRAL")

CATEGORIES = (
    "Data Collection",
    "Data Sharing",
    "User Rights",
    "Cancellation",
    "Fees",
    "Liability",
    "Dispute Resolution",
    "Content Ownership",
    "Data Retention",
    "Third-Party Services",
    "Service Availability",
)

ANALYSIS_TEMPLATE = PromptTemplate.from_template(
    """You are an assistant that explains legal documents to non-experts.
Analyze the following legal text from {source_url}.

Provide a brief, one-paragraph summary. Then list the MOST critical points related to
data sharing, cancellation policies, hidden fees, liability and dispute resolution.

Each critical point must have:
- "category": the best fitting category, e.g. {categories}
- "explanation": a clear, simplified explanation for a non-expert
- "risk_level": a single word, one of {risk_levels}
- "reason": a brief reason for the assigned risk level
- "original_snippet": the exact, human-readable snippet of the original text this point refers to (max {snippet_max_chars} characters)

Respond ONLY with a single valid JSON object. Do not add any other text and do not use markdown code fences.
The JSON object must have this exact structure:
{{
  "summary": "...",
  "critical_points": [
    {{"category": "...", "explanation": "...", "risk_level": "...", "reason": "...", "original_snippet": "..."}}
  ]
}}

LEGAL TEXT:
"{legal_text}"
"""
)


def truncate(text: str, max_chars: int) -> str:
    """Hard character cap."""
    return text[:max_chars]


def build_prompt(
    source_url: str,
    text: str,
    max_chars: Optional[int] = None,
    snippet_max_chars: Optional[int] = None,
) -> str:
    """
    Build the analysis prompt for a document.

    Args:
        source_url: Page the text was extracted from
        text: Extracted policy text
        max_chars: Cap applied to text before embedding (MAX_PROMPT_CHARS)
        snippet_max_chars: Snippet length the model is asked to respect

    Returns:
        Prompt string
    """
    if max_chars is None:
        max_chars = settings.max_prompt_chars
    if snippet_max_chars is None:
        snippet_max_chars = settings.snippet_max_chars

    return ANALYSIS_TEMPLATE.format(
        source_url=source_url,
        categories=", ".join(f'"{c}"' for c in CATEGORIES),
        risk_levels=", ".join(f'"{r}"' for r in RISK_LEVELS),
        snippet_max_chars=snippet_max_chars,
        legal_text=truncate(text, max_chars),
    )
