"""
Risk scoring for presentation: aggregate score, band, and display name.
"""

import math
from typing import Iterable, Optional

from demystifier.schemas import AnalysisResult, CriticalPoint, RiskLevel
from demystifier.utils import extract_domain_from_url

RISK_WEIGHTS = {
    RiskLevel.HIGH: 100,
    RiskLevel.MEDIUM: 60,
    RiskLevel.LOW: 20,
    RiskLevel.NEUTRAL: 0,
}


def risk_score(points: Iterable[CriticalPoint]) -> int:
    """
    Mean of the per-level weights, rounded half up.

    Args:
        points: Critical points of one analysis

    Returns:
        Score between 0 and 100 (0 for no points)
    """
    weights = [RISK_WEIGHTS[RiskLevel.coerce(point.risk_level)] for point in points]
    if not weights:
        return 0
    return math.floor(sum(weights) / len(weights) + 0.5)


def risk_band(score: int) -> str:
    if score > 60:
        return "high"
    if score > 30:
        return "medium"
    return "low"


def display_name(url: str) -> str:
    return extract_domain_from_url(url) or "Invalid URL"


def present(result: AnalysisResult, url: Optional[str] = None) -> dict:
    """Result payload for presentation, with derived score fields."""
    score = risk_score(result.critical_points)
    payload = result.to_dict()
    payload["risk_score"] = score
    payload["risk_band"] = risk_band(score)
    if url is not None:
        payload["url"] = url
        payload["site"] = display_name(url)
    return payload
