"""
Analysis result schemas shared by the reconciler, store and presenters.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RiskLevel(str, Enum):
    """Risk assigned to a single critical point."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    NEUTRAL = "NEUTRAL"

    @classmethod
    def coerce(cls, value: Any) -> "RiskLevel":
        """Case-insensitive lookup; anything unrecognized is NEUTRAL."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.NEUTRAL
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.NEUTRAL


class CriticalPoint(BaseModel):
    """One notable clause of the analyzed document."""
    category: str = Field(..., description="Topic of the clause, e.g. Data Sharing")
    explanation: str = Field(..., description="Plain-language explanation")
    risk_level: RiskLevel = Field(default=RiskLevel.NEUTRAL)
    original_snippet: str = Field(default="", description="Quoted source text, truncated")
    reason: Optional[str] = Field(default=None, description="Why this risk level was assigned")


class AnalysisResult(BaseModel):
    """Validated model analysis of one document."""
    summary: str = Field(..., min_length=1)
    critical_points: List[CriticalPoint] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
