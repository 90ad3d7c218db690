"""
Response Reconciler

Turns a raw model reply into a validated AnalysisResult.

The reply runs through an ordered chain of steps, each moving it one state
forward:

    RECEIVED -> DEFENCED -> PARSED -> VALIDATED -> NORMALIZED

Unparseable JSON (PARSE_FAILED) and a missing summary (SHAPE_REJECTED) are
the only terminal failures. Everything else (fences, bare arrays, a missing
points list, missing point fields) is repaired in place.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from demystifier.config import settings
from demystifier.exceptions import ResponseParseError, ResponseShapeError
from demystifier.schemas import AnalysisResult, CriticalPoint, RiskLevel

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = "AI analysis complete. See critical points below."
DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_EXPLANATION = "No explanation provided."

_FENCE = re.compile(r"^```[ \t]*[\w+-]*[ \t]*\n?(.*?)\s*```$", re.DOTALL)


class ReconcileState(Enum):
    RECEIVED = "received"
    DEFENCED = "defenced"
    PARSED = "parsed"
    PARSE_FAILED = "parse_failed"
    VALIDATED = "validated"
    SHAPE_REJECTED = "shape_rejected"
    NORMALIZED = "normalized"


@dataclass
class Reconciliation:
    """Working state of one reply as it moves through the chain."""
    raw_text: str
    state: ReconcileState = ReconcileState.RECEIVED
    text: str = ""
    payload: Any = None
    points: List[Dict[str, Any]] = field(default_factory=list)
    result: Optional[AnalysisResult] = None


Step = Callable[[Reconciliation], Reconciliation]


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ``` fence (any language tag), else just trim."""
    stripped = text.strip()
    match = _FENCE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def normalize_point(item: Dict[str, Any], snippet_max_chars: int) -> Dict[str, Any]:
    """Fill defaults and clamp fields of a single critical point."""
    reason = _as_text(item.get("reason")).strip()
    return {
        "category": _as_text(item.get("category")).strip() or DEFAULT_CATEGORY,
        "explanation": _as_text(item.get("explanation")).strip() or DEFAULT_EXPLANATION,
        "risk_level": RiskLevel.coerce(item.get("risk_level")),
        "original_snippet": _as_text(item.get("original_snippet"))[:snippet_max_chars].strip(),
        "reason": reason or None,
    }


class ResponseReconciler:
    """Reconciles raw model replies into AnalysisResults."""

    def __init__(
        self,
        snippet_max_chars: Optional[int] = None,
        reject_unexplained_points: Optional[bool] = None,
    ):
        self.snippet_max_chars = (
            settings.snippet_max_chars if snippet_max_chars is None else snippet_max_chars
        )
        self.reject_unexplained_points = (
            settings.reject_unexplained_points
            if reject_unexplained_points is None
            else reject_unexplained_points
        )
        self.steps: List[Step] = [
            self._defence,
            self._parse,
            self._wrap_bare_array,
            self._validate_shape,
            self._normalize,
        ]

    def reconcile(self, raw_text: str) -> AnalysisResult:
        """
        Reconcile a raw model reply.

        Raises:
            ResponseParseError: reply is not valid JSON
            ResponseShapeError: reply has no usable summary
        """
        work = Reconciliation(raw_text=raw_text or "")
        for step in self.steps:
            work = step(work)
        logger.info(f"Reconciled reply with {len(work.result.critical_points)} critical points")
        return work.result

    @staticmethod
    def _defence(work: Reconciliation) -> Reconciliation:
        work.text = strip_code_fence(work.raw_text)
        work.state = ReconcileState.DEFENCED
        return work

    @staticmethod
    def _parse(work: Reconciliation) -> Reconciliation:
        try:
            work.payload = json.loads(work.text)
        except json.JSONDecodeError as e:
            work.state = ReconcileState.PARSE_FAILED
            logger.error(f"Failed to parse model output as JSON: {e}")
            logger.error(f"Raw model output that caused parse error: {work.raw_text}")
            raise ResponseParseError(
                f"AI returned invalid JSON: {e.msg} (line {e.lineno} column {e.colno})",
                raw_text=work.raw_text,
            ) from e
        work.state = ReconcileState.PARSED
        return work

    @staticmethod
    def _wrap_bare_array(work: Reconciliation) -> Reconciliation:
        if isinstance(work.payload, list):
            logger.info("Model returned a bare array of critical points, wrapping it")
            work.payload = {"summary": DEFAULT_SUMMARY, "critical_points": work.payload}
        return work

    @staticmethod
    def _validate_shape(work: Reconciliation) -> Reconciliation:
        payload = work.payload
        summary = payload.get("summary") if isinstance(payload, dict) else None
        if not isinstance(summary, str) or not summary.strip():
            work.state = ReconcileState.SHAPE_REJECTED
            logger.error(f"Parsed model output is missing a summary: {str(payload)[:500]}")
            raise ResponseShapeError(
                "AI result was parsed but is missing the required summary field.",
                payload=payload,
            )

        points = payload.get("critical_points")
        if not isinstance(points, list):
            logger.warning(
                f"critical_points is {type(points).__name__}, not a list; using an empty list"
            )
            points = []

        work.points = points
        work.state = ReconcileState.VALIDATED
        return work

    def _normalize(self, work: Reconciliation) -> Reconciliation:
        points = []
        for index, item in enumerate(work.points):
            if not isinstance(item, dict):
                logger.warning(f"Dropping critical point {index}: not an object ({item!r:.80})")
                continue
            if self.reject_unexplained_points and not _as_text(item.get("explanation")).strip():
                logger.warning(f"Dropping critical point {index}: missing explanation")
                continue
            points.append(CriticalPoint(**normalize_point(item, self.snippet_max_chars)))

        try:
            work.result = AnalysisResult(summary=work.payload["summary"].strip(), critical_points=points)
        except ValidationError as e:
            work.state = ReconcileState.SHAPE_REJECTED
            raise ResponseShapeError(f"AI result failed validation: {e}", payload=work.payload) from e

        work.state = ReconcileState.NORMALIZED
        return work


def reconcile(raw_text: str) -> AnalysisResult:
    """Convenience function to reconcile a model reply."""
    return ResponseReconciler().reconcile(raw_text)
