"""
Tests for model reply reconciliation.
"""

import json

import pytest

from demystifier.exceptions import ResponseParseError, ResponseShapeError
from demystifier.reconciler import (
    DEFAULT_CATEGORY,
    DEFAULT_EXPLANATION,
    DEFAULT_SUMMARY,
    ResponseReconciler,
    reconcile,
    strip_code_fence,
)
from demystifier.schemas import RiskLevel
from tests.conftest import model_reply


WELL_FORMED = {
    "summary": "The service shares data with partners and limits its liability.",
    "critical_points": [
        {
            "category": "Data Sharing",
            "explanation": "Data is shared with advertisers.",
            "risk_level": "HIGH",
            "reason": "Allows data sale",
            "original_snippet": "we may share your information with partners",
        },
        {
            "category": "Liability",
            "explanation": "Liability is capped at fees paid.",
            "risk_level": "MEDIUM",
            "original_snippet": "our total liability shall not exceed",
        },
    ],
}


class TestReconcile:
    """Test suite for ResponseReconciler."""

    def test_well_formed_reply_round_trips(self):
        result = reconcile(json.dumps(WELL_FORMED))
        assert result.to_dict() == WELL_FORMED

    def test_risk_level_is_uppercased(self):
        result = reconcile(model_reply(points=[{"category": "Fees", "explanation": "x", "risk_level": "medium"}]))
        assert result.critical_points[0].risk_level is RiskLevel.MEDIUM

    @pytest.mark.parametrize("level", [None, "", "extreme", 3])
    def test_unknown_risk_level_is_neutral(self, level):
        point = {"category": "Fees", "explanation": "x"}
        if level is not None:
            point["risk_level"] = level
        result = reconcile(model_reply(points=[point]))
        assert result.critical_points[0].risk_level is RiskLevel.NEUTRAL

    def test_snippet_is_truncated_then_trimmed(self):
        snippet = "a" * 199 + " " + "b" * 100
        result = reconcile(model_reply(points=[{"category": "Fees", "explanation": "x", "original_snippet": snippet}]))
        assert result.critical_points[0].original_snippet == "a" * 199

    def test_missing_point_fields_get_defaults(self):
        result = reconcile(model_reply(points=[{}]))
        point = result.critical_points[0]
        assert point.category == DEFAULT_CATEGORY
        assert point.explanation == DEFAULT_EXPLANATION
        assert point.risk_level is RiskLevel.NEUTRAL
        assert point.original_snippet == ""
        assert point.reason is None

    def test_fenced_reply_parses_like_unfenced(self):
        raw = json.dumps(WELL_FORMED, indent=2)
        assert reconcile(f"```json\n{raw}\n```") == reconcile(raw)

    @pytest.mark.parametrize("fenced", [
        "```\n{\"summary\": \"S\"}\n```",
        "```JSON\n{\"summary\": \"S\"}```",
        "  ```json{\"summary\": \"S\"}```  ",
        "``` json\n{\"summary\": \"S\"}\n```",
    ])
    def test_fence_without_or_with_any_language_tag(self, fenced):
        assert reconcile(fenced).summary == "S"

    def test_bare_array_is_wrapped(self):
        result = reconcile('[{"category": "X", "explanation": "Y", "risk_level": "high"}]')
        assert result.summary == DEFAULT_SUMMARY
        assert len(result.critical_points) == 1
        assert result.critical_points[0].risk_level is RiskLevel.HIGH

    def test_fenced_bare_array(self):
        result = reconcile('```json\n[{"category": "X", "explanation": "Y"}]\n```')
        assert result.summary == DEFAULT_SUMMARY
        assert result.critical_points[0].category == "X"

    def test_not_json_raises_parse_error(self):
        with pytest.raises(ResponseParseError) as excinfo:
            reconcile("not json at all")
        assert excinfo.value.raw_text == "not json at all"

    def test_prose_around_json_is_not_tolerated(self):
        with pytest.raises(ResponseParseError):
            reconcile('Here is the analysis: {"summary": "S", "critical_points": []}')

    @pytest.mark.parametrize("payload", [
        {"critical_points": []},
        {"summary": "", "critical_points": []},
        {"summary": "   "},
        {"summary": 42},
        42,
        "just a string",
        None,
    ])
    def test_missing_summary_raises_shape_error(self, payload):
        with pytest.raises(ResponseShapeError):
            reconcile(json.dumps(payload))

    @pytest.mark.parametrize("points", [None, "none", {"a": 1}, 7])
    def test_malformed_points_become_empty_list(self, points):
        payload = {"summary": "S"}
        if points is not None:
            payload["critical_points"] = points
        result = reconcile(json.dumps(payload))
        assert result.critical_points == []

    def test_non_object_points_are_dropped(self):
        result = reconcile(model_reply(points=["oops", {"category": "Fees", "explanation": "x"}, 3]))
        assert [p.category for p in result.critical_points] == ["Fees"]

    def test_point_order_is_preserved(self):
        points = [{"category": f"C{i}", "explanation": "x"} for i in range(5)]
        result = reconcile(model_reply(points=points))
        assert [p.category for p in result.critical_points] == ["C0", "C1", "C2", "C3", "C4"]

    def test_reject_unexplained_points(self):
        reconciler = ResponseReconciler(reject_unexplained_points=True)
        result = reconciler.reconcile(model_reply(points=[
            {"category": "Fees"},
            {"category": "Liability", "explanation": "Capped."},
        ]))
        assert [p.category for p in result.critical_points] == ["Liability"]

    def test_custom_snippet_cap(self):
        reconciler = ResponseReconciler(snippet_max_chars=10)
        result = reconciler.reconcile(model_reply(points=[{"original_snippet": "0123456789ABC"}]))
        assert result.critical_points[0].original_snippet == "0123456789"


class TestStripCodeFence:
    """Tests for fence stripping."""

    def test_unfenced_text_is_trimmed(self):
        assert strip_code_fence("  {\"a\": 1}\n") == "{\"a\": 1}"

    def test_fence_is_removed(self):
        assert strip_code_fence("```json\n{\"a\": 1}\n```") == "{\"a\": 1}"

    def test_unterminated_fence_is_left_alone(self):
        assert strip_code_fence("```json\n{}") == "```json\n{}"
