# ============================================================================
# FILE: tests/unit/test_significance.py
# ============================================================================
"""
Unit tests for clinical significance notes
"""

from report_comparison.core.enums import Trend
from report_comparison.temporal.significance import ClinicalSignificanceAssessor
from report_comparison.temporal.trend_classifier import TrendAssessment


def assessment(trend, position="within", concerning=False):
    return TrendAssessment(
        trend=trend,
        trend_analysis="",
        is_concerning=concerning,
        data_points=3,
        range_position=position,
    )


def test_rule_matches_position():
    note = ClinicalSignificanceAssessor().describe(
        "Hemoglobin", assessment(Trend.DECREASING, "below", concerning=True)
    )
    assert "progressive anemia" in note


def test_rule_falls_back_to_any_position():
    note = ClinicalSignificanceAssessor().describe("Hemoglobin", assessment(Trend.DECREASING))
    assert note == "Declining hemoglobin across reports"


def test_spelling_variants_share_rules():
    assessor = ClinicalSignificanceAssessor()
    assert assessor.describe("  Haemoglobin ", assessment(Trend.DECREASING)) == \
        assessor.describe("hemoglobin", assessment(Trend.DECREASING))


def test_generic_note_for_concerning_series():
    note = ClinicalSignificanceAssessor().describe(
        "Ferritin", assessment(Trend.INCREASING, "above", concerning=True)
    )
    assert note == "Ferritin is above its reference range in the latest report"

    note = ClinicalSignificanceAssessor().describe(
        "Ferritin", assessment(Trend.INSUFFICIENT_DATA, "unknown", concerning=True)
    )
    assert "not enough values" in note


def test_no_note_for_unremarkable_series():
    assert ClinicalSignificanceAssessor().describe("Ferritin", assessment(Trend.STABLE)) is None


def test_custom_rules():
    rules = {"ferritin": {Trend.STABLE: {"any": "Ferritin unchanged"}}}
    note = ClinicalSignificanceAssessor(rules=rules).describe("Ferritin", assessment(Trend.STABLE))
    assert note == "Ferritin unchanged"
