# ============================================================================
# FILE: tests/unit/test_trend_classifier.py
# ============================================================================
"""
Unit tests for trend classification
"""

from datetime import datetime, timedelta

import pytest

from report_comparison.core.enums import Trend
from report_comparison.core.models import ParameterComparison, ParameterValue
from report_comparison.temporal.trend_classifier import TrendClassifier


def series(values, statuses=None):
    start = datetime(2026, 1, 1)
    statuses = statuses or ["Normal"] * len(values)
    return [
        ParameterValue(
            report_index=i,
            date=start + timedelta(days=30 * i),
            value=str(v),
            status=s,
            file_name=f"r{i}.pdf",
        )
        for i, (v, s) in enumerate(zip(values, statuses))
    ]


@pytest.mark.parametrize("values,expected", [
    ([10, 10.1, 9.9], Trend.STABLE),
    ([10, 12, 15], Trend.INCREASING),
    ([15, 12, 10], Trend.DECREASING),
    ([10, 15, 9], Trend.FLUCTUATING),
    ([10, 10.2, 12], Trend.INCREASING),
])
def test_classify_values(values, expected):
    assert TrendClassifier().classify_values(series(values)) == expected


def test_single_value_is_insufficient():
    assert TrendClassifier().classify_values(series([10])) == Trend.INSUFFICIENT_DATA


def test_non_numeric_values_are_ignored():
    """Two reports, only one numeric value"""
    classifier = TrendClassifier()
    values = series(["Negative", "12.0"])

    assert classifier.classify_values(values) == Trend.INSUFFICIENT_DATA
    assessment = classifier.assess("Protein", values)
    assert assessment.trend_analysis.startswith("insufficient data: 1 numeric value across 2 reports")


def test_tolerance_is_configurable():
    values = series([100, 104, 108])
    assert TrendClassifier(tolerance=0.05).classify_values(values) == Trend.STABLE
    assert TrendClassifier(tolerance=0.01).classify_values(values) == Trend.INCREASING


def test_decreasing_below_range_is_concerning():
    assessment = TrendClassifier().assess(
        "Hemoglobin",
        series([13.5, 12.1, 10.8], ["Normal", "Low", "Low"]),
        unit="g/dL",
        reference_range="13.5-17.5",
    )

    assert assessment.trend == Trend.DECREASING
    assert assessment.is_concerning is True
    assert assessment.range_position == "below"
    assert assessment.trend_analysis == (
        "falling across 3 reports (13.5 → 10.8 g/dL), now below reference range"
    )
    assert assessment.clinical_significance == (
        "Declining hemoglobin now below range; pattern may reflect progressive anemia"
    )


def test_increasing_above_range_is_concerning_even_when_flagged_normal():
    assessment = TrendClassifier().assess(
        "Creatinine", series([1.0, 1.3, 1.6]), unit="mg/dL", reference_range="0.6-1.2"
    )
    assert assessment.trend == Trend.INCREASING
    assert assessment.is_concerning is True


def test_abnormal_latest_status_is_concerning():
    assessment = TrendClassifier().assess(
        "Potassium", series([4.0, 4.1], ["Normal", "Abnormal"]), reference_range="3.5-5.1"
    )
    assert assessment.trend == Trend.STABLE
    assert assessment.is_concerning is True


def test_stable_normal_series_is_not_concerning():
    assessment = TrendClassifier().assess(
        "Glucose", series([95, 96, 94]), unit="mg/dL", reference_range="70-100"
    )
    assert assessment.trend == Trend.STABLE
    assert assessment.is_concerning is False
    assert assessment.clinical_significance is None


def test_single_flagged_value_is_concerning_without_trend():
    assessment = TrendClassifier().assess("LDL", series([190], ["High"]))
    assert assessment.trend == Trend.INSUFFICIENT_DATA
    assert assessment.is_concerning is True
    assert "latest result flagged High" in assessment.trend_analysis


def test_classify_returns_filled_copy():
    comparison = ParameterComparison(
        parameter="Glucose",
        unit="mg/dL",
        reference_range="70-100",
        values=series([95, 120, 150], ["Normal", "High", "High"]),
    )
    classified = TrendClassifier().classify(comparison)

    assert classified.trend == Trend.INCREASING
    assert classified.is_concerning is True
    assert comparison.trend == Trend.INSUFFICIENT_DATA
