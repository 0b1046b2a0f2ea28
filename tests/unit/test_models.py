# ============================================================================
# FILE: tests/unit/test_models.py
# ============================================================================
"""
Unit tests for the comparison data model
"""

from datetime import datetime

from report_comparison.core.enums import ComparisonStatus, normalize_status, ResultStatus
from report_comparison.core.models import (
    Comparison,
    LabResult,
    normalize_parameter_name,
    ParameterComparison,
    StructuredReport,
)


def test_lab_result_coerces_values_and_status():
    result = LabResult(parameter="Hemoglobin", value=12.5, status="L", reference_range=None)
    assert result.value == "12.5"
    assert result.status == "Low"
    assert result.reference_range == ""


def test_unknown_status_is_kept_as_text():
    assert LabResult(parameter="Culture", status="Pending review").status == "Pending review"
    assert LabResult(parameter="Culture", status=None).status == "Normal"


def test_normalize_status():
    assert normalize_status("HIGH ") == ResultStatus.HIGH
    assert normalize_status("critical") == ResultStatus.ABNORMAL
    assert normalize_status("borderline") is None


def test_structured_report_accepts_results_alias():
    report = StructuredReport.model_validate({
        "test_name": "CBC",
        "report_date": "2026-03-01T08:00:00Z",
        "results": [{"parameter": "WBC", "value": "7.2"}],
    })
    assert report.test_results[0].parameter == "WBC"
    assert report.report_date == datetime(2026, 3, 1, 8, 0)
    assert report.report_date.tzinfo is None


def test_comparison_wire_format():
    """Server records carry _id, populated references and start_date/end_date"""
    comparison = Comparison.model_validate({
        "_id": "665f1c",
        "patient_id": {"_id": "P1", "first_name": "Ada"},
        "doctor_id": None,
        "comparison_name": "Quarterly CBC",
        "report_count": 2,
        "date_range": {"start_date": "2026-01-10T00:00:00", "end_date": "2026-04-10T00:00:00"},
        "status": "processing",
        "processing_stage": "analyzing_reports",
        "created_at": "2026-04-11T10:00:00",
        "updated_at": "2026-04-11T10:00:05",
        "unknown_field": True,
    })

    assert comparison.id == "665f1c"
    assert comparison.patient_id == "P1"
    assert comparison.status == ComparisonStatus.PROCESSING
    assert not comparison.status.is_terminal
    assert comparison.date_range.start == datetime(2026, 1, 10)
    assert comparison.comparison_analysis is None


def test_get_parameter_ignores_case_and_spacing():
    comparison = Comparison(
        id="c1",
        patient_id="P1",
        parameter_comparisons=[ParameterComparison(parameter="White  Blood Cells")],
        created_at=datetime(2026, 4, 11),
        updated_at=datetime(2026, 4, 11),
    )

    assert comparison.get_parameter("  white blood CELLS ").parameter == "White  Blood Cells"
    assert normalize_parameter_name("White  Blood Cells") == "white blood cells"
    assert comparison.get_parameter("Hemoglobin") is None


def test_terminal_statuses():
    assert ComparisonStatus.COMPLETED.is_terminal
    assert ComparisonStatus.FAILED.is_terminal
    assert not ComparisonStatus.PENDING.is_terminal
