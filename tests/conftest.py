# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration and shared fixtures for testing.
"""

from datetime import datetime
from typing import Dict, Optional

import pytest

from report_comparison.analyzer.base import ReportAnalyzer
from report_comparison.core.enums import ComparisonStatus
from report_comparison.core.files import ReportFile
from report_comparison.core.models import Comparison, LabResult, Report, StructuredReport
from report_comparison.utils.exceptions import AnalyzerError


JAN = datetime(2026, 1, 10, 9, 0)
APR = datetime(2026, 4, 10, 9, 0)
JUL = datetime(2026, 7, 10, 9, 0)


def lab(parameter, value, status="Normal", unit="", reference_range=""):
    return LabResult(
        parameter=parameter,
        value=value,
        unit=unit,
        reference_range=reference_range,
        status=status,
    )


def make_report(file_name, analysis_date, results, upload_order=0, test_name="CBC"):
    return Report(
        file_name=file_name,
        file_type="application/pdf",
        upload_order=upload_order,
        analysis_date=analysis_date,
        test_name=test_name,
        test_results=results,
    )


@pytest.fixture
def hemoglobin_reports():
    """
    Three CBC reports uploaded out of date order.

    Hemoglobin falls below range, glucose holds steady and WBC is missing
    from the April report.
    """
    jul = make_report("jul.pdf", JUL, [
        lab("Hemoglobin", "10.8", "Low", "g/dL", "13.5-17.5"),
        lab("Glucose", "94", "Normal", "mg/dL", "70-100"),
        lab("WBC", "7.0", "Normal", "K/uL", "4.5-11.0"),
    ], upload_order=0)
    jan = make_report("jan.pdf", JAN, [
        lab("Hemoglobin", "13.5", "Normal", "g/dL", "13.5-17.5"),
        lab("Glucose", "95", "Normal", "mg/dL", "70-100"),
        lab("WBC", "7.2", "Normal", "K/uL", "4.5-11.0"),
    ], upload_order=1)
    apr = make_report("apr.pdf", APR, [
        lab("hemoglobin ", "12.1", "Low", "g/dL", "13.5-17.5"),
        lab("Glucose", "96", "Normal", "mg/dL", "70-100"),
    ], upload_order=2)
    return [jul, jan, apr]


@pytest.fixture
def make_comparison():
    """Factory for Comparison records in a given status."""
    def _make(comparison_id="cmp-1", status=ComparisonStatus.PENDING, **fields):
        data = {
            "id": comparison_id,
            "patient_id": "P1",
            "comparison_name": "Quarterly CBC",
            "report_count": 3,
            "status": status,
            "created_at": JAN,
            "updated_at": JAN,
        }
        data.update(fields)
        return Comparison(**data)
    return _make


@pytest.fixture
def pdf_file():
    def _make(name="report.pdf", size=128, content_type="application/pdf"):
        return ReportFile(file_name=name, content=b"%" * size, content_type=content_type)
    return _make


class FakeAnalyzer(ReportAnalyzer):
    """Returns canned reports keyed by file name."""

    def __init__(self, reports: Optional[Dict[str, StructuredReport]] = None, failing=()):
        super().__init__()
        self.reports = reports or {}
        self.failing = set(failing)
        self.calls = []

    async def extract(self, file, instructions=None):
        self.calls.append((file.file_name, instructions))
        if file.file_name in self.failing:
            raise AnalyzerError("model returned no usable JSON", file_name=file.file_name)
        return self.reports.get(file.file_name, StructuredReport())


@pytest.fixture
def fake_analyzer():
    """Analyzer with structured reports for jan.pdf, apr.png and jul.pdf."""
    def structured(report_date, hemoglobin, status):
        return StructuredReport.model_validate({
            "test_name": "Complete Blood Count",
            "report_date": report_date,
            "results": [
                {"parameter": "Hemoglobin", "value": hemoglobin, "unit": "g/dL",
                 "reference_range": "13.5-17.5", "status": status},
                {"parameter": "Glucose", "value": 95, "unit": "mg/dL",
                 "reference_range": "70-100", "status": "Normal"},
            ],
        })

    return FakeAnalyzer({
        "jan.pdf": structured("2026-01-10", 13.5, "Normal"),
        "apr.png": structured("2026-04-10", 12.1, "L"),
        "jul.pdf": structured("2026-07-10", 10.8, "low"),
    })
