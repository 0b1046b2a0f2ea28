# ============================================================================
# FILE: tests/unit/test_aligner.py
# ============================================================================
"""
Unit tests for the parameter aligner
"""

from conftest import APR, JAN, JUL, lab, make_report
from report_comparison.temporal.aligner import ParameterAligner, order_reports


def test_order_reports_by_date(hemoglobin_reports):
    """Reports are ordered by analysis date, not upload order"""
    ordered = order_reports(hemoglobin_reports)
    assert [r.file_name for r in ordered] == ["jan.pdf", "apr.pdf", "jul.pdf"]


def test_order_reports_ties_keep_upload_order():
    first = make_report("a.pdf", JAN, [], upload_order=0)
    second = make_report("b.pdf", JAN, [], upload_order=1)
    assert [r.file_name for r in order_reports([second, first])] == ["a.pdf", "b.pdf"]


def test_align_matches_case_and_whitespace(hemoglobin_reports):
    """'hemoglobin ' in April aligns with 'Hemoglobin'"""
    aligned = ParameterAligner().align(order_reports(hemoglobin_reports))

    names = [p.parameter for p in aligned]
    assert names == ["Hemoglobin", "Glucose", "WBC"]

    hemoglobin = aligned[0]
    assert [v.value for v in hemoglobin.values] == ["13.5", "12.1", "10.8"]
    assert [v.report_index for v in hemoglobin.values] == [0, 1, 2]
    assert [v.date for v in hemoglobin.values] == [JAN, APR, JUL]
    assert hemoglobin.unit == "g/dL"
    assert hemoglobin.reference_range == "13.5-17.5"


def test_missing_parameter_contributes_no_entry(hemoglobin_reports):
    aligned = ParameterAligner().align(order_reports(hemoglobin_reports))
    wbc = next(p for p in aligned if p.parameter == "WBC")

    assert len(wbc.values) == 2
    assert [v.file_name for v in wbc.values] == ["jan.pdf", "jul.pdf"]
    assert [v.report_index for v in wbc.values] == [0, 2]


def test_value_order_matches_report_order(hemoglobin_reports):
    aligned = ParameterAligner().align(order_reports(hemoglobin_reports))
    for param in aligned:
        indexes = [v.report_index for v in param.values]
        assert indexes == sorted(indexes)


def test_duplicate_parameter_in_one_report_keeps_first():
    report = make_report("a.pdf", JAN, [
        lab("Glucose", "95"),
        lab("GLUCOSE", "140"),
    ])
    aligned = ParameterAligner().align([report])

    assert len(aligned) == 1
    assert [v.value for v in aligned[0].values] == ["95"]


def test_unit_mismatch_is_recorded_not_reconciled():
    jan = make_report("jan.pdf", JAN, [lab("Glucose", "95", unit="mg/dL")])
    apr = make_report("apr.pdf", APR, [lab("Glucose", "5.3", unit="mmol/L")])

    aligner = ParameterAligner()
    aligned = aligner.align([jan, apr])

    assert aligned[0].unit == "mg/dL"
    assert len(aligned[0].values) == 2
    assert len(aligner.inconsistencies) == 1
    mismatch = aligner.inconsistencies[0]
    assert mismatch.field == "unit"
    assert mismatch.found == "mmol/L"
    assert mismatch.file_name == "apr.pdf"


def test_synonyms_are_not_merged():
    jan = make_report("jan.pdf", JAN, [lab("Hemoglobin", "13.5")])
    apr = make_report("apr.pdf", APR, [lab("Hgb", "12.9")])

    aligned = ParameterAligner().align([jan, apr])
    assert [p.parameter for p in aligned] == ["Hemoglobin", "Hgb"]


def test_no_results_gives_no_parameters():
    reports = [make_report("a.pdf", JAN, []), make_report("b.pdf", APR, [])]
    assert ParameterAligner().align(reports) == []
