# ============================================================================
# FILE: tests/unit/test_parsing.py
# ============================================================================
"""
Unit tests for lab value and reference range parsing
"""

from datetime import date, datetime

import pytest

from report_comparison.temporal.parsing import (
    format_number,
    normalize_parameter_name,
    parse_numeric_value,
    parse_reference_range,
    parse_report_date,
    position_in_range,
)


@pytest.mark.parametrize("raw,expected", [
    ("12.5", 12.5),
    ("13.5 g/dL", 13.5),
    ("1024 High", 1024.0),
    ("< 0.5", 0.5),
    ("1,250", 1250.0),
    ("-3.2", -3.2),
    (".8", 0.8),
])
def test_parse_numeric_value(raw, expected):
    assert parse_numeric_value(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", ["Negative", "g/dL", "x10E3/uL", "", None, "Non-Reactive"])
def test_parse_numeric_value_rejects_non_numbers(raw):
    assert parse_numeric_value(raw) is None


def test_parse_reference_range_bounds():
    """Test closed, open and qualitative ranges"""
    assert parse_reference_range("13.5-17.5") == (13.5, 17.5)
    assert parse_reference_range("4.5 - 11.0 x10E3/uL") == (4.5, 11.0)
    assert parse_reference_range("13.5–17.5 g/dL") == (13.5, 17.5)
    assert parse_reference_range("70 to 100") == (70.0, 100.0)
    assert parse_reference_range(">=10") == (10.0, None)
    assert parse_reference_range("< 200") == (None, 200.0)
    assert parse_reference_range("Negative") is None
    assert parse_reference_range("") is None


def test_position_in_range():
    bounds = (13.5, 17.5)
    assert position_in_range(10.8, bounds) == "below"
    assert position_in_range(18.0, bounds) == "above"
    assert position_in_range(13.5, bounds) == "within"
    assert position_in_range(250, (None, 200.0)) == "above"
    assert position_in_range(5.0, None) == "unknown"


def test_normalize_parameter_name():
    assert normalize_parameter_name("  Hemoglobin ") == "hemoglobin"
    assert normalize_parameter_name("LDL   Cholesterol") == "ldl cholesterol"


def test_format_number():
    assert format_number(13.5) == "13.5"
    assert format_number(95.0) == "95.0"
    assert format_number(1.234) == "1.23"


@pytest.mark.parametrize("raw,expected", [
    ("2026-01-15T08:30:00Z", datetime(2026, 1, 15, 8, 30)),
    ("01/15/2026", datetime(2026, 1, 15)),
    ("15/01/2026", datetime(2026, 1, 15)),
    ("15.01.2026", datetime(2026, 1, 15)),
    ("January  15, 2026", datetime(2026, 1, 15)),
    ("15-Jan-2026", datetime(2026, 1, 15)),
    ("2026-01", datetime(2026, 1, 1)),
    (date(2026, 1, 15), datetime(2026, 1, 15)),
    ("Spring 2026", None),
    ("", None),
    (None, None),
])
def test_parse_report_date(raw, expected):
    parsed = parse_report_date(raw)
    if expected is None:
        assert parsed is None
    else:
        assert parsed.replace(tzinfo=None) == expected
