# ============================================================================
# src/report_comparison/temporal/parsing.py
# ============================================================================
"""
Parsing utilities for extracted lab values, reference ranges and report dates.
"""

import re
from datetime import date, datetime
from typing import Any, Optional, Tuple

from ..core.models import display_parameter_name, normalize_parameter_name

__all__ = [
    'normalize_parameter_name',
    'display_parameter_name',
    'parse_report_date',
    'parse_numeric_value',
    'parse_reference_range',
    'position_in_range',
    'format_number',
]


# Printed date layouts seen on lab reports, tried in order after ISO 8601.
# Month-first wins for ambiguous dd/mm vs mm/dd values.
REPORT_DATE_FORMATS = [
    "%m/%d/%Y",      # 01/15/2026
    "%m-%d-%Y",      # 01-15-2026
    "%d/%m/%Y",      # 15/01/2026
    "%d.%m.%Y",      # 15.01.2026
    "%B %d, %Y",     # January 15, 2026
    "%b %d, %Y",     # Jan 15, 2026
    "%d %B %Y",      # 15 January 2026
    "%d %b %Y",      # 15 Jan 2026
    "%d-%b-%Y",      # 15-Jan-2026
    "%Y/%m/%d",      # 2026/01/15
    "%Y%m%d",        # 20260115
    "%Y-%m",         # 2026-01
]


def parse_report_date(value: Any) -> Optional[datetime]:
    """
    Parse a report date as the model copied it from the document.

    Accepts ISO 8601 dates and datetimes plus the printed layouts in
    REPORT_DATE_FORMATS. Returns None when nothing matches.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    date_str = " ".join(str(value).split())
    if not date_str:
        return None

    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        pass

    for fmt in REPORT_DATE_FORMATS:
        try:
            return datetime.strptime(date_str, fmt)
        except ValueError:
            continue

    return None


def parse_numeric_value(value_str: str) -> Optional[float]:
    """
    Extract numeric value from string.

    Handles values like:
    - "12.5"
    - "1024 High"  (value with embedded flag)
    - "< 0.5"      (less-than values)
    - "1,250"      (thousands separator)
    - "13.5 g/dL"  (value with unit)

    Rejects unit-like or qualitative strings:
    - "x10E3/uL", "g/dL", "Negative" -> None
    """
    if value_str is None:
        return None

    value_str = str(value_str).strip()
    if not value_str:
        return None

    unit_patterns = [
        r'^x?10E\d',              # x10E3, 10E6 (scientific notation units)
        r'^[a-zA-Z]+/[a-zA-Z]+',  # g/dL, mg/dL
        r'^/[a-zA-Z]+',           # /uL
    ]
    for pattern in unit_patterns:
        if re.match(pattern, value_str, re.IGNORECASE):
            return None

    match = re.match(r'^[<>≤≥]?\s*=?\s*(-?\d[\d,]*\.?\d*|-?\.\d+)', value_str)
    if not match:
        return None

    number = match.group(1).replace(',', '')
    try:
        return float(number)
    except ValueError:
        return None


def parse_reference_range(ref_str: str) -> Optional[Tuple[Optional[float], Optional[float]]]:
    """
    Parse reference range string into (low, high).

    Handles:
    - "12.0-15.5", "12.0 - 15.5", "4.5-11.0 x10E3/uL", "13.5–17.5 g/dL"
    - ">=10", "> 5.0"  -> (10.0, None)
    - "<=100", "< 0.5" -> (None, 100.0)
    - "Negative", "Non-Reactive" (qualitative) -> None

    An open bound is returned as None.
    """
    if not ref_str:
        return None

    ref_str = ref_str.strip()

    qualitative_patterns = [
        r'^negative$', r'^positive$', r'^non[\-\s]?reactive$',
        r'^reactive$', r'^normal$', r'^abnormal$', r'^see\s+', r'^n/a$'
    ]
    for pattern in qualitative_patterns:
        if re.match(pattern, ref_str, re.IGNORECASE):
            return None

    range_match = re.search(r'(\d+\.?\d*)\s*(?:-|–|—|to)\s*(\d+\.?\d*)', ref_str, re.IGNORECASE)
    if range_match:
        low = float(range_match.group(1))
        high = float(range_match.group(2))
        if low > high:
            low, high = high, low
        return (low, high)

    gt_match = re.match(r'^(?:>|≥)\s*=?\s*(\d+\.?\d*)', ref_str)
    if gt_match:
        return (float(gt_match.group(1)), None)

    lt_match = re.match(r'^(?:<|≤)\s*=?\s*(\d+\.?\d*)', ref_str)
    if lt_match:
        return (None, float(lt_match.group(1)))

    return None


def position_in_range(value: float, bounds: Optional[Tuple[Optional[float], Optional[float]]]) -> str:
    """Return "below", "above", "within" or "unknown" for a value against parsed bounds."""
    if bounds is None:
        return "unknown"
    low, high = bounds
    if low is not None and value < low:
        return "below"
    if high is not None and value > high:
        return "above"
    return "within"


def format_number(value: float) -> str:
    """Render 12.0 as "12.0" and 12.345 as "12.35" for human-readable summaries."""
    if value == int(value):
        return f"{value:.1f}"
    return f"{value:.2f}".rstrip('0')
