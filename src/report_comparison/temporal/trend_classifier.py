# ============================================================================
# src/report_comparison/temporal/trend_classifier.py
# ============================================================================
"""
Trend Classifier - Categorizes a parameter's values across report dates

Categories:
- stable: every consecutive change within tolerance
- increasing / decreasing: no significant move against the direction
- fluctuating: significant moves both ways
- insufficient_data: fewer than 2 numeric values

Tolerance is a fraction of the mean of the parsed values (5% by default,
see TREND_TOLERANCE). The series is also checked against its
reference range to flag concerning parameters.
"""

import logging
import statistics
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from ..config import threshold_settings
from ..core.enums import Trend, is_abnormal
from ..core.models import ParameterComparison, ParameterValue
from .parsing import format_number, parse_numeric_value, parse_reference_range, position_in_range
from .significance import ClinicalSignificanceAssessor


@dataclass
class TrendPoint:
    """Single numeric data point in a series"""
    date: datetime
    value: float
    status: str


@dataclass
class TrendAssessment:
    """Outcome of classifying one parameter series"""
    trend: Trend
    trend_analysis: str
    is_concerning: bool
    data_points: int
    start_value: Optional[float] = None
    end_value: Optional[float] = None
    percent_change: Optional[float] = None
    range_position: str = "unknown"  # "below" | "within" | "above" | "unknown"
    clinical_significance: Optional[str] = None


class TrendClassifier:
    """
    Deterministic trend policy over an ordered ParameterValue series.
    """

    def __init__(self, tolerance: Optional[float] = None, significance: Optional[ClinicalSignificanceAssessor] = None):
        self.logger = logging.getLogger(__name__)
        self.tolerance = tolerance if tolerance is not None else threshold_settings.TREND_TOLERANCE
        self.significance = significance or ClinicalSignificanceAssessor()

    def classify_values(self, values: Sequence[ParameterValue]) -> Trend:
        """Trend category only, for a date-ordered series."""
        points = self._prepare_data_points(values)
        if len(points) < 2:
            return Trend.INSUFFICIENT_DATA
        return self._determine_direction([p.value for p in points])

    def assess(
        self,
        parameter: str,
        values: Sequence[ParameterValue],
        unit: str = "",
        reference_range: str = ""
    ) -> TrendAssessment:
        """
        Classify a series and decide whether it is concerning.

        Args:
            parameter: Display name (used in the justification text)
            values: Series ordered by date
            unit: Unit for the justification text
            reference_range: Raw reference range, e.g. "13.5-17.5"

        Returns:
            TrendAssessment
        """
        points = self._prepare_data_points(values)
        latest_status = values[-1].status if values else None
        status_flag = is_abnormal(latest_status)

        if len(points) < 2:
            analysis = (
                f"insufficient data: {len(points)} numeric value"
                f"{'' if len(points) == 1 else 's'} across {len(values)} "
                f"report{'' if len(values) == 1 else 's'}"
            )
            if status_flag:
                analysis += f", latest result flagged {latest_status}"
            assessment = TrendAssessment(
                trend=Trend.INSUFFICIENT_DATA,
                trend_analysis=analysis,
                is_concerning=status_flag,
                data_points=len(points),
                end_value=points[-1].value if points else None,
            )
            assessment.clinical_significance = self.significance.describe(parameter, assessment)
            return assessment

        numbers = [p.value for p in points]
        trend = self._determine_direction(numbers)

        start_value = numbers[0]
        end_value = numbers[-1]
        percent_change = ((end_value - start_value) / abs(start_value) * 100) if start_value != 0 else None

        bounds = parse_reference_range(reference_range)
        position = position_in_range(end_value, bounds)

        moved_out_of_range = (
            (trend == Trend.INCREASING and position == "above")
            or (trend == Trend.DECREASING and position == "below")
        )

        assessment = TrendAssessment(
            trend=trend,
            trend_analysis=self._describe(trend, numbers, unit, position),
            is_concerning=status_flag or moved_out_of_range,
            data_points=len(points),
            start_value=start_value,
            end_value=end_value,
            percent_change=percent_change,
            range_position=position,
        )
        assessment.clinical_significance = self.significance.describe(parameter, assessment)

        self.logger.debug(
            f"{parameter}: {trend.value} over {len(points)} points "
            f"(concerning={assessment.is_concerning})"
        )
        return assessment

    def classify(self, comparison: ParameterComparison) -> ParameterComparison:
        """Return a copy of the comparison with trend fields filled in."""
        assessment = self.assess(
            comparison.parameter,
            comparison.values,
            unit=comparison.unit,
            reference_range=comparison.reference_range,
        )
        return comparison.model_copy(update={
            "trend": assessment.trend,
            "trend_analysis": assessment.trend_analysis,
            "is_concerning": assessment.is_concerning,
            "clinical_significance": assessment.clinical_significance,
        })

    def _prepare_data_points(self, values: Sequence[ParameterValue]) -> List[TrendPoint]:
        """Keep only values that parse as numbers, in the given order"""
        points = []
        for item in values:
            number = parse_numeric_value(item.value)
            if number is None:
                continue
            points.append(TrendPoint(date=item.date, value=number, status=item.status))
        return points

    def _determine_direction(self, numbers: List[float]) -> Trend:
        """Apply the tolerance policy to consecutive deltas"""
        tolerance = self.tolerance * abs(statistics.fmean(numbers))
        deltas = [b - a for a, b in zip(numbers, numbers[1:])]

        if all(abs(d) <= tolerance for d in deltas):
            return Trend.STABLE
        if all(d >= -tolerance for d in deltas):
            return Trend.INCREASING
        if all(d <= tolerance for d in deltas):
            return Trend.DECREASING
        return Trend.FLUCTUATING

    def _describe(self, trend: Trend, numbers: List[float], unit: str, position: str) -> str:
        unit_suffix = f" {unit}" if unit else ""
        first = format_number(numbers[0])
        last = format_number(numbers[-1])
        count = len(numbers)

        if trend == Trend.FLUCTUATING:
            text = (
                f"fluctuating across {count} reports "
                f"(between {format_number(min(numbers))} and {format_number(max(numbers))}{unit_suffix})"
            )
        else:
            verb = {
                Trend.INCREASING: "rising",
                Trend.DECREASING: "falling",
                Trend.STABLE: "stable",
            }[trend]
            text = f"{verb} across {count} reports ({first} → {last}{unit_suffix})"

        if position == "above":
            text += ", now above reference range"
        elif position == "below":
            text += ", now below reference range"
        elif position == "within":
            text += ", within reference range"
        return text
