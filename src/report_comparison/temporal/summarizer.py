# ============================================================================
# src/report_comparison/temporal/summarizer.py
# ============================================================================
"""
Comparison Summarizer

Turns classified parameter series into the comparison-level analysis:
- stable / concerning / improved partitions
- key changes (one line per directional trend)
- prioritized recommendations
- patient summary
"""

import logging
from typing import List, Optional, Sequence

from ..core.enums import (
    Priority,
    RecommendationCategory,
    ResultStatus,
    Trend,
    is_abnormal,
    normalize_status,
)
from ..core.models import (
    ComparisonAnalysis,
    ParameterComparison,
    PatientSummary,
    Recommendation,
)
from .aligner import AlignmentInconsistency
from .parsing import format_number, parse_numeric_value, parse_reference_range, position_in_range


PRIORITY_ORDER = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}

PRIORITY_TIMELINES = {
    Priority.HIGH: "Within 1 week",
    Priority.MEDIUM: "Within 2-4 weeks",
    Priority.LOW: "At next routine visit",
}


def latest_status(param: ParameterComparison) -> Optional[ResultStatus]:
    return normalize_status(param.latest_status)


def is_improved(param: ParameterComparison) -> bool:
    """Latest status Normal after an earlier High/Low/Abnormal in the same series."""
    if len(param.values) < 2 or latest_status(param) != ResultStatus.NORMAL:
        return False
    return any(is_abnormal(v.status) for v in param.values[:-1])


def overall_priority(concerning: Sequence[ParameterComparison]) -> Priority:
    """high if any latest status is Abnormal, else medium if any High/Low, else low."""
    statuses = [latest_status(p) for p in concerning]
    if ResultStatus.ABNORMAL in statuses:
        return Priority.HIGH
    if ResultStatus.HIGH in statuses or ResultStatus.LOW in statuses:
        return Priority.MEDIUM
    return Priority.LOW


def _numeric_series(param: ParameterComparison) -> List[float]:
    numbers = []
    for value in param.values:
        number = parse_numeric_value(value.value)
        if number is not None:
            numbers.append(number)
    return numbers


def worsening_out_of_range(param: ParameterComparison) -> bool:
    """Trend is carrying the latest value further outside its reference range."""
    numbers = _numeric_series(param)
    if not numbers:
        return False
    position = position_in_range(numbers[-1], parse_reference_range(param.reference_range))
    return (
        (param.trend == Trend.INCREASING and position == "above")
        or (param.trend == Trend.DECREASING and position == "below")
    )


def parameter_priority(param: ParameterComparison) -> Priority:
    """
    Priority of the recommendation for one concerning parameter.

    Abnormal, or High/Low with the trend moving further out of range, is
    high; other High/Low results are medium; trend-only concerns are low.
    """
    status = latest_status(param)
    if status == ResultStatus.ABNORMAL:
        return Priority.HIGH
    if status in (ResultStatus.HIGH, ResultStatus.LOW):
        return Priority.HIGH if worsening_out_of_range(param) else Priority.MEDIUM
    return Priority.LOW


class ComparisonSummarizer:
    """Aggregates ParameterComparison results into a ComparisonAnalysis."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def summarize(
        self,
        parameters: Sequence[ParameterComparison],
        report_count: int,
        inconsistencies: Sequence[AlignmentInconsistency] = ()
    ) -> ComparisonAnalysis:
        stable = [p for p in parameters if p.trend == Trend.STABLE]
        concerning = [p for p in parameters if p.is_concerning]
        improved = [p for p in parameters if is_improved(p)]

        recommendations = self._build_recommendations(parameters, concerning)

        analysis = ComparisonAnalysis(
            overall_trend=self._overall_trend(parameters, concerning, improved),
            key_changes=self._key_changes(parameters, improved),
            concerning_parameters=[p.parameter for p in concerning],
            improved_parameters=[p.parameter for p in improved],
            stable_parameters=[p.parameter for p in stable],
            recommendations=recommendations,
            patient_summary=self._patient_summary(
                parameters, concerning, stable, improved, recommendations, report_count
            ),
            alignment_warnings=[i.describe() for i in inconsistencies],
        )

        self.logger.info(
            f"Summarized {len(parameters)} parameters: {len(concerning)} concerning, "
            f"{len(stable)} stable, {len(improved)} improved"
        )
        return analysis

    def _overall_trend(
        self,
        parameters: Sequence[ParameterComparison],
        concerning: Sequence[ParameterComparison],
        improved: Sequence[ParameterComparison]
    ) -> str:
        if not any(p.trend != Trend.INSUFFICIENT_DATA for p in parameters) and not concerning:
            return "insufficient_data"
        if concerning and improved:
            return "mixed"
        if concerning:
            return "declining"
        if improved:
            return "improving"
        return "stable"

    def _key_changes(
        self,
        parameters: Sequence[ParameterComparison],
        improved: Sequence[ParameterComparison]
    ) -> List[str]:
        changes = []
        for param in parameters:
            if param.trend not in (Trend.INCREASING, Trend.DECREASING):
                continue
            numbers = _numeric_series(param)
            if len(numbers) < 2:
                continue

            verb = "increased" if param.trend == Trend.INCREASING else "decreased"
            unit = f" {param.unit}" if param.unit else ""
            line = f"{param.parameter} {verb} from {format_number(numbers[0])} to {format_number(numbers[-1])}{unit}"
            if numbers[0] != 0:
                percent = (numbers[-1] - numbers[0]) / abs(numbers[0]) * 100
                line += f" ({percent:+.1f}%)"
            changes.append(line)

        for param in improved:
            changes.append(f"{param.parameter} returned to Normal in the latest report")

        return changes

    def _build_recommendations(
        self,
        parameters: Sequence[ParameterComparison],
        concerning: Sequence[ParameterComparison]
    ) -> List[Recommendation]:
        if not parameters:
            return [Recommendation(
                category=RecommendationCategory.FOLLOW_UP,
                action="No lab values could be extracted; verify the uploaded reports are readable lab results",
                priority=Priority.LOW,
                timeline=PRIORITY_TIMELINES[Priority.LOW],
            )]

        recommendations = []
        for param in concerning:
            priority = parameter_priority(param)
            detail = param.trend_analysis or f"latest result {param.latest_status}"
            recommendations.append(Recommendation(
                category=RecommendationCategory.IMMEDIATE if priority == Priority.HIGH else RecommendationCategory.FOLLOW_UP,
                action=f"Review {param.parameter} with the treating physician: {detail}",
                priority=priority,
                timeline=PRIORITY_TIMELINES[priority],
            ))

        if concerning:
            priority = overall_priority(concerning)
            names = ", ".join(p.parameter for p in concerning)
            recommendations.append(Recommendation(
                category=RecommendationCategory.FOLLOW_UP,
                action=f"Repeat testing for {len(concerning)} concerning parameter"
                       f"{'' if len(concerning) == 1 else 's'} ({names}) to confirm the trend",
                priority=priority,
                timeline=PRIORITY_TIMELINES[priority],
            ))
        else:
            recommendations.append(Recommendation(
                category=RecommendationCategory.FOLLOW_UP,
                action="Continue routine monitoring; no concerning trends across the compared reports",
                priority=Priority.LOW,
                timeline=PRIORITY_TIMELINES[Priority.LOW],
            ))

        # Stable sort keeps per-parameter order within a priority
        recommendations.sort(key=lambda r: PRIORITY_ORDER[r.priority])
        return recommendations

    def _patient_summary(
        self,
        parameters: Sequence[ParameterComparison],
        concerning: Sequence[ParameterComparison],
        stable: Sequence[ParameterComparison],
        improved: Sequence[ParameterComparison],
        recommendations: Sequence[Recommendation],
        report_count: int
    ) -> PatientSummary:
        overall_status = (
            f"{len(concerning)} concerning, {len(stable)} stable and {len(improved)} improved "
            f"of {len(parameters)} parameters across {report_count} reports"
        )

        if not parameters:
            main_findings = "No lab parameters could be extracted from the compared reports"
        elif concerning:
            main_findings = "; ".join(f"{p.parameter}: {p.trend_analysis}" for p in concerning)
        else:
            main_findings = "No concerning parameters across the compared reports"

        if improved:
            main_findings += ". Improved: " + ", ".join(p.parameter for p in improved)

        next_steps = recommendations[0].action if recommendations else ""

        return PatientSummary(
            overall_status=overall_status,
            main_findings=main_findings,
            next_steps=next_steps,
        )
