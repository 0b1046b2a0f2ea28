# ============================================================================
# src/report_comparison/core/engine.py
# ============================================================================
"""
Comparison Engine

Runs the pure cross-report pipeline:

    reports -> order by date -> align -> classify -> summarize

No I/O and no shared state, so it can be re-run on every fetched snapshot
of a Comparison record.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from ..temporal.aligner import AlignmentInconsistency, ParameterAligner, order_reports
from ..temporal.summarizer import ComparisonSummarizer
from ..temporal.trend_classifier import TrendClassifier
from ..utils.logging import log_performance
from .models import Comparison, ComparisonAnalysis, DateRange, ParameterComparison, Report

logger = logging.getLogger(__name__)


@dataclass
class ComparisonResult:
    """Everything the pipeline derives from a set of reports."""
    individual_analyses: List[Report]
    parameter_comparisons: List[ParameterComparison]
    comparison_analysis: ComparisonAnalysis
    date_range: DateRange
    inconsistencies: List[AlignmentInconsistency] = field(default_factory=list)


class ComparisonEngine:
    """Aligner -> TrendClassifier -> ComparisonSummarizer."""

    def __init__(
        self,
        aligner: Optional[ParameterAligner] = None,
        classifier: Optional[TrendClassifier] = None,
        summarizer: Optional[ComparisonSummarizer] = None
    ):
        self.aligner = aligner or ParameterAligner()
        self.classifier = classifier or TrendClassifier()
        self.summarizer = summarizer or ComparisonSummarizer()

    @log_performance(logger, "Report comparison")
    def compare(
        self,
        reports: Sequence[Report],
        on_stage: Optional[Callable[[str], None]] = None
    ) -> ComparisonResult:
        """
        Derive parameter comparisons and the summary from analyzed reports.

        on_stage, if given, is called with "aligning_parameters" and then
        "summarizing" as the pipeline advances.
        """
        ordered = order_reports(reports)

        if on_stage:
            on_stage("aligning_parameters")
        aligned = self.aligner.align(ordered)
        classified = [self.classifier.classify(param) for param in aligned]

        if on_stage:
            on_stage("summarizing")
        inconsistencies = list(self.aligner.inconsistencies)
        analysis = self.summarizer.summarize(
            classified, report_count=len(ordered), inconsistencies=inconsistencies
        )

        date_range = DateRange(
            start=ordered[0].analysis_date if ordered else None,
            end=ordered[-1].analysis_date if ordered else None,
        )

        return ComparisonResult(
            individual_analyses=ordered,
            parameter_comparisons=classified,
            comparison_analysis=analysis,
            date_range=date_range,
            inconsistencies=inconsistencies,
        )

    def apply(self, comparison: Comparison) -> Comparison:
        """Recompute the derived fields of a record from its individual analyses."""
        result = self.compare(comparison.individual_analyses)
        return comparison.model_copy(update={
            "individual_analyses": result.individual_analyses,
            "parameter_comparisons": result.parameter_comparisons,
            "comparison_analysis": result.comparison_analysis,
            "date_range": result.date_range,
        })
