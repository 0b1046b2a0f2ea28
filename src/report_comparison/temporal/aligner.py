# ============================================================================
# src/report_comparison/temporal/aligner.py
# ============================================================================
"""
Parameter Aligner - Builds cross-report parameter series

Each report contributes its extracted results; parameters are matched across
reports by normalized name (case and whitespace only). A report that lacks
a parameter contributes nothing to that parameter's series, so series can be
shorter than the number of reports.

Known limitation: synonyms ("Hgb" vs "Hemoglobin") and unit mismatches
(mg/dL vs g/dL) are not reconciled. Mismatched units or reference ranges
are logged and recorded in `inconsistencies` instead.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from ..core.models import ParameterComparison, ParameterValue, Report
from .parsing import display_parameter_name, normalize_parameter_name


@dataclass
class AlignmentInconsistency:
    """A later report disagreed with the first report on unit or range."""
    parameter: str
    field: str  # "unit" or "reference_range"
    expected: str
    found: str
    file_name: str

    def describe(self) -> str:
        label = "unit" if self.field == "unit" else "reference range"
        return (
            f"{self.parameter}: {label} '{self.found}' in {self.file_name} differs from "
            f"'{self.expected}'; values were compared without conversion"
        )


def order_reports(reports: Sequence[Report]) -> List[Report]:
    """Sort by analysis date ascending; ties keep upload order."""
    return sorted(reports, key=lambda r: (r.analysis_date, r.upload_order))


class ParameterAligner:
    """
    Merges per-report test results into one ParameterComparison per
    distinct parameter.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.inconsistencies: List[AlignmentInconsistency] = []

    def align(self, reports: Sequence[Report]) -> List[ParameterComparison]:
        """
        Align parameters across reports.

        Args:
            reports: Reports already ordered by analysis_date ascending.
                `report_index` in the output refers to positions in this list.

        Returns:
            ParameterComparison list in first-seen order. Trend fields are
            left at their defaults for the classifier to fill in.
        """
        self.inconsistencies = []
        series: Dict[str, ParameterComparison] = {}

        for report_index, report in enumerate(reports):
            seen_in_report = set()

            for result in report.test_results:
                key = normalize_parameter_name(result.parameter)
                if not key:
                    continue

                # A report listing the same parameter twice keeps the first reading
                if key in seen_in_report:
                    self.logger.debug(
                        f"Duplicate parameter '{result.parameter}' in {report.file_name}, keeping first"
                    )
                    continue
                seen_in_report.add(key)

                comparison = series.get(key)
                if comparison is None:
                    comparison = ParameterComparison(
                        parameter=display_parameter_name(result.parameter),
                        unit=result.unit,
                        reference_range=result.reference_range,
                    )
                    series[key] = comparison
                else:
                    self._check_consistency(comparison, result.unit, "unit", report.file_name)
                    self._check_consistency(
                        comparison, result.reference_range, "reference_range", report.file_name
                    )

                comparison.values.append(ParameterValue(
                    report_index=report_index,
                    date=report.analysis_date,
                    value=result.value,
                    status=result.status,
                    file_name=report.file_name,
                ))

        self.logger.debug(f"Aligned {len(series)} parameters across {len(reports)} reports")
        return list(series.values())

    def _check_consistency(
        self,
        comparison: ParameterComparison,
        found: str,
        field: str,
        file_name: str
    ) -> None:
        expected = getattr(comparison, field)
        if not found or not expected:
            return
        if " ".join(found.split()).lower() == " ".join(expected.split()).lower():
            return

        self.logger.warning(
            f"{comparison.parameter}: {field} '{found}' in {file_name} differs from '{expected}'; "
            f"keeping first report's value"
        )
        self.inconsistencies.append(AlignmentInconsistency(
            parameter=comparison.parameter,
            field=field,
            expected=expected,
            found=found,
            file_name=file_name,
        ))
