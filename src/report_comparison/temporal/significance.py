# ============================================================================
# src/report_comparison/temporal/significance.py
# ============================================================================
"""
Clinical Significance Notes

Attaches a short, observational note to a parameter series:
- Known patterns for common analytes (e.g. falling hemoglobin)
- A generic note for other concerning series

Notes describe the pattern; they are not a diagnosis.
"""

import logging
from typing import Dict, Optional, TYPE_CHECKING

from ..core.enums import Trend
from .parsing import normalize_parameter_name

if TYPE_CHECKING:
    from .trend_classifier import TrendAssessment


class ClinicalSignificanceAssessor:
    """
    Looks up pattern notes by analyte and trend.

    Rules are keyed by normalized parameter name, then by trend, then by
    the latest value's position against the reference range ("any" matches
    every position).
    """

    def __init__(self, rules: Optional[Dict[str, Dict]] = None):
        self.logger = logging.getLogger(__name__)
        self.significance_rules = rules if rules is not None else self._load_significance_rules()

    def _load_significance_rules(self) -> Dict[str, Dict]:
        """Built-in notes for frequently compared analytes."""
        rules = {
            'hemoglobin': {
                Trend.DECREASING: {
                    'below': 'Declining hemoglobin now below range; pattern may reflect progressive anemia',
                    'any': 'Declining hemoglobin across reports',
                },
            },
            'creatinine': {
                Trend.INCREASING: {
                    'above': 'Rising creatinine now above range; pattern may reflect declining kidney function',
                    'any': 'Creatinine rising across reports',
                },
            },
            'glucose': {
                Trend.INCREASING: {
                    'above': 'Rising glucose now above range; pattern may reflect worsening glycemic control',
                },
                Trend.FLUCTUATING: {
                    'any': 'Glucose fluctuating between reports; glycemic variability',
                },
            },
            'hba1c': {
                Trend.INCREASING: {
                    'above': 'HbA1c rising above target across reports',
                },
                Trend.DECREASING: {
                    'any': 'HbA1c falling across reports',
                },
            },
            'potassium': {
                Trend.FLUCTUATING: {
                    'any': 'Potassium fluctuating between reports',
                },
            },
            'inr': {
                Trend.FLUCTUATING: {
                    'any': 'INR fluctuating between reports; anticoagulation may be unstable',
                },
            },
            'platelets': {
                Trend.DECREASING: {
                    'below': 'Platelet count falling below range across reports',
                },
            },
            'ldl cholesterol': {
                Trend.INCREASING: {
                    'above': 'LDL cholesterol rising above target across reports',
                },
            },
        }
        # Common spellings of the same analytes
        rules['haemoglobin'] = rules['hemoglobin']
        rules['serum creatinine'] = rules['creatinine']
        rules['fasting glucose'] = rules['glucose']
        rules['fasting blood sugar'] = rules['glucose']
        rules['glycated hemoglobin'] = rules['hba1c']
        rules['platelet count'] = rules['platelets']
        rules['ldl'] = rules['ldl cholesterol']
        return rules

    def describe(self, parameter: str, assessment: "TrendAssessment") -> Optional[str]:
        """
        Note for a classified series.

        Returns:
            A rule note when one matches, a generic note when the series is
            concerning, otherwise None.
        """
        rule_set = self.significance_rules.get(normalize_parameter_name(parameter), {})
        by_position = rule_set.get(assessment.trend)

        if by_position:
            note = by_position.get(assessment.range_position) or by_position.get('any')
            if note:
                return note

        if assessment.is_concerning:
            return self._default_note(parameter, assessment)

        return None

    def _default_note(self, parameter: str, assessment: "TrendAssessment") -> str:
        if assessment.range_position in ('above', 'below'):
            return f"{parameter} is {assessment.range_position} its reference range in the latest report"
        if assessment.trend == Trend.INSUFFICIENT_DATA:
            return f"{parameter} flagged in the latest report; not enough values to establish a trend"
        return f"{parameter} flagged in the latest report"
