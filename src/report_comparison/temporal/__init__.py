"""
Cross-report temporal analysis: alignment, trend classification, summaries.
"""

from .aligner import ParameterAligner, AlignmentInconsistency, order_reports
from .trend_classifier import TrendClassifier, TrendAssessment
from .significance import ClinicalSignificanceAssessor
from .summarizer import ComparisonSummarizer, overall_priority, parameter_priority

__all__ = [
    'ParameterAligner',
    'AlignmentInconsistency',
    'order_reports',
    'TrendClassifier',
    'TrendAssessment',
    'ClinicalSignificanceAssessor',
    'ComparisonSummarizer',
    'overall_priority',
    'parameter_priority',
]
