"""
Core comparison types: enums, wire models, report files.
"""

from .enums import (
    ComparisonStatus,
    PollState,
    Trend,
    ResultStatus,
    Priority,
    RecommendationCategory,
)
from .models import (
    LabResult,
    StructuredReport,
    Report,
    ParameterValue,
    ParameterComparison,
    Recommendation,
    PatientSummary,
    ComparisonAnalysis,
    DateRange,
    UploadedFile,
    Comparison,
    SubmissionResult,
    Pagination,
    ComparisonStats,
)
from .files import ReportFile, ReportSelection, ALLOWED_MIME_TYPES, validate_submission
