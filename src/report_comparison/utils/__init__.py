# ============================================================================
# src/report_comparison/utils/__init__.py
# ============================================================================
"""
Utility modules for the report comparison engine.
"""

from .exceptions import (
    ReportComparisonError,
    SubmissionValidationError,
    UnsupportedFileTypeError,
    FileTooLargeError,
    ReportCountError,
    PatientRequiredError,
    SubmissionInProgressError,
    ApiError,
    ComparisonNotFoundError,
    AnalyzerError,
    ConfigurationError,
)

from .logging import (
    setup_logging,
    setup_logging_from_settings,
    LogContext,
    log_performance,
)

__all__ = [
    # Exceptions
    'ReportComparisonError',
    'SubmissionValidationError',
    'UnsupportedFileTypeError',
    'FileTooLargeError',
    'ReportCountError',
    'PatientRequiredError',
    'SubmissionInProgressError',
    'ApiError',
    'ComparisonNotFoundError',
    'AnalyzerError',
    'ConfigurationError',
    # Logging
    'setup_logging',
    'setup_logging_from_settings',
    'LogContext',
    'log_performance',
]
