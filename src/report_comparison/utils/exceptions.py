# ============================================================================
# src/report_comparison/utils/exceptions.py
# ============================================================================
"""
Custom exceptions for the report comparison engine.
"""

from typing import List, Optional


class ReportComparisonError(Exception):
    """Base exception for all report comparison errors."""
    pass


class SubmissionValidationError(ReportComparisonError):
    """Submission rejected locally, before any network call."""
    pass


class UnsupportedFileTypeError(SubmissionValidationError):
    """One or more files have a MIME type that cannot be compared."""
    def __init__(self, file_names: List[str]):
        super().__init__(
            f"Unsupported file type: {', '.join(file_names)}. "
            "Only JPEG, PNG, and PDF files are allowed."
        )
        self.file_names = file_names


class FileTooLargeError(SubmissionValidationError):
    """One or more files exceed the upload size limit."""
    def __init__(self, file_names: List[str], max_size_mb: int):
        super().__init__(
            f"File too large (max {max_size_mb}MB): {', '.join(file_names)}"
        )
        self.file_names = file_names
        self.max_size_mb = max_size_mb


class ReportCountError(SubmissionValidationError):
    """Too few or too many reports for a comparison."""
    def __init__(self, count: int, minimum: int, maximum: int):
        if count < minimum:
            message = f"Please select at least {minimum} test reports for comparison (got {count})."
        else:
            message = f"Maximum {maximum} test reports can be compared at once (got {count})."
        super().__init__(message)
        self.count = count
        self.minimum = minimum
        self.maximum = maximum


class PatientRequiredError(SubmissionValidationError):
    """No patient selected for the comparison."""
    def __init__(self):
        super().__init__("Please select a patient for the comparison.")


class SubmissionInProgressError(ReportComparisonError):
    """A submission is already outstanding on this submitter."""
    pass


class ApiError(ReportComparisonError):
    """Comparison API returned an error response."""
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ComparisonNotFoundError(ApiError):
    """Comparison id is unknown to the server."""
    def __init__(self, comparison_id: str):
        super().__init__(f"Comparison not found: {comparison_id}", status=404)
        self.comparison_id = comparison_id


class AnalyzerError(ReportComparisonError):
    """Per-report extraction failed."""
    def __init__(self, message: str, file_name: Optional[str] = None):
        super().__init__(message)
        self.file_name = file_name


class ConfigurationError(ReportComparisonError):
    """Invalid configuration."""
    pass
