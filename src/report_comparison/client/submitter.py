# ============================================================================
# src/report_comparison/client/submitter.py
# ============================================================================
"""
Job Submitter

Validates a comparison request locally and creates the job with exactly
one network call. Nothing is sent when validation fails.
"""

import logging
from datetime import date
from typing import Optional, Sequence

from ..config import threshold_settings
from ..core.files import ReportFile, validate_submission
from ..core.models import SubmissionResult
from ..utils.exceptions import SubmissionInProgressError
from .api_client import ComparisonApiClient

logger = logging.getLogger(__name__)


def default_comparison_name(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"Test Comparison - {today.month}/{today.day}/{today.year}"


class JobSubmitter:
    """Submits comparison jobs; one submission at a time."""

    def __init__(
        self,
        client: ComparisonApiClient,
        min_reports: Optional[int] = None,
        max_reports: Optional[int] = None,
        max_file_size_mb: Optional[int] = None
    ):
        self.client = client
        self.min_reports = min_reports or threshold_settings.MIN_REPORTS
        self.max_reports = max_reports or threshold_settings.MAX_REPORTS
        self.max_file_size_mb = max_file_size_mb or threshold_settings.MAX_FILE_SIZE_MB
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def validate(self, files: Sequence[ReportFile], patient_id: Optional[str]) -> None:
        """Raise a SubmissionValidationError naming the offending input, if any."""
        validate_submission(
            files,
            patient_id,
            min_reports=self.min_reports,
            max_reports=self.max_reports,
            max_file_size_mb=self.max_file_size_mb,
        )

    async def submit(
        self,
        files: Sequence[ReportFile],
        patient_id: str,
        comparison_name: Optional[str] = None,
        custom_prompt: Optional[str] = None,
        doctor_id: Optional[str] = None
    ) -> SubmissionResult:
        """
        Validate and submit a comparison.

        Returns:
            SubmissionResult with the new comparison_id (status pending)

        Raises:
            SubmissionInProgressError: another submit() has not returned yet
            SubmissionValidationError: local validation failed
            ApiError: the service rejected the request
        """
        if self._in_flight:
            raise SubmissionInProgressError("A comparison submission is already in progress.")

        files = list(files)
        self.validate(files, patient_id)

        name = (comparison_name or "").strip() or default_comparison_name()
        prompt = (custom_prompt or "").strip() or None

        self._in_flight = True
        try:
            logger.info(f"Submitting {len(files)} reports for patient {patient_id}: {name}")
            return await self.client.submit_comparison(
                files,
                patient_id=patient_id.strip(),
                comparison_name=name,
                custom_prompt=prompt,
                doctor_id=doctor_id,
            )
        finally:
            self._in_flight = False
