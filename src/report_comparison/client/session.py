# ============================================================================
# src/report_comparison/client/session.py
# ============================================================================
"""
Comparison Session

Client-side state for the comparison screen: the comparison being
watched, the list of past comparisons, dashboard stats and progress.
Owns one JobSubmitter, one JobPoller and the HTTP client; close() (or
leaving `async with`) cancels polling and closes the HTTP session.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..core.engine import ComparisonEngine
from ..core.enums import PollState
from ..core.files import ReportFile, ReportSelection
from ..core.models import Comparison, ComparisonStats, Pagination, SubmissionResult
from ..utils.exceptions import ApiError, ReportCountError
from .api_client import ComparisonApiClient
from .poller import JobPoller
from .submitter import JobSubmitter

logger = logging.getLogger(__name__)


class ComparisonSession:
    """
    Submit, watch and browse comparisons.

    Usage:
        async with ComparisonSession() as session:
            await session.compare(files, patient_id="P1")
            state = await session.wait()
            print(session.current.comparison_analysis)
    """

    def __init__(
        self,
        client: Optional[ComparisonApiClient] = None,
        poller_options: Optional[Dict[str, Any]] = None,
        engine: Optional[ComparisonEngine] = None,
        on_progress: Optional[Callable[[int], None]] = None
    ):
        self.client = client or ComparisonApiClient()
        self.submitter = JobSubmitter(self.client)
        self.poller = JobPoller(
            self.client.get_comparison,
            on_progress=self._on_progress,
            on_completed=self._on_completed,
            on_failed=self._on_failed,
            on_timeout=self._on_timeout,
            **(poller_options or {}),
        )
        # When set, completed records are re-derived locally from their
        # individual analyses before being shown.
        self.engine = engine
        self.on_progress = on_progress

        self.selection = ReportSelection()
        self.current: Optional[Comparison] = None
        self.comparisons: List[Comparison] = []
        self.pagination: Optional[Pagination] = None
        self.stats: Optional[ComparisonStats] = None
        self.progress = 0
        self.message: Optional[str] = None
        self.list_filters: Dict[str, Any] = {}

    async def __aenter__(self) -> "ComparisonSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def state(self) -> PollState:
        return self.poller.state

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    async def compare(
        self,
        files: Optional[Sequence[ReportFile]] = None,
        patient_id: str = "",
        comparison_name: Optional[str] = None,
        custom_prompt: Optional[str] = None,
        doctor_id: Optional[str] = None
    ) -> SubmissionResult:
        """
        Submit a comparison and start polling it.

        Uses the current selection when files is None. The selection is
        cleared once the comparison completes.
        """
        files = list(self.selection) if files is None else list(files)

        self.message = None
        result = await self.submitter.submit(
            files,
            patient_id=patient_id,
            comparison_name=comparison_name,
            custom_prompt=custom_prompt,
            doctor_id=doctor_id,
        )
        self.progress = 0
        self.poller.start(result.comparison_id)
        return result

    def select(self, files: Sequence[ReportFile]) -> List[str]:
        """Add files to the selection; returns names of dropped files."""
        try:
            rejected = self.selection.add(files)
        except ReportCountError as e:
            self.message = str(e)
            raise
        if rejected:
            self.message = f"Some files were skipped. Only JPEG, PNG, and PDF files are allowed: {', '.join(rejected)}"
        return rejected

    async def wait(self) -> PollState:
        return await self.poller.wait()

    def cancel(self) -> None:
        self.poller.cancel()

    # ------------------------------------------------------------------
    # Poller callbacks
    # ------------------------------------------------------------------
    def _on_progress(self, progress: int) -> None:
        self.progress = progress
        if self.on_progress:
            self.on_progress(progress)

    async def _on_completed(self, comparison: Comparison) -> None:
        if self.engine is not None and comparison.individual_analyses:
            comparison = self.engine.apply(comparison)
        self.current = comparison
        self.progress = 100
        self.message = "Comparison completed successfully"
        self.selection.clear()
        await self._refresh_quietly()

    def _on_failed(self, error_message: str) -> None:
        self.progress = 0
        self.message = error_message

    def _on_timeout(self, message: str) -> None:
        self.progress = 0
        self.message = message

    # ------------------------------------------------------------------
    # Browsing
    # ------------------------------------------------------------------
    async def refresh(self, **filters) -> List[Comparison]:
        """Reload the comparison list and stats."""
        if filters:
            self.list_filters = filters
        self.comparisons, self.pagination = await self.client.list_comparisons(**self.list_filters)
        self.stats = await self.client.get_stats()
        return self.comparisons

    async def _refresh_quietly(self) -> None:
        try:
            await self.refresh()
        except ApiError as e:
            logger.warning(f"Could not refresh comparison list: {e}")

    async def view(self, comparison_id: str) -> Comparison:
        comparison = await self.client.get_comparison(comparison_id)
        if self.engine is not None and comparison.individual_analyses:
            comparison = self.engine.apply(comparison)
        self.current = comparison
        return comparison

    async def delete(self, comparison_id: str) -> None:
        """Delete a comparison; clears the current view if it was shown."""
        await self.client.delete_comparison(comparison_id)
        if self.current is not None and self.current.id == comparison_id:
            self.current = None
        self.comparisons = [c for c in self.comparisons if c.id != comparison_id]
        await self._refresh_quietly()

    async def close(self) -> None:
        self.poller.cancel()
        await self.client.close()
