# ============================================================================
# src/report_comparison/client/api_client.py
# ============================================================================
"""
Comparison API Client

Async HTTP client for the comparison REST service:

    POST   /ai-test-comparison/compare   multipart submission
    GET    /ai-test-comparison/{id}      one record (what the poller fetches)
    GET    /ai-test-comparison           paginated list
    GET    /ai-test-comparison/stats     dashboard counters
    DELETE /ai-test-comparison/{id}      idempotent delete

Every response is wrapped as {success, data, ...}.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import aiohttp
from pydantic import ValidationError

from ..config import api_settings
from ..core.enums import ComparisonStatus
from ..core.files import ReportFile
from ..core.models import Comparison, ComparisonStats, Pagination, SubmissionResult
from ..utils.exceptions import ApiError, ComparisonNotFoundError

logger = logging.getLogger(__name__)

COMPARISON_PATH = "/ai-test-comparison"


class ComparisonApiClient:
    """
    Thin aiohttp wrapper around the comparison endpoints.

    The HTTP session is created lazily and recreated if the event loop
    changes, so one client can be reused across asyncio.run() calls.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        request_timeout: Optional[float] = None,
        submit_timeout: Optional[float] = None
    ):
        self.base_url = (base_url or api_settings.API_BASE_URL).rstrip("/")
        self.token = token if token is not None else api_settings.API_TOKEN
        self.request_timeout = request_timeout or api_settings.REQUEST_TIMEOUT
        self.submit_timeout = submit_timeout or api_settings.SUBMIT_TIMEOUT

        self._session: Optional[aiohttp.ClientSession] = None
        self._session_loop: Optional[asyncio.AbstractEventLoop] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session for current event loop."""
        current_loop = asyncio.get_running_loop()

        if (
            self._session is None
            or self._session.closed
            or self._session_loop is not current_loop
        ):
            if self._session is not None and not self._session.closed:
                await self._session.close()

            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"

            self._session = aiohttp.ClientSession(headers=headers)
            self._session_loop = current_loop

        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._session_loop = None

    async def __aenter__(self) -> "ComparisonApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _url(self, path: str = "") -> str:
        return f"{self.base_url}{COMPARISON_PATH}{path}"

    async def _request(
        self,
        method: str,
        path: str = "",
        timeout: Optional[float] = None,
        **kwargs
    ) -> Dict[str, Any]:
        session = await self._get_session()
        client_timeout = aiohttp.ClientTimeout(total=timeout or self.request_timeout)

        try:
            async with session.request(method, self._url(path), timeout=client_timeout, **kwargs) as response:
                try:
                    body = await response.json(content_type=None)
                except ValueError:
                    body = {"message": await response.text()}

                if response.status >= 400 or (isinstance(body, dict) and body.get("success") is False):
                    raise ApiError(_error_message(body, response.status), status=response.status)

                return body if isinstance(body, dict) else {"data": body}

        except asyncio.TimeoutError as e:
            raise ApiError(f"{method} {path or '/'} timed out after {timeout or self.request_timeout}s") from e
        except aiohttp.ClientError as e:
            raise ApiError(f"{method} {path or '/'} failed: {e}") from e

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------
    async def submit_comparison(
        self,
        files: Sequence[ReportFile],
        patient_id: str,
        comparison_name: Optional[str] = None,
        custom_prompt: Optional[str] = None,
        doctor_id: Optional[str] = None
    ) -> SubmissionResult:
        """Upload the reports and create a comparison job."""
        form = aiohttp.FormData()
        for report in files:
            form.add_field(
                "test_reports",
                report.content,
                filename=report.file_name,
                content_type=report.content_type,
            )
        form.add_field("patient_id", patient_id)
        if comparison_name:
            form.add_field("comparison_name", comparison_name)
        if custom_prompt:
            form.add_field("custom_prompt", custom_prompt)
        if doctor_id:
            form.add_field("doctor_id", doctor_id)

        body = await self._request("POST", "/compare", data=form, timeout=self.submit_timeout)
        result = _parse(SubmissionResult, body.get("data"))
        logger.info(f"Submitted comparison {result.comparison_id} with {result.report_count} reports")
        return result

    async def get_comparison(self, comparison_id: str) -> Comparison:
        try:
            body = await self._request("GET", f"/{comparison_id}")
        except ApiError as e:
            if e.status == 404:
                raise ComparisonNotFoundError(comparison_id) from e
            raise
        return _parse(Comparison, body.get("data"))

    async def list_comparisons(
        self,
        page: int = 1,
        limit: int = 10,
        status: Optional[Union[ComparisonStatus, str]] = None,
        patient_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
        date_from: Optional[Union[date, str]] = None,
        date_to: Optional[Union[date, str]] = None
    ) -> Tuple[List[Comparison], Pagination]:
        params: Dict[str, str] = {"page": str(page), "limit": str(limit)}
        if status:
            params["status"] = status.value if isinstance(status, ComparisonStatus) else str(status)
        if patient_id:
            params["patient_id"] = patient_id
        if doctor_id:
            params["doctor_id"] = doctor_id
        if date_from:
            params["date_from"] = date_from.isoformat() if isinstance(date_from, date) else date_from
        if date_to:
            params["date_to"] = date_to.isoformat() if isinstance(date_to, date) else date_to

        body = await self._request("GET", "", params=params)
        comparisons = [_parse(Comparison, item) for item in body.get("data") or []]
        pagination = _parse(Pagination, body.get("pagination") or {})
        return comparisons, pagination

    async def get_stats(self) -> ComparisonStats:
        body = await self._request("GET", "/stats")
        return _parse(ComparisonStats, body.get("data") or {})

    async def delete_comparison(self, comparison_id: str) -> None:
        """Delete a comparison. Deleting an unknown id is not an error."""
        try:
            await self._request("DELETE", f"/{comparison_id}")
        except ApiError as e:
            if e.status != 404:
                raise
            logger.debug(f"Comparison {comparison_id} already deleted")


def _error_message(body: Any, status: int) -> str:
    if isinstance(body, dict):
        detail = body.get("message") or body.get("detail") or body.get("error")
        if isinstance(detail, dict):
            detail = detail.get("message") or str(detail)
        if detail:
            return str(detail)
    return f"Request failed with status {status}"


def _parse(model, data: Any):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ApiError(f"Unexpected {model.__name__} payload: {e}") from e
