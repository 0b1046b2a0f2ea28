# ============================================================================
# src/report_comparison/client/poller.py
# ============================================================================
"""
Job Poller

Observes one comparison job until it reaches a terminal status.

    Idle -> Polling -> Completed | Failed | TimedOut
                    -> Cancelled (cancel() while polling)

Each chain runs as a single asyncio task: fetch, classify the status,
sleep, repeat. The first fetch is immediate. Non-terminal responses and
fetch errors both consume an attempt; once attempts exceed the budget the
poller gives up with TimedOut, which is local to the client (the job may
still finish on the server).
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional

from ..config import polling_settings
from ..core.enums import ComparisonStatus, PollState
from ..core.models import Comparison
from ..utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = (
    "Comparison is taking longer than expected. "
    "It will keep processing; check back later."
)

FetchStatus = Callable[[str], Awaitable[Comparison]]
Callback = Callable[..., Any]


class JobPoller:
    """
    Poll a comparison job to completion.

    Callbacks may be plain functions or coroutines:
        on_progress(progress: int)
        on_completed(comparison: Comparison)
        on_failed(error_message: str)
        on_timeout(message: str)
    """

    def __init__(
        self,
        fetch_status: FetchStatus,
        interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
        on_progress: Optional[Callback] = None,
        on_completed: Optional[Callback] = None,
        on_failed: Optional[Callback] = None,
        on_timeout: Optional[Callback] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.fetch_status = fetch_status
        self.interval = polling_settings.POLL_INTERVAL_SECONDS if interval is None else interval
        self.max_attempts = polling_settings.MAX_POLL_ATTEMPTS if max_attempts is None else max_attempts
        if self.interval < 0:
            raise ConfigurationError(f"Poll interval must not be negative, got {self.interval}")
        if self.max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be at least 1, got {self.max_attempts}")
        self.on_progress = on_progress
        self.on_completed = on_completed
        self.on_failed = on_failed
        self.on_timeout = on_timeout
        self._sleep = sleep

        self.progress_map = {
            ComparisonStatus.PENDING: polling_settings.PENDING_PROGRESS,
            ComparisonStatus.PROCESSING: polling_settings.PROCESSING_PROGRESS,
        }

        self.state = PollState.IDLE
        self.job_id: Optional[str] = None
        self.attempts = 0
        self.progress = 0
        self.result: Optional[Comparison] = None
        self.error_message: Optional[str] = None

        self._task: Optional[asyncio.Task] = None
        self._chain = 0

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, job_id: str) -> asyncio.Task:
        """Start polling job_id, cancelling any chain already running."""
        if self.active:
            logger.info(f"Cancelling poll of {self.job_id} to start {job_id}")
            self._task.cancel()

        self._chain += 1
        self.job_id = job_id
        self.state = PollState.POLLING
        self.attempts = 0
        self.progress = 0
        self.result = None
        self.error_message = None

        logger.info(f"Polling comparison {job_id}")
        self._task = asyncio.get_running_loop().create_task(self._run(job_id, self._chain))
        return self._task

    def cancel(self) -> None:
        """Stop the current chain. No callback fires afterwards."""
        if self.state == PollState.POLLING:
            self.state = PollState.CANCELLED
            logger.info(f"Polling of {self.job_id} cancelled after {self.attempts} attempts")
        # A new chain number orphans any callback still in flight
        self._chain += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> PollState:
        """Wait for the current chain to finish and return the final state."""
        task = self._task
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
        return self.state

    async def _run(self, job_id: str, chain: int) -> None:
        while True:
            try:
                record = await self.fetch_status(job_id)
            except Exception as e:
                logger.warning(
                    f"Status check {self.attempts + 1}/{self.max_attempts} for {job_id} failed: {e}"
                )
                record = None

            if record is not None:
                logger.debug(f"Comparison {job_id} attempt {self.attempts + 1}: {record.status.value}")

                if record.status == ComparisonStatus.COMPLETED:
                    await self._finish_completed(record, chain)
                    return

                if record.status == ComparisonStatus.FAILED:
                    await self._finish_failed(record, chain)
                    return

                self.progress = self.progress_map.get(record.status, self.progress)
                await self._emit(chain, self.on_progress, self.progress)

            self.attempts += 1
            if self.attempts > self.max_attempts:
                self.state = PollState.TIMED_OUT
                logger.warning(f"Stopped polling {job_id} after {self.attempts} attempts")
                await self._emit(chain, self.on_timeout, TIMEOUT_MESSAGE)
                return

            await self._sleep(self.interval)

    async def _finish_completed(self, record: Comparison, chain: int) -> None:
        self.state = PollState.COMPLETED
        self.progress = 100
        self.result = record
        logger.info(f"Comparison {record.id} completed")
        await self._emit(chain, self.on_progress, self.progress)
        await self._emit(chain, self.on_completed, record)

    async def _finish_failed(self, record: Comparison, chain: int) -> None:
        self.state = PollState.FAILED
        self.error_message = record.error_message or "Comparison failed"
        logger.error(f"Comparison {record.id} failed: {self.error_message}")
        await self._emit(chain, self.on_failed, self.error_message)

    async def _emit(self, chain: int, callback: Optional[Callback], *args) -> None:
        if callback is None or chain != self._chain:
            return
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
