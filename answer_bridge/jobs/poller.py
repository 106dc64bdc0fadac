"""
Ingestion job status polling.

After an ingest job is enqueued the requester gets a DM that is updated in
place while the job runs, a short "Stage: X" ping whenever the stage moves,
and, on completion, a final summary followed by the bare target URL so that
Slack unfurls the page exactly once, below all status text.

Polling is a plain async loop with a stop event instead of a repeating
timer, so shutdown and the error-threshold give-up share one exit path.

Usage:
    poller = JobPoller(client.ingest_status, notifier, interval=2.0)
    registry.spawn(poller, job_id, url)
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Protocol

import structlog

from answer_bridge.backend.errors import BackendError
from answer_bridge.backend.models import IngestStatus

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL = 2.0
MAX_TRANSIENT_ERRORS = 5
SUMMARY_RULE = "----------------"

_URL_PATTERN = re.compile(r"https?://\S+")


class PollOutcome(str, Enum):
    """How a polling run ended."""

    COMPLETED = "completed"
    ABANDONED = "abandoned"
    CANCELLED = "cancelled"


class JobNotifier(Protocol):
    """Destination for job status messages (a Slack DM in production)."""

    async def post(self, text: str) -> str | None:
        """Post a new message and return its ts."""
        ...

    async def update(self, ts: str, text: str) -> None:
        """Edit a previously posted message."""
        ...


def _counts_line(status: IngestStatus) -> str:
    if not status.has_counts:
        return ""
    return f"\nchunks={status.chunks_inserted or '?'}, embeddings={status.embeddings_inserted or '?'}"


def format_initial_text(job_id: str) -> str:
    # No URL here: an early unfurl would sit above the later status messages
    return f"Accepted ingest\njob_id={job_id}\nStage: queued"


def format_progress_text(job_id: str, status: IngestStatus) -> str:
    """Text for the in-place progress message."""
    stage = f"\nStage: {status.stage}" if status.stage else ""
    detail = f"\n{status.detail}" if status.detail else ""
    return f"job_id={job_id}\nStatus: {status.status}{stage}{detail}{_counts_line(status)}"


def strip_urls(text: str) -> str:
    """Remove URLs so only the trailing URL message unfurls."""
    return _URL_PATTERN.sub("", text).rstrip()


def format_final_text(status: IngestStatus) -> str:
    """Text for the final summary posted on a terminal status."""
    stage = f"\nStage: {status.stage}" if status.stage else ""
    detail = strip_urls(status.detail)
    detail = f"\n{detail}" if detail.strip() else ""
    return f"{SUMMARY_RULE}\nStatus: {status.status}{stage}{detail}{_counts_line(status)}"


class JobPoller:
    """
    Polls one ingestion job until it finishes, fails repeatedly, or is cancelled.

    A poller instance runs a single job; create one per enqueue.
    """

    def __init__(
        self,
        fetch_status: Callable[[str], Awaitable[IngestStatus]],
        notifier: JobNotifier,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_transient_errors: int = MAX_TRANSIENT_ERRORS,
    ):
        """
        Initialize the poller.

        Args:
            fetch_status: Coroutine returning the job status for a job id
            notifier: Where status messages go
            interval: Seconds between polls
            max_transient_errors: Consecutive fetch failures before giving up
        """
        self._fetch_status = fetch_status
        self._notifier = notifier
        self._interval = interval
        self._max_transient_errors = max_transient_errors
        self._stop = asyncio.Event()

    def cancel(self) -> None:
        """Ask the loop to stop before its next poll."""
        self._stop.set()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    async def _wait_tick(self) -> bool:
        """Sleep one interval; True if cancelled meanwhile."""
        if self._stop.is_set():
            return True
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
        except asyncio.TimeoutError:
            return False
        return True

    async def _post(self, text: str) -> str | None:
        try:
            return await self._notifier.post(text)
        except Exception as e:
            logger.error("Job notification failed", error=str(e))
            return None

    async def _update(self, ts: str, text: str) -> None:
        try:
            await self._notifier.update(ts, text)
        except Exception as e:
            logger.error("Job status update failed", error=str(e))

    async def run(self, job_id: str, target_url: str) -> PollOutcome:
        """
        Relay job progress until a terminal state.

        Args:
            job_id: Backend job id
            target_url: URL being ingested, posted alone at the end

        Returns:
            The outcome of the run
        """
        log = logger.bind(job_id=job_id)

        message_ts = await self._post(format_initial_text(job_id))
        if not message_ts:
            log.warning("Initial job message failed, not polling")
            return PollOutcome.ABANDONED

        last_status = ""
        last_stage = ""
        transient_errors = 0

        while True:
            if await self._wait_tick():
                log.info("Job polling cancelled")
                return PollOutcome.CANCELLED

            try:
                status = await self._fetch_status(job_id)
            except BackendError as e:
                transient_errors += 1
                log.warning("Job status poll failed", error=str(e), errors=transient_errors)
                if transient_errors >= self._max_transient_errors:
                    log.error("Giving up on job status polling", errors=transient_errors)
                    return PollOutcome.ABANDONED
                continue

            transient_errors = 0
            log.debug("Job status polled", status=status.status, stage=status.stage)

            if status.status != last_status or status.stage != last_stage:
                if status.stage and status.stage != last_stage and not status.is_terminal:
                    await self._post(f"Stage: {status.stage}")
                last_status = status.status
                last_stage = status.stage
                # Terminal states get a fresh summary message instead
                if not status.is_terminal:
                    await self._update(message_ts, format_progress_text(job_id, status))

            if status.is_terminal:
                await self._post(format_final_text(status))
                await self._post(target_url)
                log.info("Job finished", status=status.status)
                return PollOutcome.COMPLETED


class JobRegistry:
    """Tracks running pollers so shutdown can stop them."""

    def __init__(self):
        self._jobs: dict[asyncio.Task, JobPoller] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def spawn(self, poller: JobPoller, job_id: str, target_url: str) -> asyncio.Task:
        """Start `poller` as a background task."""
        task = asyncio.create_task(poller.run(job_id, target_url), name=f"ingest-poll-{job_id}")
        self._jobs[task] = poller
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._jobs.pop(task, None)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Job poller crashed", task=task.get_name(), error=str(error), error_type=type(error).__name__)

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Cancel every live poller and wait for them to exit."""
        if not self._jobs:
            return
        tasks = list(self._jobs)
        for poller in self._jobs.values():
            poller.cancel()
        done, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        logger.info("Job pollers stopped", stopped=len(done), forced=len(pending))
