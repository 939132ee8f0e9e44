"""Async insights report runs: start, poll until terminal, fetch rows."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from metaops.errors import AsyncJobError, AsyncJobFailedError, AsyncJobTimeoutError
from metaops.graph import GraphClient


logger = logging.getLogger(__name__)

COMPLETED_STATUS = "Job Completed"
FAILED_STATUSES = ("Job Failed", "Error")


class JobState(str, Enum):
    STARTED = "started"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class InsightsJob:
    def __init__(
        self,
        client: GraphClient,
        account_id: str,
        params: dict[str, Any],
        *,
        poll_seconds: float = 1.5,
        max_wait_seconds: float = 120.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.account_id = account_id
        self.params = params
        self.poll_seconds = poll_seconds
        self.max_wait_seconds = max_wait_seconds
        self._sleep = sleep
        self._clock = clock
        self.job_id: str | None = None
        self.state: JobState | None = None
        self.last_status: str = ""

    def _set_state(self, state: JobState) -> None:
        self.state = state
        logger.info("insights job %s: %s", self.job_id, state.value)

    async def start(self) -> str:
        payload = await self.client.post(f"/{self.account_id}/insights", self.params)
        job_id = payload.get("report_run_id") or (payload.get("report_run") or {}).get("id")
        if not job_id:
            raise AsyncJobError("Failed to start insights async job")
        self.job_id = str(job_id)
        self._set_state(JobState.STARTED)
        return self.job_id

    async def poll(self) -> str:
        if not self.job_id:
            raise AsyncJobError("insights job has not been started")
        payload = await self.client.get(f"/{self.job_id}")
        self.last_status = str(payload.get("async_status") or payload.get("status") or "")
        return self.last_status

    async def wait(self) -> None:
        if not self.job_id:
            raise AsyncJobError("insights job has not been started")
        started_at = self._clock()
        self._set_state(JobState.POLLING)
        while True:
            status = await self.poll()
            if status == COMPLETED_STATUS:
                self._set_state(JobState.COMPLETED)
                return
            if status in FAILED_STATUSES:
                self._set_state(JobState.FAILED)
                raise AsyncJobFailedError(self.job_id, status)
            waited = self._clock() - started_at
            if waited > self.max_wait_seconds:
                self._set_state(JobState.TIMED_OUT)
                raise AsyncJobTimeoutError(self.job_id, waited)
            await self._sleep(self.poll_seconds)

    async def result(self) -> list[dict[str, Any]]:
        if self.state is not JobState.COMPLETED:
            raise AsyncJobError(f"insights job {self.job_id} is not completed")
        return await self.client.get_all_pages(f"/{self.job_id}/insights")


async def run_insights_job(
    client: GraphClient,
    account_id: str,
    params: dict[str, Any],
    *,
    poll_seconds: float = 1.5,
    max_wait_seconds: float = 120.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> list[dict[str, Any]]:
    job = InsightsJob(
        client,
        account_id,
        params,
        poll_seconds=poll_seconds,
        max_wait_seconds=max_wait_seconds,
        sleep=sleep,
        clock=clock,
    )
    await job.start()
    await job.wait()
    return await job.result()
