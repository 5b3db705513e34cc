from __future__ import annotations

import asyncio
import logging

from serial_worker.config import get_settings
from serial_worker.job import Job
from serial_worker.monitor import JobCompletionMonitor

logger = logging.getLogger(__name__)


class SerialWorker:
    """Runs queued jobs one after another, resuming from the furthest done job.

    Jobs run strictly in insertion order. Before the first attempt, and again
    after every failed confirmation, the worker asks all jobs whether they are
    already done and resumes right after the last one that says so.
    """

    def __init__(self, *, monitor: JobCompletionMonitor | None = None) -> None:
        self._jobs: list[Job] = []
        self._monitor = monitor or JobCompletionMonitor()

    @property
    def jobs(self) -> tuple[Job, ...]:
        return tuple(self._jobs)

    def add_job(self, job: Job) -> None:
        if not isinstance(job, Job):
            raise TypeError(f"expected a Job, got {type(job).__name__}")
        self._jobs.append(job.copy())

    async def status(self) -> int:
        """Return the index of the last job currently reporting done, or -1."""
        jobs = list(self._jobs)
        results = await asyncio.gather(*(self._probe_once(job) for job in jobs))

        position = -1
        for index in range(len(results) - 1, -1, -1):
            if results[index]:
                position = index
                break

        logger.debug(
            "status probed position=%s results=%s",
            position,
            results,
            extra={"event": "status_probed", "position": position},
        )
        return position

    async def run(self, attempts_left: int | None = None) -> bool:
        if not self._jobs:
            logger.info("no jobs queued; nothing to do", extra={"event": "run_empty"})
            return True

        if attempts_left is None:
            attempts_left = get_settings().max_attempts
        if (
            isinstance(attempts_left, bool)
            or not isinstance(attempts_left, int)
            or attempts_left < 1
        ):
            raise ValueError(f"attempts_left must be a positive integer, got {attempts_left!r}")

        jobs = list(self._jobs)
        last_index = len(jobs) - 1
        position = await self.status()

        while position < last_index:
            job = jobs[position + 1]
            logger.info(
                "job started title=%s index=%s attempts_left=%s",
                job.title,
                position + 1,
                attempts_left,
                extra={
                    "event": "job_started",
                    "job_title": job.title,
                    "index": position + 1,
                    "attempts_left": attempts_left,
                },
            )
            try:
                await job.action()
            except Exception as exc:
                logger.error(
                    "job action failed title=%s index=%s error=%r",
                    job.title,
                    position + 1,
                    exc,
                    extra={"event": "action_failed", "job_title": job.title, "index": position + 1},
                )
                raise

            if await self._monitor.confirm(job):
                position += 1
                continue

            attempts_left -= 1
            if attempts_left <= 0:
                logger.warning(
                    "attempts exhausted title=%s index=%s",
                    job.title,
                    position + 1,
                    extra={
                        "event": "attempts_exhausted",
                        "job_title": job.title,
                        "index": position + 1,
                    },
                )
                return False

            logger.info(
                "retrying title=%s attempts_left=%s",
                job.title,
                attempts_left,
                extra={"event": "retrying", "job_title": job.title, "attempts_left": attempts_left},
            )
            position = await self.status()

        logger.info(
            "run succeeded jobs=%s",
            len(jobs),
            extra={"event": "run_succeeded", "jobs": len(jobs)},
        )
        return True

    async def _probe_once(self, job: Job) -> bool:
        try:
            satisfied = await job.is_satisfied()
        except Exception as exc:
            logger.debug(
                "status probe rejected title=%s error=%r",
                job.title,
                exc,
                extra={"event": "probe_rejected", "job_title": job.title},
            )
            return False
        return bool(satisfied)
