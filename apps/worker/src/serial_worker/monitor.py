from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging

from serial_worker.job import Job

logger = logging.getLogger(__name__)


@dataclass
class _Confirmation:
    job: Job
    calls: int = 0

    async def poll_until_satisfied(self) -> None:
        # Exactly one probe call is outstanding at a time; the patience delay
        # starts when the previous call settles.
        job = self.job
        while True:
            try:
                satisfied = await job.is_satisfied()
            except Exception as exc:
                self.calls += 1
                logger.debug(
                    "probe rejected title=%s calls=%s error=%r",
                    job.title,
                    self.calls,
                    exc,
                    extra={"event": "probe_rejected", "job_title": job.title, "calls": self.calls},
                )
            else:
                self.calls += 1
                if satisfied:
                    return
                logger.debug(
                    "probe returned false title=%s calls=%s",
                    job.title,
                    self.calls,
                    extra={"event": "probe_false", "job_title": job.title, "calls": self.calls},
                )

            await asyncio.sleep(job.patience_seconds)


class JobCompletionMonitor:
    """Decides whether a job's action took effect within the job's faith.

    `confirm` has only two outcomes: True as soon as one probe reports the job
    done, False once `faith_ms` elapsed without that. Probe errors never
    escape; they count as a "not yet" for that poll.
    """

    async def confirm(self, job: Job) -> bool:
        confirmation = _Confirmation(job)
        try:
            # wait_for cancels the poll loop (and any in-flight probe) on timeout.
            await asyncio.wait_for(confirmation.poll_until_satisfied(), timeout=job.faith_seconds)
        except asyncio.TimeoutError:
            logger.info(
                "confirmation timed out title=%s faith_ms=%s calls=%s",
                job.title,
                job.faith_ms,
                confirmation.calls,
                extra={
                    "event": "confirmation_timeout",
                    "job_title": job.title,
                    "faith_ms": job.faith_ms,
                    "calls": confirmation.calls,
                },
            )
            return False

        logger.info(
            "confirmation succeeded title=%s calls=%s",
            job.title,
            confirmation.calls,
            extra={
                "event": "confirmation_succeeded",
                "job_title": job.title,
                "calls": confirmation.calls,
            },
        )
        return True


async def confirm_job(job: Job) -> bool:
    return await JobCompletionMonitor().confirm(job)
