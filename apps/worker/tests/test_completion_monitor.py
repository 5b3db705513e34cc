import asyncio
import logging
import time

import pytest

from serial_worker import Job, JobCompletionMonitor, confirm_job


class FlagTask:
    def __init__(self, *, sets_flag: bool = True, check_delay: float = 0.0) -> None:
        self.sets_flag = sets_flag
        self.check_delay = check_delay
        self.value = False
        self.runs = 0
        self.checks = 0

    async def run(self) -> None:
        self.runs += 1
        if self.sets_flag:
            self.value = True

    async def is_done(self) -> bool:
        self.checks += 1
        if self.check_delay:
            await asyncio.sleep(self.check_delay)
        return self.value

    def job(self, *, faith_ms: int, patience_ms: int) -> Job:
        return (
            Job.builder()
            .set_title("flag setter")
            .with_task(self.run)
            .with_target(self.is_done)
            .set_faith(faith_ms)
            .set_patience(patience_ms)
            .build()
        )


@pytest.mark.asyncio
async def test_confirm_returns_true_once_probe_reports_done() -> None:
    task = FlagTask()
    job = task.job(faith_ms=1000, patience_ms=400)

    await job.action()
    confirmed = await JobCompletionMonitor().confirm(job)

    assert confirmed is True
    assert task.runs == 1
    assert task.checks == 1


@pytest.mark.asyncio
async def test_confirm_times_out_when_probe_never_succeeds() -> None:
    task = FlagTask(sets_flag=False)
    job = task.job(faith_ms=300, patience_ms=100)

    started = time.monotonic()
    confirmed = await confirm_job(job)
    elapsed = time.monotonic() - started

    assert confirmed is False
    assert 0.25 <= elapsed < 1.0
    assert 2 <= task.checks <= 5


@pytest.mark.asyncio
async def test_confirm_keeps_polling_after_probe_errors() -> None:
    calls = 0

    async def flaky() -> bool:
        nonlocal calls
        calls += 1
        if calls < 3:
            raise ConnectionError("probe endpoint unavailable")
        return True

    async def noop() -> None:
        return None

    job = Job(action=noop, is_satisfied=flaky, title="flaky", faith_ms=1000, patience_ms=10)

    assert await confirm_job(job) is True
    assert calls == 3


@pytest.mark.asyncio
async def test_confirm_waits_patience_between_polls() -> None:
    stamps: list[float] = []

    async def never() -> bool:
        stamps.append(time.monotonic())
        return False

    async def noop() -> None:
        return None

    job = Job(action=noop, is_satisfied=never, faith_ms=350, patience_ms=100)

    assert await confirm_job(job) is False
    gaps = [later - earlier for earlier, later in zip(stamps, stamps[1:])]
    assert gaps
    assert all(gap >= 0.09 for gap in gaps)


@pytest.mark.asyncio
async def test_confirm_gives_up_on_a_probe_slower_than_faith() -> None:
    task = FlagTask(check_delay=1.0)
    job = task.job(faith_ms=100, patience_ms=10)
    await job.action()

    started = time.monotonic()
    confirmed = await confirm_job(job)

    assert confirmed is False
    assert time.monotonic() - started < 0.5
    assert task.checks == 1


@pytest.mark.asyncio
async def test_confirm_stops_polling_after_success() -> None:
    task = FlagTask()
    job = task.job(faith_ms=200, patience_ms=10)
    await job.action()

    assert await confirm_job(job) is True
    checks_at_success = task.checks
    await asyncio.sleep(0.3)

    assert task.checks == checks_at_success


@pytest.mark.asyncio
async def test_confirm_emits_structured_log_records(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="serial_worker")

    async def rejecting() -> bool:
        raise RuntimeError("nope")

    async def noop() -> None:
        return None

    job = Job(action=noop, is_satisfied=rejecting, title="rejecting", faith_ms=120, patience_ms=30)

    assert await confirm_job(job) is False

    events = [getattr(record, "event", None) for record in caplog.records]
    assert "probe_rejected" in events
    assert events[-1] == "confirmation_timeout"
    timeout_record = caplog.records[-1]
    assert timeout_record.job_title == "rejecting"
    assert timeout_record.faith_ms == 120
