"""Tests for the fixed-interval pass scheduler."""

import asyncio

import pytest

from fulfillment.domain.models import PassSummary
from fulfillment.presentation.scheduler import FulfillmentScheduler


class BlockingPass:
    """A pass that waits until released."""

    def __init__(self):
        self.release = asyncio.Event()
        self.started = 0
        self.finished = 0

    async def __call__(self) -> PassSummary:
        self.started += 1
        await self.release.wait()
        self.finished += 1
        return PassSummary(processed_count=1)


class CountingPass:
    def __init__(self, error: Exception = None):
        self.calls = 0
        self._error = error

    async def __call__(self) -> PassSummary:
        self.calls += 1
        if self._error:
            raise self._error
        return PassSummary(processed_count=self.calls)


@pytest.mark.asyncio
async def test_run_now_returns_summary() -> None:
    scheduler = FulfillmentScheduler(CountingPass())

    summary = await scheduler.run_now()

    assert summary.processed_count == 1
    assert scheduler.last_summary == summary
    assert scheduler.last_run_at is not None
    assert scheduler.is_running is False


@pytest.mark.asyncio
async def test_busy_tick_is_skipped() -> None:
    """A tick during a running pass does not start a second one."""
    run_pass = BlockingPass()
    scheduler = FulfillmentScheduler(run_pass)

    assert scheduler.tick() is True
    await asyncio.sleep(0)
    assert scheduler.is_running is True

    assert scheduler.tick() is False
    assert await scheduler.run_now() is None
    assert scheduler.skipped_ticks == 2

    run_pass.release.set()
    await scheduler.stop(wait=True)

    assert run_pass.started == 1
    assert run_pass.finished == 1
    assert scheduler.is_running is False


@pytest.mark.asyncio
async def test_failing_pass_returns_to_idle() -> None:
    run_pass = CountingPass(error=RuntimeError("database is down"))
    scheduler = FulfillmentScheduler(run_pass)

    assert await scheduler.run_now() is None
    assert scheduler.is_running is False
    assert await scheduler.run_now() is None
    assert run_pass.calls == 2


@pytest.mark.asyncio
async def test_ticks_at_fixed_interval_until_stopped() -> None:
    run_pass = CountingPass()
    scheduler = FulfillmentScheduler(run_pass, interval_ms=10)

    scheduler.start()
    assert scheduler.is_active is True
    await asyncio.sleep(0.1)
    await scheduler.stop()
    calls = run_pass.calls
    await asyncio.sleep(0.05)

    assert calls >= 2
    assert run_pass.calls == calls
    assert scheduler.is_active is False


@pytest.mark.asyncio
async def test_ticker_survives_failing_passes() -> None:
    run_pass = CountingPass(error=ValueError("bad row"))
    scheduler = FulfillmentScheduler(run_pass, interval_ms=10)

    scheduler.start()
    await asyncio.sleep(0.1)

    assert scheduler.is_active is True
    assert run_pass.calls >= 2
    await scheduler.stop()


@pytest.mark.asyncio
async def test_stop_lets_running_pass_finish() -> None:
    run_pass = BlockingPass()
    scheduler = FulfillmentScheduler(run_pass, interval_ms=60000)

    scheduler.start()
    await asyncio.sleep(0.01)
    assert scheduler.is_running is True

    stopping = asyncio.create_task(scheduler.stop(wait=True))
    await asyncio.sleep(0.01)
    assert stopping.done() is False
    assert scheduler.is_active is False

    run_pass.release.set()
    await stopping

    assert run_pass.finished == 1
    assert scheduler.last_summary.processed_count == 1


@pytest.mark.asyncio
async def test_describe_reports_state() -> None:
    scheduler = FulfillmentScheduler(CountingPass(), interval_ms=120000)
    assert "stopped" in scheduler.describe()

    scheduler.start()
    await asyncio.sleep(0)
    assert "every 120 seconds" in scheduler.describe()
    assert scheduler.interval_ms == 120000
    await scheduler.stop()


@pytest.mark.asyncio
async def test_cancelled_run_now_caller_leaves_pass_running() -> None:
    run_pass = BlockingPass()
    scheduler = FulfillmentScheduler(run_pass)

    caller = asyncio.create_task(scheduler.run_now())
    await asyncio.sleep(0.01)
    assert scheduler.is_running is True

    caller.cancel()
    with pytest.raises(asyncio.CancelledError):
        await caller
    assert scheduler.is_running is True

    run_pass.release.set()
    await asyncio.sleep(0.01)

    assert run_pass.finished == 1
    assert scheduler.is_running is False
    assert scheduler.last_summary.processed_count == 1


@pytest.mark.asyncio
async def test_cancelled_stop_leaves_pass_running() -> None:
    """A shutdown timeout around stop() must not cut the pass short."""
    run_pass = BlockingPass()
    scheduler = FulfillmentScheduler(run_pass, interval_ms=60000)

    scheduler.start()
    await asyncio.sleep(0.01)
    stopping = asyncio.create_task(scheduler.stop(wait=True))
    await asyncio.sleep(0.01)

    stopping.cancel()
    with pytest.raises(asyncio.CancelledError):
        await stopping
    assert scheduler.is_active is False
    assert scheduler.is_running is True

    run_pass.release.set()
    await asyncio.sleep(0.01)

    assert run_pass.finished == 1
    assert scheduler.is_running is False
    assert scheduler.last_summary.processed_count == 1


@pytest.mark.asyncio
async def test_describe_reports_last_pass_and_skipped_ticks() -> None:
    run_pass = BlockingPass()
    scheduler = FulfillmentScheduler(run_pass, interval_ms=60000)

    scheduler.start()
    await asyncio.sleep(0.01)
    assert scheduler.tick() is False
    run_pass.release.set()
    await asyncio.sleep(0.01)

    description = scheduler.describe()
    assert "Last pass: 1 processed, 0 cancelled (0 failed), 0 skipped." in description
    assert "Skipped ticks: 1." in description
    await scheduler.stop()
