"""Tests for the debounced autosave scheduler."""
import asyncio

import pytest

from helf.client.autosave import AutosaveScheduler


class Recorder:
    def __init__(self, duration: float = 0.0, fail: bool = False):
        self.duration = duration
        self.fail = fail
        self.started = 0
        self.finished = 0
        self.running = 0
        self.max_running = 0

    async def __call__(self) -> None:
        self.started += 1
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            await asyncio.sleep(self.duration)
            if self.fail:
                raise RuntimeError("disk full")
            self.finished += 1
        finally:
            self.running -= 1


@pytest.mark.asyncio
async def test_burst_of_edits_flushes_once():
    flush = Recorder()
    autosave = AutosaveScheduler(flush, delay=0.05)

    for _ in range(5):
        autosave.schedule()
        await asyncio.sleep(0.01)
    assert autosave.pending
    assert flush.started == 0

    await asyncio.sleep(0.1)
    await autosave.wait_idle()

    assert flush.finished == 1
    assert not autosave.pending


@pytest.mark.asyncio
async def test_flush_now_skips_timer():
    flush = Recorder()
    autosave = AutosaveScheduler(flush, delay=0.05)

    autosave.schedule()
    await autosave.flush_now()

    assert flush.finished == 1
    assert not autosave.pending
    await asyncio.sleep(0.1)
    assert flush.finished == 1


@pytest.mark.asyncio
async def test_cancel_drops_pending_flush():
    flush = Recorder()
    autosave = AutosaveScheduler(flush, delay=0.02)

    autosave.schedule()
    autosave.cancel()
    await asyncio.sleep(0.05)

    assert flush.started == 0


@pytest.mark.asyncio
async def test_reschedule_does_not_interrupt_running_flush():
    flush = Recorder(duration=0.1)
    autosave = AutosaveScheduler(flush, delay=0.01)

    autosave.schedule()
    await asyncio.sleep(0.04)
    assert flush.started == 1

    autosave.schedule()
    await asyncio.sleep(0.3)
    await autosave.wait_idle()

    assert flush.finished == 2
    assert flush.max_running == 1


@pytest.mark.asyncio
async def test_background_failure_is_logged(caplog):
    flush = Recorder(fail=True)
    autosave = AutosaveScheduler(flush, delay=0.01)

    autosave.schedule()
    await asyncio.sleep(0.05)
    await autosave.wait_idle()

    assert flush.started == 1
    assert "Autosave flush failed" in caplog.text


@pytest.mark.asyncio
async def test_flush_now_propagates_errors():
    autosave = AutosaveScheduler(Recorder(fail=True), delay=1)

    with pytest.raises(RuntimeError, match="disk full"):
        await autosave.flush_now()
