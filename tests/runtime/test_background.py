"""Tests for the fire-and-forget background runner."""

import asyncio

import pytest

from oppbot.runtime.background import BackgroundRunner


class TestBackgroundRunner:
    @pytest.mark.asyncio
    async def test_spawn_does_not_block(self):
        runner = BackgroundRunner()
        gate = asyncio.Event()
        done = []

        async def job():
            await gate.wait()
            done.append(True)

        runner.spawn(job(), name="job")
        assert runner.pending == 1
        assert done == []

        gate.set()
        assert await runner.drain() == 0
        assert done == [True]
        assert runner.pending == 0

    @pytest.mark.asyncio
    async def test_failed_task_is_released(self):
        runner = BackgroundRunner()

        async def job():
            raise RuntimeError("boom")

        task = runner.spawn(job())
        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)
        assert runner.pending == 0

    @pytest.mark.asyncio
    async def test_drain_timeout_reports_stragglers(self):
        runner = BackgroundRunner()
        gate = asyncio.Event()
        task = runner.spawn(gate.wait())

        assert await runner.drain(timeout=0.01) == 1
        assert not task.done()

        gate.set()
        await runner.drain()

    @pytest.mark.asyncio
    async def test_drain_with_nothing_pending(self):
        assert await BackgroundRunner().drain(timeout=0) == 0
