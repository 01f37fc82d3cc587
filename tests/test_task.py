"""Tests for worker thread offload."""

import asyncio
import threading
import time

import pytest

from printer_bridge.core.task import run_blocking
from printer_bridge.core.utils import OpenError, TaskFailure


class TestRunBlocking:
    """Tests for run_blocking()."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        result = await run_blocking("Add", lambda a, b: a + b, 2, 3)
        assert result == 5

    @pytest.mark.asyncio
    async def test_runs_on_worker_thread(self):
        caller = threading.get_ident()
        worker = await run_blocking("Ident", threading.get_ident)
        assert worker != caller

    @pytest.mark.asyncio
    async def test_does_not_block_event_loop(self):
        """The loop keeps running while a worker sleeps."""
        ticks = 0

        async def ticker():
            nonlocal ticks
            while True:
                ticks += 1
                await asyncio.sleep(0.01)

        tick_task = asyncio.create_task(ticker())
        await run_blocking("Sleep", time.sleep, 0.2)
        tick_task.cancel()

        assert ticks >= 5

    @pytest.mark.asyncio
    async def test_concurrent_calls_overlap(self):
        start = time.monotonic()
        await asyncio.gather(
            run_blocking("Sleep", time.sleep, 0.2),
            run_blocking("Sleep", time.sleep, 0.2),
            run_blocking("Sleep", time.sleep, 0.2),
        )
        assert time.monotonic() - start < 0.5

    @pytest.mark.asyncio
    async def test_domain_errors_propagate_unchanged(self):
        def fail():
            raise OpenError("Unable to open serial port COM9: not found")

        with pytest.raises(OpenError) as ctx:
            await run_blocking("Print", fail)

        assert str(ctx.value) == "Unable to open serial port COM9: not found"

    @pytest.mark.asyncio
    async def test_unexpected_errors_become_task_failure(self):
        def crash():
            raise RuntimeError("worker exploded")

        with pytest.raises(TaskFailure) as ctx:
            await run_blocking("Print", crash)

        assert str(ctx.value) == "Print task failed: worker exploded"
        assert isinstance(ctx.value.__cause__, RuntimeError)
