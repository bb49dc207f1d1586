"""Unit tests for acmeflow.core.concurrency: all-or-nothing fan-out."""

from __future__ import annotations

import asyncio

import pytest

from acmeflow.core.concurrency import gather_all
from acmeflow.core.errors import PollTimeoutError


class TestGatherAll:
    @pytest.mark.asyncio
    async def test_results_in_input_order(self):
        async def value(v, delay):
            await asyncio.sleep(delay)
            return v

        results = await gather_all([value("a", 0.02), value("b", 0.0), value("c", 0.01)])
        assert results == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_empty(self):
        assert await gather_all([]) == []

    @pytest.mark.asyncio
    async def test_accepts_generator(self):
        async def double(v):
            return v * 2

        assert await gather_all(double(i) for i in range(3)) == [0, 2, 4]

    @pytest.mark.asyncio
    async def test_runs_concurrently(self):
        loop = asyncio.get_running_loop()
        started = loop.time()
        await gather_all(asyncio.sleep(0.1) for _ in range(5))
        assert loop.time() - started < 0.4

    @pytest.mark.asyncio
    async def test_first_error_is_raised_unwrapped(self):
        async def fail():
            msg = "record did not propagate"
            raise PollTimeoutError(msg, timeout=1.0)

        async def ok():
            return 1

        with pytest.raises(PollTimeoutError, match="record did not propagate"):
            await gather_all([ok(), fail()])

    @pytest.mark.asyncio
    async def test_failure_cancels_siblings(self):
        finished = []

        async def slow():
            await asyncio.sleep(5)
            finished.append("slow")

        async def fail():
            await asyncio.sleep(0)
            msg = "boom"
            raise ValueError(msg)

        with pytest.raises(ValueError, match="boom"):
            await gather_all([slow(), fail()])
        assert finished == []

    @pytest.mark.asyncio
    async def test_nested_groups_unwrapped(self):
        async def inner():
            await gather_all([_raise_key_error()])

        with pytest.raises(KeyError):
            await gather_all([inner()])


async def _raise_key_error():
    raise KeyError("missing")
