"""
CancelToken tests.
"""

import asyncio

import pytest

from core.cancellation import CancelToken
from core.errors import GenerationCancelled


class TestCancelToken:
    @pytest.mark.asyncio
    async def test_sleep_completes_without_cancel(self):
        token = CancelToken()
        await token.sleep(0.01)
        assert not token.cancelled

    @pytest.mark.asyncio
    async def test_cancel_wakes_sleeper_early(self):
        token = CancelToken()
        loop = asyncio.get_running_loop()
        loop.call_later(0.02, token.cancel)

        started = loop.time()
        with pytest.raises(GenerationCancelled):
            await token.sleep(30)
        assert loop.time() - started < 5

    @pytest.mark.asyncio
    async def test_sleep_on_cancelled_token_raises_immediately(self):
        token = CancelToken()
        token.cancel()
        with pytest.raises(GenerationCancelled):
            await token.sleep(30)

    @pytest.mark.asyncio
    async def test_guard_returns_result(self):
        token = CancelToken()

        async def work():
            await asyncio.sleep(0)
            return 42

        assert await token.guard(work()) == 42

    @pytest.mark.asyncio
    async def test_guard_propagates_errors(self):
        token = CancelToken()

        async def boom():
            raise ValueError("bad")

        with pytest.raises(ValueError, match="bad"):
            await token.guard(boom())

    @pytest.mark.asyncio
    async def test_guard_cancels_inner_call(self):
        token = CancelToken()
        inner_cancelled = asyncio.Event()

        async def slow_call():
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                inner_cancelled.set()
                raise

        asyncio.get_running_loop().call_later(0.02, token.cancel)

        with pytest.raises(GenerationCancelled):
            await token.guard(slow_call())
        assert inner_cancelled.is_set()

    def test_cancel_is_idempotent_outside_loop(self):
        token = CancelToken()
        assert not token.cancelled
        token.cancel()
        token.cancel()
        assert token.cancelled
        with pytest.raises(GenerationCancelled):
            token.raise_if_cancelled()
