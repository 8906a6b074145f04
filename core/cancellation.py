"""
Cooperative cancellation for batch passes.

A CancelToken is created per batch pass and handed down every call boundary.
Waiting on the token is how every suspension point (backoff sleeps, poll
sleeps, network calls) notices a stop request.

Usage:
    token = CancelToken()

    await token.sleep(20)                   # raises GenerationCancelled on stop
    op = await token.guard(api_call(...))   # cancels the call on stop

    token.cancel()
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from core.errors import GenerationCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelToken:
    """Single-shot cancellation signal backed by an asyncio.Event."""

    def __init__(self):
        self._event: Optional[asyncio.Event] = None

    @property
    def event(self) -> asyncio.Event:
        # Created lazily so the token can be built outside a running loop
        if self._event is None:
            self._event = asyncio.Event()
        return self._event

    @property
    def cancelled(self) -> bool:
        return self._event is not None and self._event.is_set()

    def cancel(self):
        """Request cancellation. Idempotent."""
        if not self.cancelled:
            logger.info("Cancellation requested")
        self.event.set()

    def raise_if_cancelled(self):
        if self.cancelled:
            raise GenerationCancelled()

    async def sleep(self, seconds: float):
        """
        Sleep for ``seconds`` unless cancelled first.

        The pending timer is torn down by wait_for when the event fires, so a
        cancelled wait leaves nothing scheduled on the loop.
        """
        self.raise_if_cancelled()
        try:
            await asyncio.wait_for(self.event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise GenerationCancelled()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable``, cancelling it if the token fires first."""
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise GenerationCancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self.event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug(f"Cancelled call finished with {type(e).__name__}: {e}")
        raise GenerationCancelled()


async def cancellable_sleep(seconds: float, token: Optional[CancelToken] = None):
    """Sleep helper used by the generation client; plain sleep without a token."""
    if token is None:
        await asyncio.sleep(seconds)
        return
    await token.sleep(seconds)
