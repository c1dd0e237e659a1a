"""Caller-owned cancellation token for update runs."""

import asyncio
from typing import Awaitable, Callable, TypeVar
import logging

from fwupdater.exceptions import OperationCancelled

T = TypeVar("T")


def _discard_result(task: asyncio.Future) -> None:
    # Retrieve the abandoned step's exception so asyncio doesn't warn about it
    if not task.cancelled():
        task.exception()


class CancellationToken:
    """Cancellation signal shared between the caller and one update run.

    The caller trips it with ``cancel()``; the run observes it at every
    suspension point through ``run()`` and ``sleep()``.
    """

    def __init__(self):
        self.logger = logging.getLogger("fwupdater.cancellation")
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        if not self._event.is_set():
            self.logger.info("Cancellation requested")
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Update run cancelled")

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await a step unless cancellation arrives first.

        Args:
            awaitable: Device call or delay to wait for

        Returns:
            Result of the awaitable

        Raises:
            OperationCancelled: If the token is tripped before or while the
                step is pending. The pending step is cancelled and its
                eventual result discarded.
        """
        step = asyncio.ensure_future(awaitable)
        if self._event.is_set():
            step.cancel()
            step.add_done_callback(_discard_result)
            raise OperationCancelled("Update run cancelled")

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({step, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            step.cancel()
            waiter.cancel()
            raise

        if self._event.is_set():
            # Cancellation wins even if the step finished in the same tick
            step.cancel()
            step.add_done_callback(_discard_result)
            raise OperationCancelled("Update run cancelled")

        waiter.cancel()
        return step.result()

    async def sleep(
        self,
        delay: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Cancellable delay."""
        await self.run(sleep(delay))
