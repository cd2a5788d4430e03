"""Cooperative cancellation shared by every execution in a run."""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from nodeflow.errors.exceptions import NodeCancelledError

T = TypeVar("T")


class CancellationSignal:
    """One-shot cancellation flag that suspension points can race against.

    Example:
        >>> signal = CancellationSignal()
        >>> await signal.sleep(1.0)         # raises NodeCancelledError on cancel
        >>> body = await signal.run(fetch())  # fetch() is cancelled on cancel
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason = "Cancelled"

    @property
    def is_cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "Cancelled") -> None:
        """Raise the signal. Later calls keep the first reason."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise NodeCancelledError(self._reason)

    async def wait(self) -> None:
        """Block until the signal is raised."""
        await self._event.wait()

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless cancelled first.

        Raises:
            NodeCancelledError: If the signal is raised before the delay ends.
        """
        self.raise_if_cancelled()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise NodeCancelledError(self._reason)

    async def run(self, aw: Awaitable[T]) -> T:
        """Await ``aw``, abandoning it if the signal is raised first.

        The abandoned task is cancelled and allowed to unwind before
        NodeCancelledError is raised.
        """
        self.raise_if_cancelled()
        task = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(self._event.wait())
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
        await asyncio.gather(task, return_exceptions=True)
        raise NodeCancelledError(self._reason)
