"""Unit tests for CancellationSignal."""

from __future__ import annotations

import asyncio

import pytest

from nodeflow.core.cancellation import CancellationSignal
from nodeflow.errors.exceptions import NodeCancelledError


class TestCancellationSignal:
    """Tests for CancellationSignal."""

    def test_initial_state(self) -> None:
        signal = CancellationSignal()

        assert signal.is_cancelled is False
        signal.raise_if_cancelled()

    def test_cancel_keeps_first_reason(self) -> None:
        signal = CancellationSignal()
        signal.cancel("first")
        signal.cancel("second")

        assert signal.is_cancelled
        assert signal.reason == "first"

    def test_raise_if_cancelled(self) -> None:
        signal = CancellationSignal()
        signal.cancel()

        with pytest.raises(NodeCancelledError, match="Cancelled"):
            signal.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_sleep_completes(self) -> None:
        signal = CancellationSignal()

        await signal.sleep(0.01)

        assert not signal.is_cancelled

    @pytest.mark.asyncio
    async def test_sleep_interrupted(self) -> None:
        """Cancelling during a long sleep raises promptly."""
        signal = CancellationSignal()

        async def cancel_soon() -> None:
            await asyncio.sleep(0.01)
            signal.cancel()

        asyncio.create_task(cancel_soon())
        with pytest.raises(NodeCancelledError):
            await asyncio.wait_for(signal.sleep(10), timeout=1)

    @pytest.mark.asyncio
    async def test_sleep_after_cancel_raises(self) -> None:
        signal = CancellationSignal()
        signal.cancel()

        with pytest.raises(NodeCancelledError):
            await signal.sleep(0)

    @pytest.mark.asyncio
    async def test_run_returns_result(self) -> None:
        signal = CancellationSignal()

        async def work() -> int:
            return 42

        assert await signal.run(work()) == 42

    @pytest.mark.asyncio
    async def test_run_propagates_exception(self) -> None:
        signal = CancellationSignal()

        async def work() -> None:
            raise ValueError("broken")

        with pytest.raises(ValueError, match="broken"):
            await signal.run(work())

    @pytest.mark.asyncio
    async def test_run_cancels_inner_task(self) -> None:
        """The abandoned awaitable is cancelled and unwound."""
        signal = CancellationSignal()
        unwound = asyncio.Event()

        async def work() -> None:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                unwound.set()
                raise

        async def cancel_soon() -> None:
            await asyncio.sleep(0.01)
            signal.cancel("stop")

        asyncio.create_task(cancel_soon())
        with pytest.raises(NodeCancelledError, match="stop"):
            await signal.run(work())

        assert unwound.is_set()
