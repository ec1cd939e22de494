"""Unit tests for the provider call deadline guard."""

import asyncio

import pytest

from modelcompare.shared.exceptions import ProviderTimeoutError
from modelcompare.shared.timeout import with_timeout


class TestWithTimeout:
    """Test with_timeout semantics."""

    @pytest.mark.asyncio
    async def test_returns_result_in_time(self):
        async def fast():
            return "done"

        assert await with_timeout(fast(), 1.0, "chatgpt") == "done"

    @pytest.mark.asyncio
    async def test_propagates_inner_error(self):
        async def broken():
            raise ValueError("bad payload")

        with pytest.raises(ValueError, match="bad payload"):
            await with_timeout(broken(), 1.0, "chatgpt")

    @pytest.mark.asyncio
    async def test_raises_timeout_with_label(self):
        with pytest.raises(ProviderTimeoutError) as exc_info:
            await with_timeout(asyncio.sleep(5), 0.05, "gemini")

        assert exc_info.value.provider == "gemini"
        assert exc_info.value.message == "Timeout: gemini did not respond within 50ms"

    @pytest.mark.asyncio
    async def test_late_call_is_abandoned_not_cancelled(self):
        finished = asyncio.Event()

        async def slow():
            await asyncio.sleep(0.1)
            finished.set()
            return "late"

        with pytest.raises(ProviderTimeoutError):
            await with_timeout(slow(), 0.01, "claude")

        await asyncio.wait_for(finished.wait(), timeout=1.0)
        assert finished.is_set()

    @pytest.mark.asyncio
    async def test_late_failure_is_swallowed(self):
        settled = asyncio.Event()

        async def slow_failure():
            await asyncio.sleep(0.05)
            settled.set()
            raise RuntimeError("too late to matter")

        with pytest.raises(ProviderTimeoutError):
            await with_timeout(slow_failure(), 0.01, "claude")

        await asyncio.wait_for(settled.wait(), timeout=1.0)
        # Let the done-callback run
        await asyncio.sleep(0.01)

    @pytest.mark.asyncio
    async def test_caller_cancellation_cancels_call(self):
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def hanging():
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        outer = asyncio.create_task(with_timeout(hanging(), 5.0, "chatgpt"))
        await started.wait()
        outer.cancel()

        with pytest.raises(asyncio.CancelledError):
            await outer
        await asyncio.wait_for(cancelled.wait(), timeout=1.0)
