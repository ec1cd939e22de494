"""Deadline guard for provider calls.

The guard stops the caller from waiting; it does not cancel the provider call
on timeout. The SDKs give no guarantee that cancelling a coroutine aborts the
HTTP request, so a late call is left to finish and its result is dropped.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from modelcompare.shared.exceptions import ProviderTimeoutError
from modelcompare.shared.logging import get_logger

logger = get_logger(__name__)

_T = TypeVar("_T")


def _discard_result(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("abandoned_call_failed", task=task.get_name(), error=str(exc))


async def with_timeout(awaitable: Awaitable[_T], seconds: float, label: str) -> _T:
    """Await ``awaitable`` for at most ``seconds``.

    Raises:
        ProviderTimeoutError: If the awaitable has not settled in time.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({task}, timeout=seconds)
    except asyncio.CancelledError:
        # Caller went away (client disconnect): nobody will read the result.
        task.cancel()
        raise

    if task in done:
        return task.result()

    task.add_done_callback(_discard_result)
    logger.warning("provider_call_timed_out", provider=label, timeout_seconds=seconds)
    raise ProviderTimeoutError(label, seconds)
