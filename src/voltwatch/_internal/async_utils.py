"""Asyncio utilities."""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine


def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run an async coroutine from synchronous code."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop and loop.is_running():
        import concurrent.futures

        with concurrent.futures.ThreadPoolExecutor() as pool:
            return pool.submit(asyncio.run, coro).result()
    else:
        return asyncio.run(coro)


async def wait_or_shutdown(shutdown_event: asyncio.Event, delay: float) -> bool:
    """Sleep for *delay* seconds or until *shutdown_event* is set.

    Returns ``True`` if shutdown was requested. A shutdown that lands at the
    same moment as the timer still counts as shutdown.
    """
    if shutdown_event.is_set():
        return True
    try:
        await asyncio.wait_for(shutdown_event.wait(), timeout=delay)
    except TimeoutError:
        pass
    return shutdown_event.is_set()
