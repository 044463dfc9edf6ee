"""Exponential backoff with an overall deadline for flaky remote calls.

Intervals start at ``initial_interval`` and grow by ``multiplier`` up to
``max_interval``, each randomised by ``randomization_factor``. Once
``max_elapsed`` seconds have passed since the first attempt the last error
is re-raised. Each attempt is bounded by ``attempt_timeout``.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

from voltwatch.api.errors import NON_RETRYABLE

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    initial_interval: float = 0.5
    multiplier: float = 1.5
    randomization_factor: float = 0.5
    max_interval: float = 60.0
    max_elapsed: float = 60.0
    attempt_timeout: float = 60.0
    clock: Callable[[], float] = field(default=time.monotonic, repr=False, compare=False)
    sleep: Callable[[float], Awaitable[None]] = field(
        default=asyncio.sleep, repr=False, compare=False
    )

    def _randomize(self, interval: float) -> float:
        if self.randomization_factor <= 0:
            return interval
        delta = interval * self.randomization_factor
        return random.uniform(interval - delta, interval + delta)

    async def call(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        description: str = "remote call",
        fatal: tuple[type[BaseException], ...] = NON_RETRYABLE,
    ) -> T:
        """Run *operation* until it succeeds, fails fatally, or the budget runs out.

        Exceptions matching *fatal* propagate from the first attempt that
        raises them. Everything else is retried. ``CancelledError`` always
        propagates.
        """
        start = self.clock()
        interval = self.initial_interval
        attempt = 0

        while True:
            attempt += 1
            try:
                async with asyncio.timeout(self.attempt_timeout):
                    return await operation()
            except fatal:
                raise
            except Exception as exc:
                wait = min(self._randomize(interval), self.max_interval)
                elapsed = self.clock() - start
                if elapsed + wait > self.max_elapsed:
                    logger.warning(
                        "%s failed after %d attempt(s) in %.1fs, giving up: %s",
                        description,
                        attempt,
                        elapsed,
                        exc or type(exc).__name__,
                    )
                    raise
                logger.info(
                    "%s attempt %d failed (%s), retrying in %.1fs",
                    description,
                    attempt,
                    exc or type(exc).__name__,
                    wait,
                )
            await self.sleep(wait)
            interval = min(interval * self.multiplier, self.max_interval)
