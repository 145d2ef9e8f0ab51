"""Fixed-delay retry for one task's scrape attempt."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FailedAttempt:
    """Report of one failed attempt.

    Attributes:
        attempt_number: 1-based number of the attempt that failed.
        retries_left: Attempts still to come; 0 on the final failure.
        error: The exception the attempt raised.
    """

    attempt_number: int
    retries_left: int
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


async def run_with_retry(
    attempt: Callable[[], Awaitable[T]],
    retry_attempts: int,
    retry_delay: float,
    on_failed_attempt: Callable[[FailedAttempt], None] | None = None,
) -> T:
    """Run ``attempt`` until it succeeds or the attempt budget is spent.

    Every exception counts as a failed attempt. The delay between attempts
    is fixed.

    Args:
        attempt: Zero-argument coroutine function making one attempt.
        retry_attempts: Total attempts, clamped to at least 1.
        retry_delay: Seconds to sleep after a failed attempt that will be
            retried.
        on_failed_attempt: Called with a FailedAttempt for every failure,
            before the delay.

    Returns:
        The result of the first successful attempt.

    Raises:
        Exception: Whatever the final attempt raised.
    """
    total_attempts = max(1, retry_attempts)

    for attempt_number in range(1, total_attempts + 1):
        try:
            return await attempt()
        except Exception as e:
            retries_left = total_attempts - attempt_number
            if on_failed_attempt is not None:
                on_failed_attempt(
                    FailedAttempt(
                        attempt_number=attempt_number,
                        retries_left=retries_left,
                        error=e,
                    )
                )
            if retries_left == 0:
                raise
            await asyncio.sleep(retry_delay)

    # The loop either returns or re-raises on its last iteration
    raise AssertionError("unreachable")
