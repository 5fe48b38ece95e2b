"""
Exponential backoff retry wrapper for asynchronous remote calls.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")

SleepCallable = Callable[[float], Awaitable[None]]
UnitOfWork = Callable[[], Awaitable[T]]

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0

logger = logging.getLogger(__name__)


def backoff_delay(attempt: int, base_delay: float = DEFAULT_BASE_DELAY) -> float:
    """
    Return the wait that follows failed attempt number ``attempt`` (1-based).
    """
    if attempt < 1:
        raise ValueError(f"attempt numbers start at 1, received {attempt}.")
    return base_delay * (2 ** (attempt - 1))


class RetryExecutor:
    """
    Runs a unit of work and retries it on failure with doubling delays.

    Parameters
    ----------
    max_attempts:
        Default attempt budget for :meth:`execute`.
    base_delay:
        Delay in seconds after the first failed attempt. Each further failure doubles it.
    sleep:
        Awaitable used for the backoff waits. Tests inject a virtual clock here.
    """

    def __init__(
        self,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: SleepCallable | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if base_delay < 0:
            raise ValueError("base_delay must not be negative.")
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._sleep: SleepCallable = sleep or asyncio.sleep

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def execute(
        self,
        unit_of_work: UnitOfWork[T],
        *,
        max_attempts: int | None = None,
        label: str = "remote call",
    ) -> T:
        """
        Await ``unit_of_work`` until it succeeds or the attempt budget is spent.

        The last failure is re-raised unchanged once the final attempt fails.
        """
        budget = max_attempts if max_attempts is not None else self._max_attempts
        if budget < 1:
            raise ValueError("max_attempts must be at least 1.")

        for attempt in range(1, budget + 1):
            try:
                return await unit_of_work()
            except Exception as exc:
                if attempt >= budget:
                    logger.error(
                        "%s failed after %d attempt(s): %s", label, attempt, exc
                    )
                    exc.retry_attempts = attempt
                    raise
                delay = backoff_delay(attempt, self._base_delay)
                logger.warning(
                    "%s failed on attempt %d/%d (%s); retrying in %.1fs",
                    label,
                    attempt,
                    budget,
                    exc,
                    delay,
                )
                await self._sleep(delay)

        raise AssertionError("unreachable")  # pragma: no cover
