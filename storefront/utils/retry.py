"""Retry helpers without external dependencies."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(slots=True)
class RetryResult:
    success: bool
    attempts: int
    error: BaseException | None = None
    skipped: bool = False


def linear_backoff(step: float = 2.0) -> Callable[[int], float]:
    """Delay of ``attempt * step`` seconds after the given failed attempt."""

    def delay(attempt: int) -> float:
        return attempt * step

    return delay


async def retry_async(
    func: Callable[[], Awaitable[Any]],
    *,
    attempts: int = 3,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    backoff: Callable[[int], float] = linear_backoff(),
    sleep: Sleep = asyncio.sleep,
) -> RetryResult:
    last_error: BaseException | None = None
    for attempt in range(1, attempts + 1):
        try:
            await func()
        except retry_on as exc:
            last_error = exc
            logger.info("Attempt %s/%s failed: %s", attempt, attempts, exc)
            if attempt < attempts:
                await sleep(backoff(attempt))
            continue
        return RetryResult(success=True, attempts=attempt)
    return RetryResult(success=False, attempts=attempts, error=last_error)
