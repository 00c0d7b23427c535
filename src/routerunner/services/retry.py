"""Retry with exponential backoff for outbound provider calls."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _default_is_retryable(error: BaseException) -> bool:
    return bool(getattr(error, "retryable", False))


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry an awaitable up to ``max_retries`` extra times.

    The wait before retry ``n`` (1-based) is ``base_delay * multiplier ** (n - 1)``.
    Each attempt is bounded by ``timeout`` seconds when one is given; a timeout
    counts as a retryable failure.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0 or self.multiplier < 1:
            raise ValueError("base_delay must be >= 0 and multiplier >= 1")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (self.multiplier ** (attempt - 1))

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        is_retryable: Callable[[BaseException], bool] = _default_is_retryable,
        description: str = "request",
    ) -> T:
        attempt = 0
        while True:
            try:
                if self.timeout is None:
                    return await operation()
                return await asyncio.wait_for(operation(), timeout=self.timeout)
            except asyncio.TimeoutError:
                attempt += 1
                if attempt > self.max_retries:
                    logger.warning(f"{description} timed out after {attempt} attempts")
                    raise
                wait_time = self.delay_for(attempt)
                logger.debug(f"{description} timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                await asyncio.sleep(wait_time)
            except Exception as error:
                attempt += 1
                if not is_retryable(error) or attempt > self.max_retries:
                    raise
                wait_time = self.delay_for(attempt)
                logger.debug(
                    f"{description} failed, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {error}"
                )
                await asyncio.sleep(wait_time)
