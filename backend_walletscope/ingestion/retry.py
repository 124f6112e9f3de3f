"""
Bounded exponential-backoff retry for single remote calls.

Delay after failed attempt i (0-indexed) is min(base * 2**i, cap); the first
attempt runs immediately. After the last attempt the error is raised as
RemoteFailure chained to the underlying exception.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import httpx

from backend_walletscope.config.settings import BACKOFF_BASE_SEC, BACKOFF_MAX_SEC, MAX_ATTEMPTS
from backend_walletscope.core.exceptions import RemoteFailure, TransientRemoteError
from backend_walletscope.walletscope_logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (TransientRemoteError, httpx.HTTPError)


class RetryPolicy:
    """Stateless retry wrapper; one instance may be shared by concurrent calls."""

    def __init__(
        self,
        max_attempts: int = MAX_ATTEMPTS,
        *,
        base_delay_sec: float = BACKOFF_BASE_SEC,
        max_delay_sec: float = BACKOFF_MAX_SEC,
        retry_on: tuple[type[BaseException], ...] = RETRYABLE_ERRORS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.base_delay_sec = base_delay_sec
        self.max_delay_sec = max_delay_sec
        self._retry_on = retry_on
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt `attempt` (0-indexed)."""
        return min(self.base_delay_sec * (2 ** attempt), self.max_delay_sec)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        description: str = "remote_call",
    ) -> T:
        for attempt in range(self.max_attempts):
            try:
                return await operation()
            except self._retry_on as e:
                if attempt + 1 >= self.max_attempts:
                    logger.error(
                        "remote_call_give_up",
                        call=description,
                        attempts=self.max_attempts,
                        error=str(e),
                    )
                    raise RemoteFailure(
                        f"{description} failed after {self.max_attempts} attempts: {e}",
                        attempts=self.max_attempts,
                        description=description,
                    ) from e
                delay = self.backoff_delay(attempt)
                logger.warning(
                    "remote_call_retry",
                    call=description,
                    attempt=attempt + 1,
                    max_attempts=self.max_attempts,
                    delay_ms=int(delay * 1000),
                    error=str(e),
                )
                await self._sleep(delay)
        raise AssertionError("unreachable")
