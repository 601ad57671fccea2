"""Retry helpers for transient network failures.

Updates:
  v0.2.0 - 2026-10-11 - Bundle backoff settings in RetryPolicy and log each retry.
  v0.1.0 - 2026-10-09 - Add async exponential backoff helper for catalogue downloads.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

import httpx

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger("prompt_vault.retry")

_RETRYABLE_HTTP_STATUS_CODES = {408, 429}


def is_retryable_http_status(status_code: int) -> bool:
    """Return ``True`` when *status_code* suggests a transient failure."""
    return status_code in _RETRYABLE_HTTP_STATUS_CODES or 500 <= status_code < 600


def is_retryable_httpx_error(exc: Exception) -> bool:
    """Return ``True`` when *exc* represents a transient httpx error."""
    if isinstance(exc, httpx.HTTPStatusError):
        return is_retryable_http_status(exc.response.status_code)
    return isinstance(exc, (httpx.TimeoutException, httpx.TransportError))


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Backoff parameters for :func:`async_retry`.

    Attributes:
      max_attempts: Total attempts including the first call.
      base_delay_seconds: Delay before the second attempt; doubles afterwards.
      max_delay_seconds: Cap for the exponential delay.
      jitter_fraction: Random jitter added as a fraction of the computed delay.
    """

    max_attempts: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 4.0
    jitter_fraction: float = 0.1

    def delay_for(self, attempt: int) -> float:
        """Return the pause that follows failed attempt number *attempt*."""
        delay = min(self.max_delay_seconds, self.base_delay_seconds * (2 ** (attempt - 1)))
        if self.jitter_fraction <= 0:
            return delay
        return delay + (delay * self.jitter_fraction * random.random())


NO_RETRY = RetryPolicy(max_attempts=1)


T = TypeVar("T")


async def async_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    should_retry: Callable[[Exception], bool],
    policy: RetryPolicy | None = None,
    description: str = "operation",
) -> T:
    """Execute *operation* with exponential-backoff retries.

    Raises:
      Exception: Re-raises the last exception when retries are exhausted or non-retryable.
    """
    resolved = policy or RetryPolicy()
    attempts = max(1, int(resolved.max_attempts))
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            if attempt >= attempts or not should_retry(exc):
                raise
            logger.info(
                "%s failed on attempt %d/%d (%s); retrying",
                description,
                attempt,
                attempts,
                exc,
            )
            if resolved.base_delay_seconds <= 0:
                continue
            await asyncio.sleep(resolved.delay_for(attempt))
    raise RuntimeError("async_retry exhausted retries")  # pragma: no cover


__all__ = [
    "NO_RETRY",
    "RetryPolicy",
    "async_retry",
    "is_retryable_http_status",
    "is_retryable_httpx_error",
]
