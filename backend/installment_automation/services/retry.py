"""Bounded exponential backoff for transient infrastructure errors."""

from __future__ import annotations

import asyncio
import errno
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import aiosmtplib

from installment_automation.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]

TRANSIENT_PATTERNS = ("econnreset", "etimedout", "connection", "timeout", "econnrefused")

TRANSIENT_ERRNOS = frozenset({errno.ECONNRESET, errno.ETIMEDOUT, errno.ECONNREFUSED})

TRANSIENT_EXCEPTION_TYPES: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
    aiosmtplib.SMTPConnectError,
    aiosmtplib.SMTPServerDisconnected,
    aiosmtplib.SMTPTimeoutError,
)


def is_transient_message(message: str | None) -> bool:
    text = (message or "").lower()
    return any(pattern in text for pattern in TRANSIENT_PATTERNS)


def is_transient_error(exc: BaseException) -> bool:
    """Connection resets, timeouts and refused connections are transient.

    Everything else (bad input, auth failures, SQL errors) is permanent.
    """
    if isinstance(exc, TRANSIENT_EXCEPTION_TYPES):
        return True
    if isinstance(exc, OSError) and exc.errno in TRANSIENT_ERRNOS:
        return True
    return is_transient_message(str(exc))


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    initial_delay: float = 1.0

    @classmethod
    def from_settings(cls) -> RetryPolicy:
        return cls(
            max_retries=settings.DELIVERY_MAX_RETRIES,
            initial_delay=settings.DELIVERY_INITIAL_DELAY_SECONDS,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt + 1``: 1s, 2s, 4s by default."""
        return float(self.initial_delay * (2**attempt))


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    sleep: Sleeper = asyncio.sleep,
) -> T:
    """Await ``fn()``, retrying transient failures with exponential backoff.

    Permanent errors and the last transient error are re-raised.
    """
    policy = policy or RetryPolicy.from_settings()
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as exc:
            if attempt >= policy.max_retries or not is_transient_error(exc):
                raise
            delay = policy.delay_for(attempt)
            attempt += 1
            logger.info(
                "Transient error (%s), retry %d/%d after %.1fs",
                exc,
                attempt,
                policy.max_retries,
                delay,
            )
            await sleep(delay)
