"""
Timeout and bounded-retry helpers for store calls.

Usage:
    policy = RetryPolicy.from_settings(get_settings())
    records = await with_retry(
        lambda: with_timeout(store.find_items(predicate), 5.0),
        policy,
    )
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .errors import FetchTimeoutError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MISSING_FIELD_PATTERN = re.compile(r"missing required|required field|is required", re.IGNORECASE)


def is_retryable(error: BaseException) -> bool:
    """
    Decide whether a failed attempt is worth repeating.

    Bad input stays bad: validation errors and anything reporting a missing
    required field fail immediately. Everything else, timeouts included,
    is retried up to the attempt limit.
    """
    if isinstance(error, ValidationError):
        return False
    if MISSING_FIELD_PATTERN.search(str(error)):
        return False
    return True


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    backoff_factor: float = 2.0
    should_retry: Callable[[BaseException], bool] = field(default=is_retryable, compare=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    @classmethod
    def from_settings(cls, settings: Any) -> "RetryPolicy":
        return cls(
            max_attempts=settings.catalog_retry_attempts,
            base_delay=settings.catalog_retry_base_delay_seconds,
            max_delay=settings.catalog_retry_max_delay_seconds,
            backoff_factor=settings.catalog_retry_backoff_factor,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        if self.base_delay <= 0:
            return 0.0
        return min(self.base_delay * (self.backoff_factor ** (attempt - 1)), self.max_delay)


async def with_timeout(
    awaitable: Awaitable[T],
    timeout_seconds: float,
    context: Optional[dict[str, Any]] = None,
) -> T:
    """Await with a deadline, raising FetchTimeoutError when it passes."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        raise FetchTimeoutError(timeout_seconds, context) from None


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    label: str = "operation",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run operation up to policy.max_attempts times.

    The last error is re-raised unchanged when attempts run out or when
    policy.should_retry rejects it.
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt >= policy.max_attempts or not policy.should_retry(e):
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                "%s failed on attempt %s/%s (%s: %s). Retrying in %.2fs...",
                label,
                attempt,
                policy.max_attempts,
                type(e).__name__,
                e,
                delay,
            )
            if delay > 0:
                await sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError("with_retry exited without a result")
