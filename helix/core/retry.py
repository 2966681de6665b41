"""Bounded retry with exponential backoff for transient I/O failures."""

import asyncio
from typing import Awaitable, Callable, Tuple, Type, TypeVar

import structlog

from helix.core.metrics import record_retry

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _is_retryable(exc: BaseException) -> bool:
    # Exceptions opt out of retries by carrying retryable=False
    return getattr(exc, "retryable", True)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    name: str,
    retry_on: Tuple[Type[BaseException], ...],
    max_attempts: int = 3,
    base_delay: float = 0.1,
) -> T:
    """
    Run an async operation, retrying transient failures.

    Uses exponential backoff: base_delay, 2*base_delay, 4*base_delay, ...

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        name: Operation name used for logs and metrics
        retry_on: Exception types considered transient
        max_attempts: Total number of attempts (at least 1)
        base_delay: Delay before the second attempt, in seconds

    Returns:
        The operation's result

    Raises:
        The last exception raised by the operation once attempts are
        exhausted, or immediately when the exception is not transient.
    """
    attempts = max(1, max_attempts)

    for attempt in range(attempts - 1):
        try:
            return await operation()
        except retry_on as exc:
            if not _is_retryable(exc):
                raise

            logger.warning(
                "operation_retrying",
                operation=name,
                attempt=attempt + 1,
                max_attempts=attempts,
                error=str(exc),
            )
            record_retry(name)
            await asyncio.sleep(2**attempt * base_delay)

    return await operation()
