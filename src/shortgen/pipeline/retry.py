"""Exponential backoff retry for single asset operations."""

import asyncio
import functools
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    retries: int = 2,
    delay: float = 1.0,
    label: str = "operation",
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run ``operation`` until it succeeds or the retry budget is spent.

    The first attempt is followed by up to ``retries`` more. Between attempts
    the coroutine waits ``delay`` seconds, doubling it each time. The last
    failure propagates unchanged.

    Args:
        operation: Zero-argument coroutine function producing the result.
        retries: Attempts allowed after the first one.
        delay: Wait before the first retry, in seconds.
        label: Name used in log messages.
        sleep: Awaitable sleep function.

    Returns:
        The result of the first successful attempt.
    """
    attempts = retries + 1
    current_delay = delay

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt == attempts:
                raise
            logger.warning(
                f"{label} failed (attempt {attempt}/{attempts}): {e}. "
                f"Retrying in {current_delay:.1f}s..."
            )
            await sleep(current_delay)
            current_delay *= 2

    raise AssertionError("unreachable")


def with_retry(
    retries: int = 2,
    delay: float = 1.0,
    sleep: Sleep = asyncio.sleep,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator form of :func:`retry_async` for coroutine functions."""

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            return await retry_async(
                lambda: func(*args, **kwargs),
                retries=retries,
                delay=delay,
                label=func.__name__,
                sleep=sleep,
            )

        return wrapper

    return decorator
