"""Batch scheduling with bounded concurrency."""

import asyncio
import logging
from typing import Awaitable, Callable, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def partition(items: Sequence[T], batch_size: int) -> list[list[T]]:
    """Split ``items`` into consecutive batches of at most ``batch_size``."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    return [list(items[i:i + batch_size]) for i in range(0, len(items), batch_size)]


async def run_in_batches(
    items: Sequence[T],
    step: Callable[[T], Awaitable[None]],
    batch_size: int = 3,
    label: str = "batch",
) -> int:
    """Apply ``step`` to every item, one batch at a time.

    Members of a batch run concurrently; the next batch starts only once
    every member of the current one has settled. An exception escaping a
    step is logged and never affects its siblings or later batches.

    Returns:
        Number of batches executed.
    """
    batches = partition(items, batch_size)
    offset = 0
    for number, batch in enumerate(batches, 1):
        logger.debug(f"{label}: starting batch {number}/{len(batches)} ({len(batch)} items)")
        results = await asyncio.gather(*(step(item) for item in batch), return_exceptions=True)
        for position, result in enumerate(results, offset):
            if isinstance(result, Exception):
                logger.error(f"{label}: unhandled error for item {position}: {result}")
        offset += len(batch)
    return len(batches)
