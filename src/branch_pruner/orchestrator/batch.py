"""Batch processing with per-item fallback."""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class BatchResult(Generic[T, R]):
    """Results of a batched run plus the items that failed on their own."""

    processed: list[R] = field(default_factory=list)
    errors: list[tuple[T, Exception]] = field(default_factory=list)


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split items into lists of at most `size` elements."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


async def process_batches(
    items: Sequence[T],
    processor: Callable[[list[T]], Awaitable[list[R]]],
    batch_size: int = 50,
    on_batch: Callable[[int, int, int], None] | None = None,
) -> BatchResult[T, R]:
    """
    Run `processor` over items in batches.

    When a whole batch fails, each of its items is retried alone so one bad
    item only costs itself.

    Args:
        items: Items to process
        processor: Coroutine taking a batch and returning its results
        batch_size: Items per batch
        on_batch: Called with (batch number, total batches, batch length)

    Returns:
        BatchResult with results and per-item errors
    """
    result: BatchResult[T, R] = BatchResult()
    batches = chunk(items, batch_size)

    for number, batch in enumerate(batches, start=1):
        if on_batch:
            on_batch(number, len(batches), len(batch))

        try:
            result.processed.extend(await processor(batch))
        except Exception as e:
            logger.debug("Batch %d/%d failed (%s), retrying items one by one", number, len(batches), e)
            for item in batch:
                try:
                    result.processed.extend(await processor([item]))
                except Exception as item_error:
                    result.errors.append((item, item_error))

    return result
