"""Batching and best-effort fan-out helpers."""

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class ItemOutcome(Generic[T]):
    """Result of one item in a best-effort batch operation."""

    item: Any
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchOutcome(Generic[T]):
    """Per-item outcomes of a best-effort batch operation."""

    outcomes: list[ItemOutcome[T]] = field(default_factory=list)

    @property
    def succeeded(self) -> list[ItemOutcome[T]]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> list[ItemOutcome[T]]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    def extend(self, other: "BatchOutcome[T]") -> None:
        self.outcomes.extend(other.outcomes)


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split items into consecutive chunks of at most size elements."""
    if size < 1:
        raise ValueError("Batch size must be a positive integer")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


async def resolve_by_batch(
    items: Sequence[T],
    batch_size: int,
    process: Callable[[list[T]], Awaitable[None]],
    delay_seconds: float = 0,
) -> None:
    """
    Run process over items one batch at a time.

    Batches run sequentially with an optional pause between them so that at
    most batch_size items are in flight against the downstream store.

    Args:
        items: Items to process
        batch_size: Maximum items per batch
        process: Coroutine function receiving each batch
        delay_seconds: Pause between consecutive batches
    """
    batches = chunk(items, batch_size)
    for index, batch in enumerate(batches):
        await process(batch)
        if delay_seconds and index < len(batches) - 1:
            await asyncio.sleep(delay_seconds)


async def settle_all(
    items: Iterable[T],
    func: Callable[[T], Awaitable[R]],
) -> BatchOutcome[R]:
    """Run func concurrently for every item, capturing failures instead of raising."""
    items = list(items)
    results = await asyncio.gather(*(func(item) for item in items), return_exceptions=True)

    outcome: BatchOutcome[R] = BatchOutcome()
    for item, result in zip(items, results, strict=True):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            outcome.outcomes.append(ItemOutcome(item=item, error=result))
        else:
            outcome.outcomes.append(ItemOutcome(item=item, value=result))
    return outcome


async def settle_each(
    items: Iterable[T],
    func: Callable[[T], Awaitable[R]],
) -> BatchOutcome[R]:
    """Sequential variant of settle_all for work sharing one database session."""
    outcome: BatchOutcome[R] = BatchOutcome()
    for item in items:
        try:
            value = await func(item)
        except Exception as e:
            outcome.outcomes.append(ItemOutcome(item=item, error=e))
        else:
            outcome.outcomes.append(ItemOutcome(item=item, value=value))
    return outcome
