"""Bounded-concurrency async mapping."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

T = TypeVar("T")


async def for_each_async(
    items: Iterable[T],
    callback: Callable[[T], Awaitable[None]],
    *,
    concurrency: int = 10,
) -> None:
    """Await *callback* for every item, running at most *concurrency* at once.

    Workers pull from a shared iterator. After the first failure no new item
    is started; items already in flight are allowed to finish, then the first
    exception is re-raised.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    iterator = iter(items)
    errors: list[BaseException] = []

    async def _worker() -> None:
        for item in iterator:
            if errors:
                return
            try:
                await callback(item)
            except Exception as exc:
                errors.append(exc)
                return

    await asyncio.gather(*(_worker() for _ in range(concurrency)))
    if errors:
        raise errors[0]
