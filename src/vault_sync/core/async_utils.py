"""Bridges from asyncio to the blocking GitHub, git and filesystem calls."""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

T = TypeVar("T")


async def run_sync(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call *func* in the default thread pool and await its result.

    Example::

        sha = await run_sync(client.create_blob, "# Note\\n")
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def gather_all(aws: Iterable[Awaitable[T]]) -> list[T]:
    """Await *aws* concurrently and return their results in input order.

    The first exception propagates; failures a caller wants to tolerate
    must be caught inside each awaitable.
    """
    pending = list(aws)
    if not pending:
        return []
    return list(await asyncio.gather(*pending))
