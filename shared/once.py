"""
Single-initialization cache cells.

An ``AsyncOnce`` holds one value produced by an async factory. The first
successful call stores it; every later call returns it without awaiting the
factory. A failing factory stores nothing, so the next call tries again.
"""

import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class AsyncOnce(Generic[T]):
    """Memoize the first successful result of an async factory."""

    def __init__(self, factory: Callable[[], Awaitable[T]]):
        self._factory = factory
        self._value: Optional[T] = None
        self._ready = False
        self._lock = asyncio.Lock()

    @property
    def ready(self) -> bool:
        return self._ready

    async def get(self) -> T:
        if self._ready:
            return self._value  # type: ignore[return-value]

        async with self._lock:
            if not self._ready:
                self._value = await self._factory()
                self._ready = True
        return self._value  # type: ignore[return-value]
