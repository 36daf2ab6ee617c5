"""Keyed load cache with in-flight request de-duplication"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)


class LoadCache:
    """
    Caches the result of an async loader per key.

    At most one load per key is in flight: concurrent callers for the same
    key await the same task. Failed loads are not cached, so the next call
    retries. Invalidating a key while its load is in flight detaches that
    load: its callers still get its result, but the result is not cached
    and the next call starts a fresh load.
    """

    def __init__(self):
        self._values: Dict[Hashable, Any] = {}
        self._in_flight: Dict[Hashable, asyncio.Future] = {}
        self._generations: Dict[Hashable, int] = {}

    async def get_or_load(self, key: Hashable, loader: Callable[[], Awaitable[Any]]) -> Any:
        """
        Return the cached value for `key`, loading it with `loader` if needed.

        Args:
            key: Cache key (e.g. a project id)
            loader: Zero-argument coroutine function producing the value

        Returns:
            Cached or freshly loaded value
        """
        if key in self._values:
            return self._values[key]

        future = self._in_flight.get(key)
        if future is None:
            future = asyncio.ensure_future(self._load(key, loader, self._generations.get(key, 0)))
            self._in_flight[key] = future
        else:
            logger.debug(f"Joining in-flight load for {key!r}")

        # A cancelled caller must not cancel the shared load
        return await asyncio.shield(future)

    async def _load(self, key: Hashable, loader: Callable[[], Awaitable[Any]], generation: int) -> Any:
        try:
            value = await loader()
            if self._is_current(key, generation):
                self._values[key] = value
            else:
                logger.debug(f"Discarding load for {key!r} invalidated while in flight")
            return value
        finally:
            if self._is_current(key, generation):
                self._in_flight.pop(key, None)

    def _is_current(self, key: Hashable, generation: int) -> bool:
        return self._generations.get(key, 0) == generation

    def peek(self, key: Hashable, default: Optional[Any] = None) -> Any:
        """Cached value without loading"""
        return self._values.get(key, default)

    def is_loaded(self, key: Hashable) -> bool:
        return key in self._values

    def is_loading(self, key: Hashable) -> bool:
        return key in self._in_flight

    def invalidate(self, key: Hashable) -> None:
        """Drop a cached value, and detach any in-flight load, so the next call reloads it"""
        self._values.pop(key, None)
        if self._in_flight.pop(key, None) is not None:
            self._generations[key] = self._generations.get(key, 0) + 1

    def clear(self) -> None:
        for key in list(self._in_flight):
            self.invalidate(key)
        self._values.clear()

    def snapshot(self) -> Dict[Hashable, Any]:
        """Copy of all loaded values"""
        return dict(self._values)
