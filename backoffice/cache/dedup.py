"""
Single-flight request deduplication
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

class RequestDeduplicator:
    """Collapses concurrent calls that share a key into one execution.

    Every caller waiting on a key receives the same result or the same
    exception. The key is released as soon as the operation settles, so
    the next call runs the operation again.
    """

    def __init__(self):
        self._pending: Dict[str, asyncio.Future] = {}

    async def deduplicate(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        future = self._pending.get(key)

        if future is None or future.done():
            future = asyncio.ensure_future(operation())
            self._pending[key] = future
            future.add_done_callback(lambda done, key=key: self._release(key, done))
            logger.debug(f"Dedup START: {key}")
        else:
            logger.debug(f"Dedup JOIN: {key}")

        # A cancelled waiter must not cancel the work other callers share
        return await asyncio.shield(future)

    def _release(self, key: str, future: asyncio.Future) -> None:
        if self._pending.get(key) is future:
            del self._pending[key]
        if not future.cancelled():
            # Mark the exception retrieved; waiters re-raise it themselves
            future.exception()

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def pending_count(self) -> int:
        return len(self._pending)

    def clear(self) -> None:
        """Forget in-flight keys (the operations themselves keep running)"""
        self._pending.clear()
